from django.conf import settings
from drf_spectacular.extensions import OpenApiAuthenticationExtension


class CookieJWTAuthenticationExtension(OpenApiAuthenticationExtension):
    # Must match the dotted path of the authentication class
    target_class = "apps.core.authentication.CookieJWTAuthentication"
    name = "cookieAuth"

    def get_security_definition(self, auto_schema):
        cookie_name = getattr(settings, "JWT_AUTH_COOKIE", "access_token")

        return {
            "type": "apiKey",
            "in": "cookie",
            "name": cookie_name,
        }
