import logging

from django.conf import settings
from django.contrib.auth.models import update_last_login
from rest_framework import permissions, status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import (
    TokenObtainPairSerializer,
    TokenRefreshSerializer,
)

from apps.core.views import BaseResponseMixin
from apps.users.serializers import UserSerializer

logger = logging.getLogger(__name__)


class CookieTokenMixin:
    """Moves issued JWTs out of the response body and into HttpOnly cookies."""

    def set_token_cookies(self, response, access=None, refresh=None):
        jwt_settings = settings.SIMPLE_JWT
        if access:
            response.set_cookie(
                settings.JWT_AUTH_COOKIE,
                access,
                max_age=int(jwt_settings["ACCESS_TOKEN_LIFETIME"].total_seconds()),
                httponly=True,
                samesite="Lax",
            )
        if refresh:
            response.set_cookie(
                settings.JWT_AUTH_REFRESH_COOKIE,
                refresh,
                max_age=int(jwt_settings["REFRESH_TOKEN_LIFETIME"].total_seconds()),
                httponly=True,
                samesite="Lax",
            )
        return response


class CookieTokenObtainPairView(CookieTokenMixin, BaseResponseMixin, APIView):
    """Email/password login. Tokens are returned as cookies only."""

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        serializer = TokenObtainPairSerializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except (AuthenticationFailed, TokenError, InvalidToken):
            return self.error_response(
                message="Authentication failed",
                status_code=status.HTTP_401_UNAUTHORIZED,
            )

        user = serializer.user
        update_last_login(None, user)
        logger.info(f"User {user.id} logged in")

        response = self.success_response(
            data=UserSerializer(user).data, message="Login successful"
        )
        return self.set_token_cookies(
            response,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data["refresh"],
        )


class CookieTokenRefreshView(CookieTokenMixin, BaseResponseMixin, APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        refresh_token = request.COOKIES.get(settings.JWT_AUTH_REFRESH_COOKIE)
        if not refresh_token:
            return self.error_response(
                message="No refresh token found",
                status_code=status.HTTP_401_UNAUTHORIZED,
            )

        serializer = TokenRefreshSerializer(data={"refresh": refresh_token})
        try:
            serializer.is_valid(raise_exception=True)
        except (TokenError, InvalidToken):
            return self.error_response(
                message="Invalid or expired refresh token",
                status_code=status.HTTP_401_UNAUTHORIZED,
            )

        response = self.success_response(message="Token refreshed")
        return self.set_token_cookies(
            response,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data.get("refresh"),
        )


class CurrentUserView(BaseResponseMixin, APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return self.success_response(data=UserSerializer(request.user).data)
