import logging

from rest_framework import status
from rest_framework.exceptions import APIException, Throttled, ValidationError
from rest_framework.views import exception_handler

from apps.core.utils.extract_error import extract_validation_error_message

logger = logging.getLogger(__name__)


class ServiceError(APIException):
    """
    Base class for business-rule failures raised by service layers.

    Carries a machine readable ``kind`` plus enough detail for a client to
    build an actionable message: the violated ``rule`` and, for state
    errors, the ``current_state`` against the ``expected_states``.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be processed."
    default_code = "service_error"
    kind = "service_error"

    def __init__(
        self, detail=None, rule=None, current_state=None, expected_states=None
    ):
        super().__init__(detail=detail)
        self.rule = rule
        self.current_state = current_state
        self.expected_states = list(expected_states or [])

    @property
    def message(self):
        return str(self.detail)

    def as_dict(self):
        return {
            "kind": self.kind,
            "rule": self.rule,
            "current_state": self.current_state,
            "expected_states": self.expected_states,
        }


THROTTLE_MESSAGES = {
    "quote_create": "Too many quote requests. Please wait before requesting more quotes.",
    "quote_respond": "Too many quote responses. Please wait before responding again.",
    "quote_message": "Too many messages. Please wait before sending more messages.",
}


def custom_exception_handler(exc, context):
    """
    Intercept any DRF exception and render it in the project envelope.

    - Throttled: 429 with a message based on the throttle `scope`.
    - ServiceError: the error `kind`, `rule` and state details.
    - ValidationError: the first field error as the message.
    Anything else falls back to DRF's default behavior.
    """
    # Let DRF build the default error response first (it will include a 429
    # status code and a Retry-After header for Throttled exceptions).
    response = exception_handler(exc, context)

    if response is None:
        return response

    if isinstance(exc, Throttled):
        view = context.get("view", None)
        throttles = [] if view is None else getattr(view, "get_throttles", lambda: [])()
        scope = None
        if throttles:
            scope = getattr(throttles[0], "scope", None)

        wait_seconds = int(exc.wait) if exc.wait is not None else None

        if scope in THROTTLE_MESSAGES:
            detail = THROTTLE_MESSAGES[scope]
        elif wait_seconds is not None:
            detail = f"Request rate limit exceeded. Please wait {wait_seconds} seconds and try again."
        else:
            detail = "Request rate limit exceeded. Please try again later."

        response.data = {
            "status": "error",
            "message": detail,
            "retry_after": wait_seconds,
        }
        response.status_code = status.HTTP_429_TOO_MANY_REQUESTS

    elif isinstance(exc, ServiceError):
        response.data = {
            "status": "error",
            "status_code": exc.status_code,
            "message": exc.message,
            "error": exc.as_dict(),
        }

    elif isinstance(exc, ValidationError):
        response.data = {
            "status": "error",
            "status_code": response.status_code,
            "message": extract_validation_error_message(exc),
            "errors": exc.detail,
        }

    return response
