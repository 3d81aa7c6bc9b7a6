from rest_framework import status

from apps.core.exceptions import ServiceError


class QuoteErrorKind:
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_STATE = "invalid_state"
    EXPIRED = "expired"
    VALIDATION_ERROR = "validation_error"
    DUPLICATE_ACTIVE_QUOTE = "duplicate_active_quote"
    STORE_UNAVAILABLE = "store_unavailable"

    # Raised because of what the caller sent; never logged as server errors
    CLIENT_ERRORS = (
        NOT_FOUND,
        FORBIDDEN,
        INVALID_STATE,
        EXPIRED,
        VALIDATION_ERROR,
        DUPLICATE_ACTIVE_QUOTE,
    )


class QuoteError(ServiceError):
    """Base class for every failure raised by the quote negotiation engine."""

    default_code = "quote_error"

    @property
    def is_client_error(self):
        return self.kind in QuoteErrorKind.CLIENT_ERRORS


class QuoteNotFound(QuoteError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Quote request not found."
    default_code = "quote_not_found"
    kind = QuoteErrorKind.NOT_FOUND


class QuoteForbidden(QuoteError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action on the quote."
    default_code = "quote_forbidden"
    kind = QuoteErrorKind.FORBIDDEN


class InvalidQuoteState(QuoteError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The quote is not in a state that allows this action."
    default_code = "invalid_quote_state"
    kind = QuoteErrorKind.INVALID_STATE


class QuoteExpired(QuoteError):
    status_code = status.HTTP_410_GONE
    default_detail = "The quote has expired."
    default_code = "quote_expired"
    kind = QuoteErrorKind.EXPIRED


class QuoteValidationError(QuoteError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid quote data."
    default_code = "quote_validation_error"
    kind = QuoteErrorKind.VALIDATION_ERROR


class DuplicateActiveQuote(QuoteError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "An active quote already exists for this product."
    default_code = "duplicate_active_quote"
    kind = QuoteErrorKind.DUPLICATE_ACTIVE_QUOTE


class StoreUnavailable(QuoteError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Quote storage is temporarily unavailable."
    default_code = "store_unavailable"
    kind = QuoteErrorKind.STORE_UNAVAILABLE
