from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from apps.quotes.config.quote_settings import QuoteConfig
from apps.quotes.exceptions import QuoteForbidden, QuoteValidationError
from apps.quotes.gateways import ProductSnapshot


class QuoteValidationService:
    """Input and business-rule checks applied before any quote write."""

    @staticmethod
    def resolve_expires_in_days(expires_in_days: Optional[int]) -> int:
        """The configured default when omitted, otherwise a value within bounds."""
        if expires_in_days is None:
            return QuoteConfig.default_expires_in_days()

        low, high = QuoteConfig.expires_in_days_bounds()
        try:
            # bool is an int subclass, so True would pass as 1
            if isinstance(expires_in_days, bool):
                raise TypeError(expires_in_days)
            days = int(expires_in_days)
        except (TypeError, ValueError):
            raise QuoteValidationError(
                "expires_in_days must be a whole number of days.",
                rule="expires_in_days_integer",
            )
        if days != expires_in_days or not low <= days <= high:
            raise QuoteValidationError(
                f"expires_in_days must be between {low} and {high}.",
                rule="expires_in_days_range",
            )
        return days

    @staticmethod
    def validate_text(field: str, value: Optional[str], max_length: int):
        if value and len(value) > max_length:
            raise QuoteValidationError(
                f"{field} cannot exceed {max_length} characters.",
                rule=f"{field}_max_length",
            )

    @classmethod
    def validate_message(cls, field: str, value: Optional[str]):
        cls.validate_text(field, value, QuoteConfig.max_message_length())

    @classmethod
    def validate_specifications(cls, value: Optional[str]):
        cls.validate_text(
            "specifications", value, QuoteConfig.max_specifications_length()
        )

    @staticmethod
    def validate_quotable_product(product: ProductSnapshot, customer_id):
        """The product must be published, customizable and not the customer's own."""
        if not product.is_published:
            raise QuoteValidationError(
                "Quotes can only be requested for published products.",
                rule="product_published",
                current_state=product.status,
                expected_states=["published"],
            )
        if not product.is_customizable:
            raise QuoteValidationError(
                "This product does not accept custom quote requests.",
                rule="product_customizable",
            )
        if str(product.seller_id) == str(customer_id):
            raise QuoteValidationError(
                "You cannot request a quote for your own product.",
                rule="no_self_quote",
            )

    @staticmethod
    def price_floor(product: ProductSnapshot) -> Decimal:
        return (product.current_price * QuoteConfig.min_price_ratio()).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    @classmethod
    def validate_requested_price(cls, product: ProductSnapshot, requested_price):
        """
        Requested price, when given, must be positive and at least the
        configured share of the product's current price.
        """
        if requested_price is None:
            return
        if requested_price <= 0:
            raise QuoteValidationError(
                "Requested price must be greater than zero.",
                rule="requested_price_positive",
            )
        if product.current_price is None:
            return
        floor = cls.price_floor(product)
        if requested_price < floor:
            raise QuoteValidationError(
                f"Requested price must be at least {floor} "
                f"({QuoteConfig.min_price_ratio() * 100:.0f}% of the current price).",
                rule="requested_price_floor",
            )

    @staticmethod
    def ensure_artisan(quote, user_id):
        if str(quote.artisan_id) != str(user_id):
            raise QuoteForbidden(
                "Only the artisan assigned to this quote can respond to it.",
                rule="assigned_artisan_only",
            )

    @staticmethod
    def ensure_party(quote, user_id):
        role = quote.party_role(user_id)
        if role is None:
            raise QuoteForbidden(
                "Only the customer or artisan on this quote can do that.",
                rule="quote_party_only",
            )
        return role
