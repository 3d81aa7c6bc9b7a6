from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULTS = {
    "DEFAULT_EXPIRES_IN_DAYS": 7,
    "MIN_EXPIRES_IN_DAYS": 1,
    "MAX_EXPIRES_IN_DAYS": 30,
    "MIN_PRICE_RATIO": "0.50",
    "MAX_SPECIFICATIONS_LENGTH": 2000,
    "MAX_MESSAGE_LENGTH": 1000,
    "SWEEP_BATCH_SIZE": 500,
    "STATS_CACHE_TIMEOUT": 300,
    "NOTIFY_PARTIES": True,
}


class QuoteConfig:
    """
    Business limits for quote negotiation, read from settings.QUOTE_SETTINGS.

    Values are read on access so tests can override settings.
    """

    @staticmethod
    def _get(name):
        overrides = getattr(settings, "QUOTE_SETTINGS", {}) or {}
        return overrides.get(name, DEFAULTS[name])

    @classmethod
    def default_expires_in_days(cls) -> int:
        return int(cls._get("DEFAULT_EXPIRES_IN_DAYS"))

    @classmethod
    def expires_in_days_bounds(cls):
        low = int(cls._get("MIN_EXPIRES_IN_DAYS"))
        high = int(cls._get("MAX_EXPIRES_IN_DAYS"))
        if low < 1 or low > high:
            raise ImproperlyConfigured(
                f"QUOTE_SETTINGS expiry bounds are invalid: {low}..{high}"
            )
        return low, high

    @classmethod
    def min_price_ratio(cls) -> Decimal:
        return Decimal(str(cls._get("MIN_PRICE_RATIO")))

    @classmethod
    def max_specifications_length(cls) -> int:
        return int(cls._get("MAX_SPECIFICATIONS_LENGTH"))

    @classmethod
    def max_message_length(cls) -> int:
        return int(cls._get("MAX_MESSAGE_LENGTH"))

    @classmethod
    def sweep_batch_size(cls) -> int:
        return max(1, int(cls._get("SWEEP_BATCH_SIZE")))

    @classmethod
    def stats_cache_timeout(cls) -> int:
        return int(cls._get("STATS_CACHE_TIMEOUT"))

    @classmethod
    def notify_parties(cls) -> bool:
        return bool(cls._get("NOTIFY_PARTIES"))
