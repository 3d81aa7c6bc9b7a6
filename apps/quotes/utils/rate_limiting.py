from apps.core.throttle import BaseCacheThrottle


class QuoteCreateRateThrottle(BaseCacheThrottle):
    """Limits how often a customer can open new quote requests"""

    scope = "quote_create"


class QuoteRespondRateThrottle(BaseCacheThrottle):
    """Limits artisan responses and cancellations"""

    scope = "quote_respond"


class QuoteMessageRateThrottle(BaseCacheThrottle):
    scope = "quote_message"


class QuoteReadRateThrottle(BaseCacheThrottle):
    scope = "quote_read"
