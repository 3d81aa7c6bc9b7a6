import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.db.models import Count, Q
from django.utils import timezone

from apps.core.utils.cache_manager import CacheManager
from apps.quotes.config.quote_settings import QuoteConfig
from apps.quotes.models import ACTIVE_STATUSES, QuoteRequest, QuoteStatus

logger = logging.getLogger("quotes_performance")

SCOPE_GLOBAL = "global"
SCOPE_CUSTOMER = "customer"
SCOPE_ARTISAN = "artisan"
SCOPE_PARTICIPANT = "participant"

STATS_SCOPES = (SCOPE_GLOBAL, SCOPE_CUSTOMER, SCOPE_ARTISAN, SCOPE_PARTICIPANT)


def _round2(value) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class QuoteStatsService:
    """
    Aggregate figures over a set of quotes.

    Every quote in scope is counted; nothing is sampled. Results are cached
    per scope and dropped whenever a quote in that scope changes.
    """

    @staticmethod
    def _scoped_queryset(scope: str, user_id=None):
        queryset = QuoteRequest.objects.all()
        if scope == SCOPE_CUSTOMER:
            return queryset.filter(customer_id=user_id)
        if scope == SCOPE_ARTISAN:
            return queryset.filter(artisan_id=user_id)
        if scope == SCOPE_PARTICIPANT:
            return queryset.filter(Q(customer_id=user_id) | Q(artisan_id=user_id))
        return queryset

    @staticmethod
    def compute(queryset) -> dict:
        counts = queryset.aggregate(
            total=Count("id"),
            pending=Count("id", filter=Q(status__in=ACTIVE_STATUSES)),
            accepted=Count("id", filter=Q(status=QuoteStatus.ACCEPTED)),
            rejected=Count("id", filter=Q(status=QuoteStatus.REJECTED)),
            expired=Count("id", filter=Q(status=QuoteStatus.EXPIRED)),
            completed=Count("id", filter=Q(status=QuoteStatus.COMPLETED)),
        )
        total = counts["total"]
        accepted = counts["accepted"]

        conversion_rate_percent = _round2(accepted * 100 / total) if total else 0.0

        avg_hours = 0.0
        if accepted:
            durations = queryset.filter(status=QuoteStatus.ACCEPTED).values_list(
                "created_at", "updated_at"
            )
            total_seconds = sum(
                (updated - created).total_seconds()
                for created, updated in durations.iterator()
            )
            avg_hours = _round2(total_seconds / accepted / 3600)

        return {
            "total_quotes": total,
            "pending_quotes": counts["pending"],
            "accepted_quotes": accepted,
            "rejected_quotes": counts["rejected"],
            "expired_quotes": counts["expired"],
            "completed_quotes": counts["completed"],
            "conversion_rate_percent": conversion_rate_percent,
            "average_negotiation_time_hours": avg_hours,
        }

    @classmethod
    def get_stats(cls, scope: str = SCOPE_GLOBAL, user_id=None) -> dict:
        if scope not in STATS_SCOPES:
            scope = SCOPE_GLOBAL
        if scope == SCOPE_GLOBAL or user_id is None:
            scope, user_id = SCOPE_GLOBAL, "all"

        cached = CacheManager.get("quote", "stats", scope=scope, user_id=user_id)
        if cached is not None:
            return cached

        start_time = timezone.now()
        stats = cls.compute(cls._scoped_queryset(scope, user_id))
        CacheManager.set(
            "quote",
            "stats",
            stats,
            timeout=QuoteConfig.stats_cache_timeout(),
            scope=scope,
            user_id=user_id,
        )
        duration = (timezone.now() - start_time).total_seconds() * 1000
        logger.info(f"Computed {scope} quote stats in {duration:.2f}ms")
        return stats

    @staticmethod
    def invalidate_for_quote(quote):
        """Drop every cached figure the quote contributes to."""
        CacheManager.invalidate_key("quote", "stats", scope=SCOPE_GLOBAL, user_id="all")
        for user_id in (quote.customer_id, quote.artisan_id):
            CacheManager.invalidate_key(
                "quote", "stats", scope=SCOPE_PARTICIPANT, user_id=user_id
            )
        CacheManager.invalidate_key(
            "quote", "stats", scope=SCOPE_CUSTOMER, user_id=quote.customer_id
        )
        CacheManager.invalidate_key(
            "quote", "stats", scope=SCOPE_ARTISAN, user_id=quote.artisan_id
        )

    @staticmethod
    def invalidate_all():
        CacheManager.invalidate_pattern("quote", "stats_all")
