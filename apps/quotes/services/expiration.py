import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.quotes.config.quote_settings import QuoteConfig
from apps.quotes.services.quote_events import QuoteEvent, QuoteEventPublisher
from apps.quotes.services.quote_store import QuoteStore
from apps.quotes.services.stats_service import QuoteStatsService

logger = logging.getLogger("quote_tasks")


class QuoteExpirationService:
    """
    Moves overdue active quotes to EXPIRED.

    Each batch locks its rows with SKIP LOCKED and expires them with one
    guarded UPDATE, so concurrent sweeps share the work and a second run
    finds nothing left to do. No history entry is written; the EXPIRED
    status is the record.
    """

    @staticmethod
    def sweep_expired_quotes(now=None, batch_size=None) -> int:
        start_time = timezone.now()
        now = now or start_time
        batch_size = batch_size or QuoteConfig.sweep_batch_size()

        total_expired = 0
        failed_ids = set()

        while True:
            quote_ids = []
            try:
                with transaction.atomic():
                    quotes = QuoteStore.list_active_expired(
                        now, limit=batch_size, exclude_ids=failed_ids, lock=True
                    )
                    quote_ids = [quote.id for quote in quotes]
                    if not quote_ids:
                        break
                    expired = QuoteStore.expire_quotes(quote_ids, now)
                    QuoteEventPublisher.publish_many(QuoteEvent.EXPIRED, quotes)
            except DatabaseError as e:
                if not quote_ids:
                    logger.error(f"Expiration sweep aborted while selecting quotes: {e}")
                    break
                logger.error(
                    f"Expiration batch of {len(quote_ids)} quotes failed, skipping: {e}"
                )
                failed_ids.update(quote_ids)
                continue

            total_expired += expired
            if len(quote_ids) < batch_size:
                break

        if total_expired:
            QuoteStatsService.invalidate_all()

        duration = (timezone.now() - start_time).total_seconds() * 1000
        logger.info(f"Expired {total_expired} overdue quotes in {duration:.2f}ms")
        return total_expired
