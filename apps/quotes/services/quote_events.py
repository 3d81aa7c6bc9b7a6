import logging
from typing import Iterable, Optional

from django.db import transaction

from apps.quotes.config.quote_settings import QuoteConfig

logger = logging.getLogger("quote_tasks")


class QuoteEvent:
    REQUESTED = "quote_requested"
    RESPONDED = "quote_responded"
    ACCEPTED = "quote_accepted"
    MESSAGE = "quote_message"
    CANCELLED = "quote_cancelled"
    EXPIRED = "quote_expired"
    COMPLETED = "quote_completed"


class QuoteEventPublisher:
    """
    Hands quote events to the notification task once the surrounding
    transaction commits. Nothing is sent for rolled back changes, and a
    broker failure never undoes a committed state change.
    """

    @staticmethod
    def build_payload(event: str, quote, actor_id=None) -> dict:
        return {
            "event": event,
            "quote_id": str(quote.id),
            "customer_id": str(quote.customer_id),
            "artisan_id": str(quote.artisan_id),
            "actor_id": str(actor_id) if actor_id else None,
        }

    @classmethod
    def publish(cls, event: str, quote, actor_id=None):
        if not QuoteConfig.notify_parties():
            return
        payload = cls.build_payload(event, quote, actor_id)
        transaction.on_commit(lambda: cls._dispatch(payload))

    @classmethod
    def publish_many(cls, event: str, quotes: Iterable, actor_id: Optional[str] = None):
        for quote in quotes:
            cls.publish(event, quote, actor_id)

    @staticmethod
    def _dispatch(payload: dict):
        from apps.quotes.tasks import send_quote_event_notifications

        try:
            send_quote_event_notifications.delay(payload)
        except Exception as e:
            logger.error(
                f"Failed to queue {payload['event']} for quote {payload['quote_id']}: {e}"
            )
