import logging

from celery import shared_task
from django.utils import timezone

from apps.core.tasks import BaseTaskWithRetry
from apps.notifications.services.notification_service import NotificationService
from apps.quotes.models import QuoteRequest
from apps.quotes.services.expiration import QuoteExpirationService

logger = logging.getLogger("quote_tasks")


@shared_task(bind=True, base=BaseTaskWithRetry)
def expire_overdue_quotes(self):
    """
    Periodic task: move every overdue PENDING or COUNTER_OFFERED quote to
    EXPIRED. Safe to run from several workers at once.
    """
    start_time = timezone.now()
    expired_count = QuoteExpirationService.sweep_expired_quotes()
    duration = (timezone.now() - start_time).total_seconds() * 1000
    logger.info(f"expire_overdue_quotes finished: {expired_count} expired in {duration:.2f}ms")
    return {"expired_count": expired_count}


def _price_for(quote):
    price = quote.final_price
    if price is None:
        price = quote.current_offer
    if price is None:
        price = quote.product.price
    return f"{price:.2f}"


@shared_task(bind=True, base=BaseTaskWithRetry)
def send_quote_event_notifications(self, payload):
    """
    Notify the parties of a quote event. The party who caused the event is
    not notified about it.
    """
    try:
        quote = QuoteRequest.objects.select_related(
            "product", "customer", "artisan"
        ).get(id=payload["quote_id"])
    except QuoteRequest.DoesNotExist:
        logger.warning(
            f"Quote {payload['quote_id']} no longer exists; dropping {payload['event']}"
        )
        return 0

    context = {
        "quote_id": str(quote.id),
        "product_title": quote.product.title,
        "customer_name": quote.customer.get_full_name() or quote.customer.email,
        "artisan_name": quote.artisan.get_full_name() or quote.artisan.email,
        "status": quote.get_status_display(),
        "price": _price_for(quote),
    }

    actor_id = payload.get("actor_id")
    sent = 0
    for recipient in (quote.customer, quote.artisan):
        if actor_id and str(recipient.id) == actor_id:
            continue
        if NotificationService.send_notification(recipient, payload["event"], context):
            sent += 1

    logger.info(f"Sent {sent} notifications for {payload['event']} on quote {quote.id}")
    return sent
