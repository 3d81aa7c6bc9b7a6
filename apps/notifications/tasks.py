import logging

from celery import shared_task
from django.utils import timezone

from apps.core.tasks import BaseTaskWithRetry
from apps.notifications.models import (
    Notification,
    NotificationChannel,
    NotificationTemplate,
)
from apps.notifications.services.email import EmailNotificationService

logger = logging.getLogger(__name__)


@shared_task(bind=True, base=BaseTaskWithRetry)
def send_notification_task(self, notification_id: int):
    """
    Deliver a notification through its channel.

    In-app notifications are delivered by being stored; email notifications
    are sent with the template subject.

    Args:
        notification_id: The ID of the notification to send.
    """
    try:
        notification = Notification.objects.select_related("recipient").get(
            id=notification_id
        )
    except Notification.DoesNotExist:
        logger.warning(f"Notification {notification_id} no longer exists")
        return f"Notification {notification_id} not found"

    if notification.sent_at is not None:
        return f"Notification {notification_id} already sent"

    if notification.channel == NotificationChannel.EMAIL:
        subject = (
            NotificationTemplate.objects.filter(name=notification.notification_type)
            .values_list("subject", flat=True)
            .first()
            or notification.notification_type
        )
        EmailNotificationService.send_email(
            subject, notification.message, [notification.recipient.email]
        )

    notification.sent_at = timezone.now()
    notification.save(update_fields=["sent_at"])
    logger.info(
        f"Sent notification {notification.id} to {notification.recipient_id} via {notification.channel}"
    )
    return f"Sent notification {notification_id}"
