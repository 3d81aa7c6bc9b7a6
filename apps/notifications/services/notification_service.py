import logging
from typing import Any, Dict, Optional

from apps.notifications.models import Notification, NotificationTemplate
from apps.users.models import CustomUser as User

logger = logging.getLogger(__name__)


class NotificationService:
    """
    A centralized service for handling all notification-related operations.
    """

    @staticmethod
    def send_notification(
        recipient: User, notification_type: str, context: Dict[str, Any]
    ) -> Optional[Notification]:
        """
        Creates a notification and triggers an asynchronous task to send it.

        Args:
            recipient: The user who should receive the notification.
            notification_type: The type of notification (maps to a NotificationTemplate).
            context: Context data used to render the template body.

        Returns:
            The created notification, or None when no template is configured.
        """
        from apps.notifications.tasks import send_notification_task

        try:
            template = NotificationTemplate.objects.get(name=notification_type)
        except NotificationTemplate.DoesNotExist:
            logger.warning(
                f"No notification template named '{notification_type}'; "
                f"skipping notification for {recipient.pk}"
            )
            return None

        try:
            message = template.body.format(**context)
        except KeyError as e:
            logger.error(
                f"Template '{notification_type}' needs context key {e.args[0]!r}"
            )
            message = template.body

        notification = Notification.objects.create(
            recipient=recipient,
            message=message,
            notification_type=notification_type,
            channel=template.channel,
            data=context,
        )

        send_notification_task.delay(notification.id)
        return notification

    @staticmethod
    def mark_as_read(recipient: User, notification_ids=None) -> int:
        """
        Marks the recipient's notifications as read. All unread ones when no
        ids are given. Returns the number of rows updated.
        """
        queryset = Notification.objects.filter(recipient=recipient, is_read=False)
        if notification_ids is not None:
            queryset = queryset.filter(id__in=notification_ids)
        return queryset.update(is_read=True)
