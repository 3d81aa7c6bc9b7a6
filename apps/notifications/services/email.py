# apps/notifications/services/email.py
from django.core.mail import send_mail
from django.conf import settings


class EmailNotificationService:
    @staticmethod
    def send_email(subject, message, recipient_list):
        """
        Send a plain-text email.

        :param subject: Email subject
        :param message: Rendered notification text
        :param recipient_list: List of recipient email addresses
        """
        send_mail(
            subject,
            message,
            getattr(settings, "DEFAULT_FROM_EMAIL", None),
            recipient_list,
            fail_silently=False,
        )
