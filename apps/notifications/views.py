from rest_framework import mixins, permissions, viewsets
from rest_framework.decorators import action

from apps.core.views import BaseResponseMixin
from apps.notifications.models import Notification
from apps.notifications.serializers import MarkReadSerializer, NotificationSerializer
from apps.notifications.services.notification_service import NotificationService


class NotificationViewSet(
    BaseResponseMixin, mixins.ListModelMixin, viewsets.GenericViewSet
):
    """The authenticated user's notifications, newest first."""

    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["is_read", "notification_type"]

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user)

    @action(detail=False, methods=["post"], url_path="mark-read")
    def mark_read(self, request):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = NotificationService.mark_as_read(
            request.user, serializer.validated_data.get("ids")
        )
        return self.success_response(
            data={"updated": updated}, message="Notifications marked as read"
        )
