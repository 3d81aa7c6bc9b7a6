from rest_framework import serializers

from apps.core.serializers import TimestampedModelSerializer
from apps.users.models import CustomUser


class UserSerializer(TimestampedModelSerializer):
    full_name = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = CustomUser
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "is_staff",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_full_name(self, obj) -> str:
        return obj.get_full_name()
