from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers

from apps.core.serializers import (
    ProductSummarySerializer,
    TimestampedModelSerializer,
    UserShortSerializer,
)
from apps.quotes.models import NegotiationEntry, QuoteRequest, QuoteStatus

ORDERING_CHOICES = [
    "created_at",
    "-created_at",
    "updated_at",
    "-updated_at",
    "expires_at",
    "-expires_at",
    "requested_price",
    "-requested_price",
]


def _money(value):
    if value is None:
        return None
    return f"${value:,.2f}"


class NegotiationEntrySerializer(serializers.ModelSerializer):
    formatted_new_price = serializers.SerializerMethodField()

    class Meta:
        model = NegotiationEntry
        fields = [
            "id",
            "action",
            "actor",
            "previous_price",
            "new_price",
            "formatted_new_price",
            "message",
            "metadata",
            "timestamp",
        ]
        read_only_fields = fields

    def get_formatted_new_price(self, obj) -> str | None:
        return _money(obj.new_price)


class QuoteRequestListSerializer(TimestampedModelSerializer):
    """Compact representation used in listings"""

    product_title = serializers.CharField(source="product.title", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    current_offer = serializers.DecimalField(
        max_digits=10, decimal_places=2, read_only=True
    )

    class Meta:
        model = QuoteRequest
        fields = [
            "id",
            "product",
            "product_title",
            "customer",
            "artisan",
            "requested_price",
            "counter_offer",
            "final_price",
            "current_offer",
            "status",
            "status_display",
            "expires_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class QuoteRequestDetailSerializer(TimestampedModelSerializer):
    """Full quote with parties, product summary and price formatting"""

    product = ProductSummarySerializer(read_only=True)
    customer = UserShortSerializer(read_only=True)
    artisan = UserShortSerializer(read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    formatted_requested_price = serializers.SerializerMethodField()
    formatted_counter_offer = serializers.SerializerMethodField()
    formatted_final_price = serializers.SerializerMethodField()
    time_remaining = serializers.SerializerMethodField()

    class Meta:
        model = QuoteRequest
        fields = [
            "id",
            "product",
            "customer",
            "artisan",
            "requested_price",
            "formatted_requested_price",
            "counter_offer",
            "formatted_counter_offer",
            "final_price",
            "formatted_final_price",
            "specifications",
            "customer_message",
            "artisan_message",
            "status",
            "status_display",
            "expires_at",
            "time_remaining",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_formatted_requested_price(self, obj) -> str | None:
        return _money(obj.requested_price)

    def get_formatted_counter_offer(self, obj) -> str | None:
        return _money(obj.counter_offer)

    def get_formatted_final_price(self, obj) -> str | None:
        return _money(obj.final_price)

    def get_time_remaining(self, obj) -> int | None:
        """Seconds until the quote expires; None once it can no longer expire"""
        if obj.status not in (QuoteStatus.PENDING, QuoteStatus.COUNTER_OFFERED):
            return None
        remaining = (obj.expires_at - timezone.now()).total_seconds()
        return max(int(remaining), 0)


class QuoteCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    requested_price = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        required=False,
        allow_null=True,
        min_value=Decimal("0.01"),
    )
    specifications = serializers.CharField(
        required=False, allow_blank=True, max_length=2000, default=""
    )
    message = serializers.CharField(
        required=False, allow_blank=True, max_length=1000, default=""
    )
    expires_in_days = serializers.IntegerField(
        required=False, allow_null=True, min_value=1, max_value=30
    )


class QuoteRespondSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=["accept", "reject", "counter", "message"])
    counter_offer = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    message = serializers.CharField(
        required=False, allow_blank=True, max_length=1000, default=""
    )


class QuoteMessageSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=1000, trim_whitespace=True)


class QuoteCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(
        required=False, allow_blank=True, max_length=1000, default=""
    )


class QuoteListQuerySerializer(serializers.Serializer):
    """Query parameters accepted by quote listings"""

    status = serializers.CharField(required=False)
    product = serializers.UUIDField(required=False)
    customer = serializers.UUIDField(required=False)
    artisan = serializers.UUIDField(required=False)
    role = serializers.ChoiceField(choices=["customer", "artisan"], required=False)
    date_from = serializers.DateTimeField(required=False)
    date_to = serializers.DateTimeField(required=False)
    ordering = serializers.ChoiceField(
        choices=ORDERING_CHOICES, required=False, default="-created_at"
    )
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    page_size = serializers.IntegerField(
        required=False, min_value=1, max_value=100, default=20
    )

    def validate_status(self, value):
        statuses = [s.strip().lower() for s in value.split(",") if s.strip()]
        unknown = [s for s in statuses if s not in QuoteStatus.values]
        if unknown:
            raise serializers.ValidationError(
                f"Unknown status: {', '.join(unknown)}"
            )
        return statuses

    def validate(self, attrs):
        date_from, date_to = attrs.get("date_from"), attrs.get("date_to")
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError(
                {"date_to": "date_to must not be earlier than date_from."}
            )
        return attrs


class QuoteStatsSerializer(serializers.Serializer):
    total_quotes = serializers.IntegerField()
    pending_quotes = serializers.IntegerField()
    accepted_quotes = serializers.IntegerField()
    rejected_quotes = serializers.IntegerField()
    expired_quotes = serializers.IntegerField()
    completed_quotes = serializers.IntegerField()
    conversion_rate_percent = serializers.FloatField()
    average_negotiation_time_hours = serializers.FloatField()
