import django_filters
from django.db.models import Q

from apps.quotes.models import QuoteRequest, QuoteStatus


class QuoteFilter(django_filters.FilterSet):
    """Filter class for quote requests"""

    status = django_filters.MultipleChoiceFilter(choices=QuoteStatus.choices)
    product = django_filters.UUIDFilter(field_name="product_id")
    customer = django_filters.UUIDFilter(field_name="customer_id")
    artisan = django_filters.UUIDFilter(field_name="artisan_id")
    participant = django_filters.UUIDFilter(method="filter_participant")
    date_from = django_filters.IsoDateTimeFilter(
        field_name="created_at", lookup_expr="gte"
    )
    date_to = django_filters.IsoDateTimeFilter(
        field_name="created_at", lookup_expr="lte"
    )
    ordering = django_filters.OrderingFilter(
        fields=(
            ("created_at", "created_at"),
            ("updated_at", "updated_at"),
            ("expires_at", "expires_at"),
            ("requested_price", "requested_price"),
        )
    )

    class Meta:
        model = QuoteRequest
        fields = [
            "status",
            "product",
            "customer",
            "artisan",
            "participant",
            "date_from",
            "date_to",
        ]

    def filter_participant(self, queryset, name, value):
        return queryset.filter(Q(customer_id=value) | Q(artisan_id=value))
