from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.test import override_settings
from django.utils import timezone

from apps.products.product_base.models import Product
from apps.quotes.actions import Accept
from apps.quotes.models import QuoteRequest, QuoteStatus
from apps.quotes.services.negotiation_service import QuoteNegotiationService
from apps.quotes.services.stats_service import QuoteStatsService

LOCMEM_CACHE = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "quote-stats-tests",
    }
}


def _set_duration(quote, hours):
    created = timezone.now() - timedelta(days=2)
    QuoteRequest.objects.filter(pk=quote.pk).update(
        created_at=created, updated_at=created + timedelta(hours=hours)
    )


@pytest.fixture
def other_products(artisan):
    return [
        Product.objects.create(
            seller=artisan,
            title=f"Bowl {i}",
            price=Decimal("30.00"),
            status=Product.ProductsStatus.PUBLISHED,
            is_customizable=True,
        )
        for i in range(4)
    ]


@pytest.mark.django_db
class TestQuoteStats:
    def test_empty_scope_is_all_zero(self, customer):
        stats = QuoteNegotiationService.get_stats(user_id=customer.id, role="customer")

        assert stats["total_quotes"] == 0
        assert stats["conversion_rate_percent"] == 0.0
        assert stats["average_negotiation_time_hours"] == 0.0

    def test_counts_and_averages(self, make_quote, other_products):
        first = make_quote(status=QuoteStatus.ACCEPTED, product=other_products[0])
        second = make_quote(status=QuoteStatus.ACCEPTED, product=other_products[1])
        make_quote(status=QuoteStatus.PENDING, product=other_products[2])
        make_quote(status=QuoteStatus.COUNTER_OFFERED, product=other_products[3])
        make_quote(status=QuoteStatus.REJECTED)
        make_quote(status=QuoteStatus.EXPIRED)
        _set_duration(first, 2)
        _set_duration(second, 3)

        stats = QuoteStatsService.compute(QuoteRequest.objects.all())

        assert stats["total_quotes"] == 6
        assert stats["pending_quotes"] == 2
        assert stats["accepted_quotes"] == 2
        assert stats["rejected_quotes"] == 1
        assert stats["expired_quotes"] == 1
        assert stats["conversion_rate_percent"] == 33.33
        assert stats["average_negotiation_time_hours"] == 2.5

    def test_rounding_is_half_up(self, make_quote):
        quote = make_quote(status=QuoteStatus.ACCEPTED)
        for _ in range(7):
            make_quote(status=QuoteStatus.REJECTED)
        _set_duration(quote, 1.005)

        stats = QuoteStatsService.compute(QuoteRequest.objects.all())
        assert stats["conversion_rate_percent"] == 12.5
        assert stats["average_negotiation_time_hours"] == 1.01

    def test_scopes(self, make_quote, other_customer, customer, artisan, second_product):
        make_quote()
        make_quote(customer=other_customer, product=second_product)

        assert QuoteNegotiationService.get_stats()["total_quotes"] == 2
        assert QuoteNegotiationService.get_stats(customer.id, "customer")["total_quotes"] == 1
        assert QuoteNegotiationService.get_stats(artisan.id, "artisan")["total_quotes"] == 2
        assert QuoteNegotiationService.get_stats(artisan.id, "customer")["total_quotes"] == 0
        assert QuoteNegotiationService.get_stats(other_customer.id)["total_quotes"] == 1

    @override_settings(CACHES=LOCMEM_CACHE)
    def test_cached_stats_invalidated_on_change(self, customer, artisan, product):
        cache.clear()
        quote = QuoteNegotiationService.create_quote_request(
            customer_id=customer.id, product_id=product.id
        )
        assert QuoteNegotiationService.get_stats(artisan.id, "artisan")["accepted_quotes"] == 0

        QuoteNegotiationService.respond_to_quote(quote.id, artisan.id, Accept())

        stats = QuoteNegotiationService.get_stats(artisan.id, "artisan")
        assert stats["accepted_quotes"] == 1
        assert QuoteNegotiationService.get_stats()["accepted_quotes"] == 1
        cache.clear()
