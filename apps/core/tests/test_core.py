import pytest
from django.core.cache import cache
from rest_framework import status
from rest_framework.exceptions import Throttled
from rest_framework.test import APIClient, APIRequestFactory

from apps.core.exceptions import ServiceError, custom_exception_handler
from apps.core.utils.cache_key_manager import CacheKeyManager
from apps.core.utils.cache_manager import CacheManager
from apps.quotes.utils.rate_limiting import QuoteCreateRateThrottle

LOCMEM_CACHE = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "core-tests",
        "KEY_PREFIX": "artisanhub",
    }
}


@pytest.fixture(autouse=True)
def locmem_cache(settings):
    settings.CACHES = LOCMEM_CACHE
    cache.clear()
    yield
    cache.clear()


class OutOfStock(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    kind = "out_of_stock"


class TestExceptionHandler:
    def test_service_error_envelope(self):
        exc = OutOfStock(
            "Nothing left.",
            rule="stock_available",
            current_state="sold",
            expected_states=["published"],
        )

        response = custom_exception_handler(exc, {})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {
            "status": "error",
            "status_code": 409,
            "message": "Nothing left.",
            "error": {
                "kind": "out_of_stock",
                "rule": "stock_available",
                "current_state": "sold",
                "expected_states": ["published"],
            },
        }

    def test_throttled_uses_scope_message(self):
        class View:
            def get_throttles(self):
                class Throttle:
                    scope = "quote_create"

                return [Throttle()]

        response = custom_exception_handler(Throttled(wait=30), {"view": View()})

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert response.data["retry_after"] == 30
        assert "quote requests" in response.data["message"]


class TestCacheHelpers:

    def test_make_key_applies_prefix(self):
        key = CacheKeyManager.make_key("quote", "stats", scope="artisan", user_id="42")
        assert key == "artisanhub:quote:stats:artisan:42"

    def test_make_key_rejects_wildcards(self):
        with pytest.raises(ValueError):
            CacheKeyManager.make_key("quote", "stats_all")

    def test_unknown_template(self):
        with pytest.raises(KeyError):
            CacheKeyManager.make_key("quote", "missing")

    def test_set_get_invalidate(self):
        CacheManager.set("quote", "stats", {"total_quotes": 1}, scope="global", user_id="all")
        assert CacheManager.get("quote", "stats", scope="global", user_id="all") == {
            "total_quotes": 1
        }

        CacheManager.invalidate_key("quote", "stats", scope="global", user_id="all")
        assert CacheManager.get("quote", "stats", scope="global", user_id="all") is None

    def test_pattern_invalidation_without_redis_clears_cache(self):
        CacheManager.set("quote", "stats", 1, scope="customer", user_id="1")
        CacheManager.invalidate_pattern("quote", "stats_all")
        assert CacheManager.get("quote", "stats", scope="customer", user_id="1") is None


@pytest.mark.django_db
class TestRequestTimingMiddleware:
    def test_api_requests_are_timed(self):
        response = APIClient().get("/api/v1/quotes/")
        assert "X-Response-Time" in response

    def test_other_paths_are_not_timed(self):
        response = APIClient().get("/api/v1/users/me/")
        assert "X-Response-Time" not in response


@pytest.mark.django_db
class TestBaseCacheThrottle:
    def test_limits_per_user(self, django_user_model):
        user = django_user_model.objects.create_user(
            email="limited@test.com", password="testpassword123"
        )
        factory = APIRequestFactory()
        request = factory.post("/api/v1/quotes/")
        request.user = user

        # Rates are read at class level, so pin it for this throttle
        QuoteCreateRateThrottle.THROTTLE_RATES = {"quote_create": "2/min"}
        try:
            results = [
                QuoteCreateRateThrottle().allow_request(request, None)
                for _ in range(3)
            ]
        finally:
            del QuoteCreateRateThrottle.THROTTLE_RATES

        assert results == [True, True, False]
