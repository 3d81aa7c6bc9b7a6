from datetime import timedelta
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command
from django.db import DatabaseError
from django.utils import timezone

from apps.quotes.models import QuoteStatus
from apps.quotes.services.expiration import QuoteExpirationService
from apps.quotes.services.quote_store import QuoteStore
from apps.quotes.tasks import expire_overdue_quotes


@pytest.fixture
def overdue_quotes(make_quote, second_product, other_customer):
    return [
        make_quote(expires_in=-timedelta(hours=1)),
        make_quote(
            status=QuoteStatus.COUNTER_OFFERED,
            product=second_product,
            expires_in=-timedelta(minutes=5),
            counter_offer="35.00",
        ),
        make_quote(customer=other_customer, expires_in=-timedelta(days=1)),
    ]


@pytest.mark.django_db
class TestSweepExpiredQuotes:
    def test_expires_only_overdue_active_quotes(self, make_quote, overdue_quotes, staff_user):
        fresh = make_quote(customer=staff_user)
        accepted = make_quote(
            status=QuoteStatus.ACCEPTED, expires_in=-timedelta(days=3)
        )

        assert QuoteExpirationService.sweep_expired_quotes() == 3

        for quote in overdue_quotes:
            quote.refresh_from_db()
            assert quote.status == QuoteStatus.EXPIRED
            assert quote.counter_offer is None
            assert quote.negotiation_history.count() == 0

        fresh.refresh_from_db()
        accepted.refresh_from_db()
        assert fresh.status == QuoteStatus.PENDING
        assert accepted.status == QuoteStatus.ACCEPTED

    def test_second_run_expires_nothing(self, overdue_quotes):
        assert QuoteExpirationService.sweep_expired_quotes() == 3
        assert QuoteExpirationService.sweep_expired_quotes() == 0

    def test_now_override(self, make_quote):
        quote = make_quote(expires_in=timedelta(days=2))

        assert QuoteExpirationService.sweep_expired_quotes(now=timezone.now()) == 0
        assert (
            QuoteExpirationService.sweep_expired_quotes(
                now=timezone.now() + timedelta(days=3)
            )
            == 1
        )
        quote.refresh_from_db()
        assert quote.status == QuoteStatus.EXPIRED

    def test_small_batches_cover_everything(self, overdue_quotes):
        assert QuoteExpirationService.sweep_expired_quotes(batch_size=1) == 3

    def test_rows_moved_elsewhere_are_not_counted(self, overdue_quotes):
        # Another sweeper got there first
        QuoteStore.expire_quotes([overdue_quotes[0].id], timezone.now())

        assert QuoteStore.expire_quotes([q.id for q in overdue_quotes], timezone.now()) == 2

    def test_failed_batch_is_skipped(self, overdue_quotes):
        real_expire = QuoteStore.expire_quotes
        calls = []

        def flaky(quote_ids, now):
            calls.append(list(quote_ids))
            if len(calls) == 1:
                raise DatabaseError("deadlock detected")
            return real_expire(quote_ids, now)

        with patch.object(QuoteStore, "expire_quotes", side_effect=flaky):
            expired = QuoteExpirationService.sweep_expired_quotes(batch_size=1)

        assert expired == 2
        skipped = overdue_quotes[2]
        skipped.refresh_from_db()
        assert skipped.status == QuoteStatus.PENDING
        assert calls[0] == [skipped.id]

    def test_periodic_task(self, overdue_quotes):
        result = expire_overdue_quotes.apply().get()
        assert result == {"expired_count": 3}

    def test_management_command(self, make_quote):
        make_quote(expires_in=timedelta(days=1))
        out = StringIO()

        later = (timezone.now() + timedelta(days=2)).isoformat()
        call_command("expire_quotes", "--now", later, stdout=out)

        assert "Expired 1 quotes" in out.getvalue()
