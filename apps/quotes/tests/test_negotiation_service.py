import threading
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError, connection, connections
from django.test import override_settings
from django.utils import timezone

from apps.products.product_base.models import Product
from apps.quotes.actions import Accept, Counter, Message, Reject
from apps.quotes.exceptions import (
    DuplicateActiveQuote,
    InvalidQuoteState,
    QuoteExpired,
    QuoteForbidden,
    QuoteNotFound,
    QuoteValidationError,
    StoreUnavailable,
)
from apps.quotes.models import NegotiationAction, NegotiationActor, QuoteStatus
from apps.quotes.services.history_store import NegotiationHistoryStore
from apps.quotes.services.negotiation_service import QuoteNegotiationService
from apps.quotes.services.quote_store import QuoteQuery, QuoteStore

Service = QuoteNegotiationService


@pytest.fixture
def pending_quote(customer, product):
    return Service.create_quote_request(
        customer_id=customer.id,
        product_id=product.id,
        requested_price=Decimal("60.00"),
        specifications="Engrave initials",
        message="Could you do 60?",
        expires_in_days=3,
    )


@pytest.mark.django_db
class TestCreateQuoteRequest:
    def test_pending_quote_with_request_entry(self, customer, artisan, product):
        before = timezone.now()
        quote = Service.create_quote_request(
            customer_id=customer.id,
            product_id=product.id,
            requested_price=Decimal("60.00"),
            expires_in_days=3,
        )

        assert quote.status == QuoteStatus.PENDING
        assert quote.artisan_id == artisan.id
        assert quote.counter_offer is None
        assert quote.final_price is None
        expected = before + timedelta(days=3)
        assert abs((quote.expires_at - expected).total_seconds()) < 5

        history = Service.get_negotiation_history(quote.id)
        assert len(history) == 1
        assert history[0].action == NegotiationAction.REQUEST
        assert history[0].actor == NegotiationActor.CUSTOMER
        assert history[0].new_price == Decimal("60.00")

    def test_default_expiry_is_seven_days(self, customer, product):
        now = timezone.now()
        quote = Service.create_quote_request(
            customer_id=customer.id, product_id=product.id, now=now
        )
        assert quote.expires_at == now + timedelta(days=7)

    @override_settings(QUOTE_SETTINGS={"DEFAULT_EXPIRES_IN_DAYS": 14})
    def test_default_expiry_is_configurable(self, customer, product):
        now = timezone.now()
        quote = Service.create_quote_request(
            customer_id=customer.id, product_id=product.id, now=now
        )
        assert quote.expires_at == now + timedelta(days=14)

    @pytest.mark.parametrize("days", [0, 31, -1])
    def test_expiry_out_of_bounds(self, customer, product, days):
        with pytest.raises(QuoteValidationError) as exc:
            Service.create_quote_request(
                customer_id=customer.id, product_id=product.id, expires_in_days=days
            )
        assert exc.value.rule == "expires_in_days_range"

    @pytest.mark.parametrize("days", [True, False, 2.5, "3"])
    def test_expiry_must_be_whole_days(self, customer, product, days):
        with pytest.raises(QuoteValidationError):
            Service.create_quote_request(
                customer_id=customer.id, product_id=product.id, expires_in_days=days
            )

    def test_requested_price_is_optional(self, customer, product):
        quote = Service.create_quote_request(
            customer_id=customer.id, product_id=product.id
        )
        assert quote.requested_price is None

    def test_price_floor_is_half_the_current_price(self, customer, product):
        with pytest.raises(QuoteValidationError) as exc:
            Service.create_quote_request(
                customer_id=customer.id,
                product_id=product.id,
                requested_price=Decimal("49.99"),
            )
        assert exc.value.rule == "requested_price_floor"

        quote = Service.create_quote_request(
            customer_id=customer.id,
            product_id=product.id,
            requested_price=Decimal("50.00"),
        )
        assert quote.requested_price == Decimal("50.00")

    def test_price_floor_uses_discount_price(self, customer, product):
        product.discount_price = Decimal("80.00")
        product.save()

        with pytest.raises(QuoteValidationError):
            Service.create_quote_request(
                customer_id=customer.id,
                product_id=product.id,
                requested_price=Decimal("39.99"),
            )
        quote = Service.create_quote_request(
            customer_id=customer.id,
            product_id=product.id,
            requested_price=Decimal("40.00"),
        )
        assert quote.status == QuoteStatus.PENDING

    def test_requested_price_must_be_positive(self, customer, product):
        with pytest.raises(QuoteValidationError) as exc:
            Service.create_quote_request(
                customer_id=customer.id,
                product_id=product.id,
                requested_price=Decimal("0"),
            )
        assert exc.value.rule == "requested_price_positive"

    def test_product_must_be_customizable(self, customer, product):
        product.is_customizable = False
        product.save()

        with pytest.raises(QuoteValidationError) as exc:
            Service.create_quote_request(customer_id=customer.id, product_id=product.id)
        assert exc.value.rule == "product_customizable"

    def test_product_must_be_published(self, customer, product):
        product.status = Product.ProductsStatus.DRAFT
        product.save()

        with pytest.raises(QuoteValidationError) as exc:
            Service.create_quote_request(customer_id=customer.id, product_id=product.id)
        assert exc.value.rule == "product_published"
        assert exc.value.current_state == "draft"

    def test_artisan_cannot_quote_own_product(self, artisan, product):
        with pytest.raises(QuoteValidationError) as exc:
            Service.create_quote_request(customer_id=artisan.id, product_id=product.id)
        assert exc.value.rule == "no_self_quote"

    def test_unknown_product(self, customer):
        with pytest.raises(QuoteNotFound):
            Service.create_quote_request(
                customer_id=customer.id,
                product_id="00000000-0000-0000-0000-000000000000",
            )

    def test_text_length_limits(self, customer, product):
        with pytest.raises(QuoteValidationError):
            Service.create_quote_request(
                customer_id=customer.id,
                product_id=product.id,
                specifications="x" * 2001,
            )
        with pytest.raises(QuoteValidationError):
            Service.create_quote_request(
                customer_id=customer.id, product_id=product.id, message="x" * 1001
            )

    def test_second_active_quote_rejected(self, customer, product, pending_quote):
        with pytest.raises(DuplicateActiveQuote):
            Service.create_quote_request(customer_id=customer.id, product_id=product.id)

    def test_concurrent_duplicate_caught_by_constraint(self, customer, product):
        """
        The losing request of a race is reproduced by skipping the pre-check,
        since SQLite cannot run two writers side by side. The threaded
        variant below covers the real race on PostgreSQL.
        """
        Service.create_quote_request(customer_id=customer.id, product_id=product.id)

        # Simulate a second request that passed the pre-check before the
        # first one committed
        with patch.object(QuoteStore, "find_active", return_value=None):
            with pytest.raises(DuplicateActiveQuote):
                Service.create_quote_request(
                    customer_id=customer.id, product_id=product.id
                )

        assert QuoteStore.find_active(product.id, customer.id) is not None

    def test_new_quote_allowed_after_rejection(self, customer, artisan, product, pending_quote):
        Service.respond_to_quote(pending_quote.id, artisan.id, Reject())

        quote = Service.create_quote_request(customer_id=customer.id, product_id=product.id)
        assert quote.id != pending_quote.id


@pytest.mark.django_db
class TestRespondToQuote:
    def test_counter_then_accept(self, artisan, pending_quote):
        quote = Service.respond_to_quote(
            pending_quote.id, artisan.id, Counter(amount=Decimal("85.00"), message="Extra work")
        )
        assert quote.status == QuoteStatus.COUNTER_OFFERED
        assert quote.counter_offer == Decimal("85.00")
        assert quote.artisan_message == "Extra work"
        assert quote.final_price is None

        quote = Service.respond_to_quote(pending_quote.id, artisan.id, Accept())
        assert quote.status == QuoteStatus.ACCEPTED
        assert quote.final_price == Decimal("85.00")
        assert quote.counter_offer is None

        history = Service.get_negotiation_history(quote.id)
        assert [e.action for e in history] == [
            NegotiationAction.REQUEST,
            NegotiationAction.COUNTER,
            NegotiationAction.ACCEPT,
        ]
        assert history[1].previous_price == Decimal("60.00")
        assert history[1].new_price == Decimal("85.00")
        assert history[2].new_price == Decimal("85.00")

    def test_accept_uses_requested_price(self, artisan, pending_quote):
        quote = Service.respond_to_quote(pending_quote.id, artisan.id, Accept())
        assert quote.final_price == Decimal("60.00")

    def test_accept_falls_back_to_product_price(self, customer, artisan, product):
        quote = Service.create_quote_request(customer_id=customer.id, product_id=product.id)

        quote = Service.respond_to_quote(quote.id, artisan.id, Accept())
        assert quote.final_price == Decimal("100.00")

    def test_reject(self, artisan, pending_quote):
        quote = Service.respond_to_quote(
            pending_quote.id, artisan.id, Reject(message="Not possible")
        )
        assert quote.status == QuoteStatus.REJECTED
        assert quote.final_price is None

        history = Service.get_negotiation_history(quote.id)
        assert history[-1].action == NegotiationAction.REJECT
        assert history[-1].metadata["old_status"] == "pending"
        assert history[-1].metadata["new_status"] == "rejected"

    def test_second_counter_replaces_first(self, artisan, pending_quote):
        Service.respond_to_quote(pending_quote.id, artisan.id, Counter(amount=Decimal("90")))
        quote = Service.respond_to_quote(
            pending_quote.id, artisan.id, Counter(amount=Decimal("80"))
        )

        assert quote.status == QuoteStatus.COUNTER_OFFERED
        assert quote.counter_offer == Decimal("80")
        assert quote.expires_at == pending_quote.expires_at
        history = Service.get_negotiation_history(quote.id)
        assert history[-1].previous_price == Decimal("90")

    def test_only_assigned_artisan_may_respond(self, customer, other_customer, pending_quote):
        for user in (customer, other_customer):
            with pytest.raises(QuoteForbidden):
                Service.respond_to_quote(pending_quote.id, user.id, Accept())

        assert Service.get_quote(pending_quote.id).status == QuoteStatus.PENDING

    def test_message_response_keeps_status(self, artisan, pending_quote):
        quote = Service.respond_to_quote(
            pending_quote.id, artisan.id, Message(text="Which wood?")
        )
        assert quote.status == QuoteStatus.PENDING
        assert quote.artisan_message == "Which wood?"

    def test_customer_cannot_message_through_respond(self, customer, pending_quote):
        with pytest.raises(QuoteForbidden) as exc:
            Service.respond_to_quote(
                pending_quote.id, customer.id, Message(text="Any update?")
            )

        assert exc.value.rule == "assigned_artisan_only"
        history = Service.get_negotiation_history(pending_quote.id)
        assert [entry.action for entry in history] == [NegotiationAction.REQUEST]
        assert Service.get_quote(pending_quote.id).customer_message == "Could you do 60?"

    @pytest.mark.parametrize(
        "terminal",
        [QuoteStatus.ACCEPTED, QuoteStatus.REJECTED, QuoteStatus.EXPIRED],
    )
    def test_terminal_quotes_are_closed(self, customer, artisan, make_quote, terminal):
        quote = make_quote(status=terminal)

        attempts = [
            lambda: Service.respond_to_quote(quote.id, artisan.id, Accept()),
            lambda: Service.respond_to_quote(quote.id, artisan.id, Reject()),
            lambda: Service.respond_to_quote(
                quote.id, artisan.id, Counter(amount=Decimal("70"))
            ),
            lambda: Service.add_message(quote.id, customer.id, "Hello?"),
            lambda: Service.cancel_quote(quote.id, customer.id),
        ]
        for attempt in attempts:
            with pytest.raises(InvalidQuoteState) as exc:
                attempt()
            assert exc.value.current_state == terminal
            assert set(exc.value.expected_states) == {"pending", "counter_offered"}

        quote.refresh_from_db()
        assert quote.status == terminal
        assert quote.negotiation_history.count() == 0

    def test_overdue_quote_expires_on_response(self, artisan, make_quote):
        quote = make_quote(
            requested_price=Decimal("60.00"), expires_in=-timedelta(minutes=1)
        )

        with pytest.raises(QuoteExpired):
            Service.respond_to_quote(quote.id, artisan.id, Accept())

        quote = Service.get_quote(quote.id)
        assert quote.status == QuoteStatus.EXPIRED
        assert quote.final_price is None
        assert quote.negotiation_history.count() == 0

    def test_expiry_checked_at_time_of_mutation(self, artisan, pending_quote):
        later = pending_quote.expires_at + timedelta(seconds=1)

        with pytest.raises(QuoteExpired):
            Service.respond_to_quote(
                pending_quote.id, artisan.id, Counter(amount=Decimal("70")), now=later
            )
        assert Service.get_quote(pending_quote.id).status == QuoteStatus.EXPIRED

    def test_non_party_cannot_expire_a_quote(self, other_customer, make_quote):
        quote = make_quote(expires_in=-timedelta(minutes=1))

        with pytest.raises(QuoteForbidden):
            Service.respond_to_quote(quote.id, other_customer.id, Accept())
        assert Service.get_quote(quote.id).status == QuoteStatus.PENDING

    def test_unknown_quote(self, artisan):
        with pytest.raises(QuoteNotFound):
            Service.respond_to_quote(
                "00000000-0000-0000-0000-000000000000", artisan.id, Accept()
            )

    def test_history_failure_rolls_back_status(self, artisan, pending_quote):
        with patch.object(
            NegotiationHistoryStore, "append", side_effect=DatabaseError("disk full")
        ):
            with pytest.raises(StoreUnavailable):
                Service.respond_to_quote(pending_quote.id, artisan.id, Accept())

        quote = Service.get_quote(pending_quote.id)
        assert quote.status == QuoteStatus.PENDING
        assert quote.final_price is None
        assert len(Service.get_negotiation_history(quote.id)) == 1


@pytest.mark.django_db
class TestMessagesAndCancellation:
    def test_customer_message_mirrors_latest_note(self, customer, pending_quote):
        quote = Service.add_message(pending_quote.id, customer.id, "  Any update?  ")

        assert quote.customer_message == "Any update?"
        assert quote.status == QuoteStatus.PENDING
        entry = Service.get_negotiation_history(quote.id)[-1]
        assert entry.action == NegotiationAction.MESSAGE
        assert entry.actor == NegotiationActor.CUSTOMER
        assert entry.new_price is None

    def test_message_during_counter_offer(self, customer, artisan, pending_quote):
        Service.respond_to_quote(pending_quote.id, artisan.id, Counter(amount=Decimal("75")))

        quote = Service.add_message(pending_quote.id, customer.id, "Let me think")
        assert quote.status == QuoteStatus.COUNTER_OFFERED
        assert quote.counter_offer == Decimal("75")

    def test_empty_message_rejected(self, customer, pending_quote):
        with pytest.raises(QuoteValidationError):
            Service.add_message(pending_quote.id, customer.id, "   ")

    def test_outsider_cannot_message(self, other_customer, pending_quote):
        with pytest.raises(QuoteForbidden):
            Service.add_message(pending_quote.id, other_customer.id, "Hi")

    def test_customer_cancels(self, customer, pending_quote):
        quote = Service.cancel_quote(pending_quote.id, customer.id, reason="Changed my mind")

        assert quote.status == QuoteStatus.REJECTED
        entry = Service.get_negotiation_history(quote.id)[-1]
        assert entry.action == NegotiationAction.REJECT
        assert entry.actor == NegotiationActor.CUSTOMER
        assert entry.message == "Changed my mind"
        assert entry.metadata["cancelled"] is True

    def test_artisan_cancels_counter_offer(self, artisan, pending_quote):
        Service.respond_to_quote(pending_quote.id, artisan.id, Counter(amount=Decimal("75")))

        quote = Service.cancel_quote(pending_quote.id, artisan.id)
        assert quote.status == QuoteStatus.REJECTED
        assert quote.counter_offer is None

    def test_outsider_cannot_cancel(self, other_customer, pending_quote):
        with pytest.raises(QuoteForbidden):
            Service.cancel_quote(pending_quote.id, other_customer.id)


@pytest.mark.django_db
class TestCompleteQuote:
    def test_accepted_quote_completes(self, artisan, pending_quote):
        Service.respond_to_quote(pending_quote.id, artisan.id, Accept())

        quote = Service.complete_quote(pending_quote.id)
        assert quote.status == QuoteStatus.COMPLETED
        assert quote.final_price == Decimal("60.00")
        assert len(Service.get_negotiation_history(quote.id)) == 2

    def test_only_accepted_quotes_complete(self, pending_quote):
        with pytest.raises(InvalidQuoteState) as exc:
            Service.complete_quote(pending_quote.id)
        assert exc.value.expected_states == ["accepted"]


@pytest.mark.django_db
class TestQueries:
    def test_get_quote_visibility(self, customer, artisan, staff_user, other_customer, pending_quote):
        for user in (customer, artisan, staff_user):
            assert Service.get_quote(pending_quote.id, user=user).id == pending_quote.id

        with pytest.raises(QuoteForbidden):
            Service.get_quote(pending_quote.id, user=other_customer)

    def test_get_quote_with_malformed_id(self):
        with pytest.raises(QuoteNotFound):
            Service.get_quote("not-a-uuid")

    def test_history_is_a_fresh_copy(self, pending_quote):
        history = Service.get_negotiation_history(pending_quote.id)
        history.clear()

        assert len(Service.get_negotiation_history(pending_quote.id)) == 1

    def test_lists_by_role(self, customer, artisan, other_customer, product, second_product, pending_quote):
        Service.create_quote_request(customer_id=other_customer.id, product_id=second_product.id)

        assert Service.list_for_customer(customer.id).total == 1
        assert Service.list_for_artisan(artisan.id).total == 2
        assert Service.list_for_participant(other_customer.id).total == 1

    def test_list_filters_and_pagination(self, customer, artisan, other_customer, product, second_product):
        first = Service.create_quote_request(customer_id=customer.id, product_id=product.id)
        Service.create_quote_request(customer_id=customer.id, product_id=second_product.id)
        Service.create_quote_request(customer_id=other_customer.id, product_id=product.id)
        Service.respond_to_quote(first.id, artisan.id, Reject())

        page = Service.list_for_artisan(
            artisan.id, QuoteQuery(statuses=["pending"], page_size=1, page=2)
        )
        assert page.total == 2
        assert page.total_pages == 2
        assert page.page == 2
        assert len(page.results) == 1

        page = Service.list_for_artisan(artisan.id, QuoteQuery(product_id=product.id))
        assert page.total == 2

    def test_staff_list_everything(self, staff_user, customer, other_customer, product):
        Service.create_quote_request(customer_id=customer.id, product_id=product.id)
        Service.create_quote_request(customer_id=other_customer.id, product_id=product.id)

        assert Service.list_quotes(staff_user).total == 2
        assert Service.list_quotes(customer).total == 1


@pytest.mark.skipif(
    connection.vendor != "postgresql",
    reason="parallel writers need a PostgreSQL test database",
)
@pytest.mark.django_db(transaction=True)
class TestParallelQuoteRequests:
    def test_only_one_active_quote_survives(self, customer, product):
        barrier = threading.Barrier(2)
        outcomes = []

        def request_quote():
            try:
                barrier.wait(timeout=5)
                Service.create_quote_request(
                    customer_id=customer.id, product_id=product.id
                )
                outcomes.append("created")
            except DuplicateActiveQuote:
                outcomes.append("duplicate")
            finally:
                connections.close_all()

        threads = [threading.Thread(target=request_quote) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(outcomes) == ["created", "duplicate"]
        assert QuoteStore.find_active(product.id, customer.id) is not None
