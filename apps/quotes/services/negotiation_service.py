import logging
from datetime import timedelta
from typing import List, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.quotes.actions import Accept, Counter, Message, QuoteResponse, Reject
from apps.quotes.exceptions import (
    InvalidQuoteState,
    QuoteExpired,
    QuoteForbidden,
    QuoteValidationError,
    StoreUnavailable,
)
from apps.quotes.gateways import ProductGateway, UserGateway
from apps.quotes.models import (
    ACTIVE_STATUSES,
    NegotiationAction,
    NegotiationActor,
    NegotiationEntry,
    QuoteRequest,
    QuoteStatus,
)
from apps.quotes.services.history_store import NegotiationHistoryStore
from apps.quotes.services.quote_events import QuoteEvent, QuoteEventPublisher
from apps.quotes.services.quote_store import QuotePage, QuoteQuery, QuoteStore
from apps.quotes.services.stats_service import (
    SCOPE_ARTISAN,
    SCOPE_CUSTOMER,
    SCOPE_GLOBAL,
    SCOPE_PARTICIPANT,
    QuoteStatsService,
)
from apps.quotes.validators import QuoteValidationService

logger = logging.getLogger("quotes_performance")

ACTIVE_STATE_NAMES = [str(s) for s in ACTIVE_STATUSES]


def _elapsed_ms(start_time) -> float:
    return (timezone.now() - start_time).total_seconds() * 1000


class QuoteNegotiationService:
    """
    Owns the quote lifecycle: creation, artisan responses, messages,
    cancellation, completion and the read side.

    Every mutation reads the quote under its row lock, writes the new state
    and its history entry in one transaction, and only then publishes the
    matching event. Overdue active quotes are moved to EXPIRED the first
    time a party acts on them.
    """

    quote_store = QuoteStore
    history_store = NegotiationHistoryStore
    products = ProductGateway
    users = UserGateway
    events = QuoteEventPublisher
    stats = QuoteStatsService

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    @classmethod
    def create_quote_request(
        cls,
        customer_id,
        product_id,
        requested_price=None,
        specifications: str = "",
        message: str = "",
        expires_in_days: Optional[int] = None,
        now=None,
    ) -> QuoteRequest:
        start_time = timezone.now()
        now = now or start_time

        specifications = specifications or ""
        message = message or ""
        QuoteValidationService.validate_specifications(specifications)
        QuoteValidationService.validate_message("message", message)
        days = QuoteValidationService.resolve_expires_in_days(expires_in_days)

        product = cls.products.get_product(product_id)
        cls.users.get_user(customer_id)
        QuoteValidationService.validate_quotable_product(product, customer_id)
        QuoteValidationService.validate_requested_price(product, requested_price)

        expires_at = now + timedelta(days=days)
        try:
            with transaction.atomic():
                quote = cls.quote_store.create(
                    product_id=product.id,
                    customer_id=customer_id,
                    artisan_id=product.seller_id,
                    requested_price=requested_price,
                    specifications=specifications,
                    customer_message=message,
                    status=QuoteStatus.PENDING,
                    expires_at=expires_at,
                )
                cls.history_store.append(
                    quote,
                    action=NegotiationAction.REQUEST,
                    actor=NegotiationActor.CUSTOMER,
                    new_price=requested_price,
                    message=message,
                    metadata={
                        "specifications": specifications,
                        "expires_at": expires_at.isoformat(),
                    },
                    timestamp=now,
                )
                cls.events.publish(QuoteEvent.REQUESTED, quote, actor_id=customer_id)
        except DatabaseError as exc:
            cls._store_failure("create quote", exc)

        cls.stats.invalidate_for_quote(quote)
        logger.info(
            f"Quote {quote.id} requested by {customer_id} on product {product.id} "
            f"in {_elapsed_ms(start_time):.2f}ms"
        )
        return quote

    @classmethod
    def respond_to_quote(
        cls, quote_id, artisan_id, response: QuoteResponse, now=None
    ) -> QuoteRequest:
        """
        Apply the assigned artisan's response to an active quote.

        Accept fixes the final price (counter offer, else requested price,
        else the product's live price). Reject closes the negotiation.
        Counter records a new amount and keeps the negotiation open.
        Message only records a note.
        """
        if isinstance(response, Message):
            return cls.add_message(
                quote_id, artisan_id, response.text, now=now, artisan_only=True
            )

        start_time = timezone.now()
        now = now or start_time
        QuoteValidationService.validate_message("message", response.message)

        try:
            with transaction.atomic():
                quote = cls.quote_store.get_for_update(quote_id)
                QuoteValidationService.ensure_artisan(quote, artisan_id)
                expired = cls._expire_if_overdue(quote, now)
                if not expired:
                    cls._ensure_active(quote, response.action)
                    quote, event = cls._apply_response(quote, response, now)
                    cls.events.publish(event, quote, actor_id=artisan_id)
        except DatabaseError as exc:
            cls._store_failure(f"respond to quote {quote_id}", exc)

        cls.stats.invalidate_for_quote(quote)
        if expired:
            cls._raise_expired(quote)

        logger.info(
            f"Quote {quote.id} {response.action} by artisan {artisan_id} "
            f"in {_elapsed_ms(start_time):.2f}ms"
        )
        return quote

    @classmethod
    def add_message(
        cls, quote_id, user_id, text: str, now=None, artisan_only: bool = False
    ) -> QuoteRequest:
        """
        Record a note from either party; status and prices are untouched.

        With ``artisan_only`` the sender must be the assigned artisan, which is
        how a Message response arrives through ``respond_to_quote``.
        """
        start_time = timezone.now()
        now = now or start_time
        text = (text or "").strip()
        if not text:
            raise QuoteValidationError(
                "Message text cannot be empty.", rule="message_required"
            )
        QuoteValidationService.validate_message("message", text)

        try:
            with transaction.atomic():
                quote = cls.quote_store.get_for_update(quote_id)
                if artisan_only:
                    QuoteValidationService.ensure_artisan(quote, user_id)
                role = QuoteValidationService.ensure_party(quote, user_id)
                expired = cls._expire_if_overdue(quote, now)
                if not expired:
                    cls._ensure_active(quote, NegotiationAction.MESSAGE)
                    field = (
                        "customer_message"
                        if role == NegotiationActor.CUSTOMER
                        else "artisan_message"
                    )
                    quote = cls.quote_store.update_status(
                        quote.id, quote.status, now=now, **{field: text}
                    )
                    cls.history_store.append(
                        quote,
                        action=NegotiationAction.MESSAGE,
                        actor=role,
                        message=text,
                        timestamp=now,
                    )
                    cls.events.publish(QuoteEvent.MESSAGE, quote, actor_id=user_id)
        except DatabaseError as exc:
            cls._store_failure(f"add message to quote {quote_id}", exc)

        if expired:
            cls.stats.invalidate_for_quote(quote)
            cls._raise_expired(quote)

        logger.info(
            f"Message added to quote {quote.id} by {role} "
            f"in {_elapsed_ms(start_time):.2f}ms"
        )
        return quote

    @classmethod
    def cancel_quote(cls, quote_id, user_id, reason: str = "", now=None) -> QuoteRequest:
        """Withdraw an active quote. Either party may cancel."""
        start_time = timezone.now()
        now = now or start_time
        reason = reason or ""
        QuoteValidationService.validate_message("reason", reason)

        try:
            with transaction.atomic():
                quote = cls.quote_store.get_for_update(quote_id)
                role = QuoteValidationService.ensure_party(quote, user_id)
                expired = cls._expire_if_overdue(quote, now)
                if not expired:
                    cls._ensure_active(quote, "cancel")
                    previous = quote.current_offer
                    old_status = quote.status
                    quote = cls.quote_store.update_status(
                        quote.id, QuoteStatus.REJECTED, now=now, counter_offer=None
                    )
                    cls.history_store.append(
                        quote,
                        action=NegotiationAction.REJECT,
                        actor=role,
                        previous_price=previous,
                        message=reason,
                        metadata={
                            "old_status": old_status,
                            "new_status": QuoteStatus.REJECTED,
                            "cancelled": True,
                            "reason": reason,
                        },
                        timestamp=now,
                    )
                    cls.events.publish(QuoteEvent.CANCELLED, quote, actor_id=user_id)
        except DatabaseError as exc:
            cls._store_failure(f"cancel quote {quote_id}", exc)

        cls.stats.invalidate_for_quote(quote)
        if expired:
            cls._raise_expired(quote)

        logger.info(
            f"Quote {quote.id} cancelled by {role} in {_elapsed_ms(start_time):.2f}ms"
        )
        return quote

    @classmethod
    def complete_quote(cls, quote_id, now=None) -> QuoteRequest:
        """Mark an accepted quote as converted into an order."""
        start_time = timezone.now()
        now = now or start_time
        try:
            with transaction.atomic():
                quote = cls.quote_store.get_for_update(quote_id)
                if quote.status != QuoteStatus.ACCEPTED:
                    raise InvalidQuoteState(
                        "Only accepted quotes can be completed.",
                        rule="complete_requires_accepted",
                        current_state=quote.status,
                        expected_states=[QuoteStatus.ACCEPTED.value],
                    )
                quote = cls.quote_store.update_status(
                    quote.id, QuoteStatus.COMPLETED, now=now
                )
                cls.events.publish(QuoteEvent.COMPLETED, quote)
        except DatabaseError as exc:
            cls._store_failure(f"complete quote {quote_id}", exc)

        cls.stats.invalidate_for_quote(quote)
        logger.info(f"Quote {quote.id} completed in {_elapsed_ms(start_time):.2f}ms")
        return quote

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @classmethod
    def get_quote(cls, quote_id, user=None) -> QuoteRequest:
        """Fetch a quote; when a user is given they must be a party or staff."""
        quote = cls._read(lambda: cls.quote_store.get_by_id(quote_id))
        if user is not None:
            cls._ensure_visible(quote, user)
        return quote

    @classmethod
    def get_negotiation_history(cls, quote_id, user=None) -> List[NegotiationEntry]:
        quote = cls.get_quote(quote_id, user=user)
        return cls._read(lambda: cls.history_store.list_by_quote(quote.id))

    @classmethod
    def list_for_customer(cls, customer_id, query: Optional[QuoteQuery] = None) -> QuotePage:
        query = query or QuoteQuery()
        query.customer_id = customer_id
        return cls._list(query)

    @classmethod
    def list_for_artisan(cls, artisan_id, query: Optional[QuoteQuery] = None) -> QuotePage:
        query = query or QuoteQuery()
        query.artisan_id = artisan_id
        return cls._list(query)

    @classmethod
    def list_for_participant(cls, user_id, query: Optional[QuoteQuery] = None) -> QuotePage:
        query = query or QuoteQuery()
        query.participant_id = user_id
        return cls._list(query)

    @classmethod
    def list_all(cls, query: Optional[QuoteQuery] = None) -> QuotePage:
        return cls._list(query or QuoteQuery())

    @classmethod
    def list_quotes(cls, user, query: Optional[QuoteQuery] = None) -> QuotePage:
        """Staff see every quote; anyone else sees the quotes they are a party to."""
        query = query or QuoteQuery()
        if user.is_staff:
            return cls.list_all(query)
        return cls.list_for_participant(user.id, query)

    @classmethod
    def get_stats(cls, user_id=None, role: Optional[str] = None) -> dict:
        if user_id is None:
            scope = SCOPE_GLOBAL
        elif role == NegotiationActor.CUSTOMER:
            scope = SCOPE_CUSTOMER
        elif role == NegotiationActor.ARTISAN:
            scope = SCOPE_ARTISAN
        else:
            scope = SCOPE_PARTICIPANT
        return cls._read(lambda: cls.stats.get_stats(scope=scope, user_id=user_id))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @classmethod
    def _apply_response(cls, quote, response, now):
        old_status = quote.status
        previous = quote.current_offer
        artisan_message = response.message or quote.artisan_message

        if isinstance(response, Accept):
            final_price = previous
            if final_price is None:
                final_price = cls.products.get_product(quote.product_id).price
            quote = cls.quote_store.update_status(
                quote.id,
                QuoteStatus.ACCEPTED,
                now=now,
                final_price=final_price,
                counter_offer=None,
                artisan_message=artisan_message,
            )
            new_price, event = final_price, QuoteEvent.ACCEPTED
        elif isinstance(response, Reject):
            quote = cls.quote_store.update_status(
                quote.id,
                QuoteStatus.REJECTED,
                now=now,
                counter_offer=None,
                artisan_message=artisan_message,
            )
            new_price, event = None, QuoteEvent.RESPONDED
        elif isinstance(response, Counter):
            quote = cls.quote_store.update_status(
                quote.id,
                QuoteStatus.COUNTER_OFFERED,
                now=now,
                counter_offer=response.amount,
                artisan_message=artisan_message,
            )
            new_price, event = response.amount, QuoteEvent.RESPONDED
        else:
            raise QuoteValidationError(
                "Unsupported response type.", rule="response_action"
            )

        cls.history_store.append(
            quote,
            action=response.action,
            actor=NegotiationActor.ARTISAN,
            previous_price=previous,
            new_price=new_price,
            message=response.message,
            metadata={"old_status": old_status, "new_status": quote.status},
            timestamp=now,
        )
        return quote, event

    @classmethod
    def _expire_if_overdue(cls, quote, now) -> bool:
        """Move an active quote past its deadline to EXPIRED. True when it did."""
        if not quote.is_active or not quote.is_past_deadline(now):
            return False
        cls.quote_store.expire_quotes([quote.id], now)
        cls.events.publish(QuoteEvent.EXPIRED, quote)
        logger.info(f"Quote {quote.id} expired on access")
        return True

    @staticmethod
    def _ensure_active(quote, action):
        if quote.status not in ACTIVE_STATUSES:
            raise InvalidQuoteState(
                f"Cannot {action} a quote that is {quote.status}.",
                rule="quote_must_be_active",
                current_state=quote.status,
                expected_states=ACTIVE_STATE_NAMES,
            )

    @staticmethod
    def _ensure_visible(quote, user):
        if getattr(user, "is_staff", False):
            return
        if quote.party_role(user.id) is None:
            raise QuoteForbidden(
                "You do not have access to this quote.", rule="quote_party_only"
            )

    @staticmethod
    def _raise_expired(quote):
        raise QuoteExpired(
            "This quote has expired.",
            rule="quote_not_expired",
            current_state=QuoteStatus.EXPIRED.value,
            expected_states=ACTIVE_STATE_NAMES,
        )

    @classmethod
    def _list(cls, query: QuoteQuery) -> QuotePage:
        start_time = timezone.now()
        page = cls._read(lambda: cls.quote_store.query(query))
        logger.info(
            f"Listed {len(page.results)} of {page.total} quotes "
            f"in {_elapsed_ms(start_time):.2f}ms"
        )
        return page

    @classmethod
    def _read(cls, fn):
        try:
            return fn()
        except DatabaseError as exc:
            cls._store_failure("read quotes", exc)

    @staticmethod
    def _store_failure(operation: str, exc: Exception):
        logger.error(f"Quote store failure while trying to {operation}: {exc}")
        raise StoreUnavailable(rule="store_available") from exc
