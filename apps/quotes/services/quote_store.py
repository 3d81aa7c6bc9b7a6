import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.paginator import EmptyPage, Paginator
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.quotes.exceptions import (
    DuplicateActiveQuote,
    QuoteNotFound,
    QuoteValidationError,
)
from apps.quotes.models import ACTIVE_STATUSES, QuoteRequest, QuoteStatus
from apps.quotes.utils.filters import QuoteFilter

logger = logging.getLogger("quotes_performance")

MAX_PAGE_SIZE = 100


@dataclass
class QuoteQuery:
    """Filters and pagination for quote listings."""

    customer_id: Optional[object] = None
    artisan_id: Optional[object] = None
    participant_id: Optional[object] = None
    product_id: Optional[object] = None
    statuses: Sequence[str] = field(default_factory=list)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    ordering: str = "-created_at"
    page: int = 1
    page_size: int = 20

    def as_filter_data(self) -> dict:
        data = {"ordering": self.ordering or "-created_at"}
        if self.customer_id:
            data["customer"] = str(self.customer_id)
        if self.artisan_id:
            data["artisan"] = str(self.artisan_id)
        if self.participant_id:
            data["participant"] = str(self.participant_id)
        if self.product_id:
            data["product"] = str(self.product_id)
        if self.statuses:
            data["status"] = [str(s) for s in self.statuses]
        if self.date_from:
            data["date_from"] = self.date_from.isoformat()
        if self.date_to:
            data["date_to"] = self.date_to.isoformat()
        return data


@dataclass
class QuotePage:
    results: List[QuoteRequest]
    total: int
    page: int
    page_size: int
    total_pages: int


class QuoteStore:
    """
    Storage of the current state of every quote request.

    Status changes are single UPDATE statements so callers holding the row
    lock never write a stale copy of the row back.
    """

    @staticmethod
    def _base_queryset():
        return QuoteRequest.objects.select_related("product", "customer", "artisan")

    @staticmethod
    def find_active(product_id, customer_id) -> Optional[QuoteRequest]:
        return QuoteRequest.objects.filter(
            product_id=product_id,
            customer_id=customer_id,
            status__in=ACTIVE_STATUSES,
        ).first()

    @classmethod
    def create(cls, **fields) -> QuoteRequest:
        """
        Insert a new quote. The partial unique constraint backs up the
        pre-check when two requests race for the same product and customer.
        """
        existing = cls.find_active(fields.get("product_id"), fields.get("customer_id"))
        if existing is not None:
            raise DuplicateActiveQuote(
                "You already have an active quote for this product.",
                rule="one_active_quote_per_product",
                current_state=existing.status,
            )
        try:
            with transaction.atomic():
                return QuoteRequest.objects.create(**fields)
        except IntegrityError as exc:
            if "check constraint" in str(exc).lower():
                logger.info(f"Quote insert rejected by check constraint: {exc}")
                raise QuoteValidationError(
                    "Quote data violates a storage constraint.",
                    rule="storage_constraint",
                )
            raise DuplicateActiveQuote(
                "You already have an active quote for this product.",
                rule="one_active_quote_per_product",
            )

    @classmethod
    def get_by_id(cls, quote_id) -> QuoteRequest:
        try:
            return cls._base_queryset().get(pk=quote_id)
        except (QuoteRequest.DoesNotExist, DjangoValidationError, ValueError):
            raise QuoteNotFound(rule="quote_exists")

    @staticmethod
    def get_for_update(quote_id) -> QuoteRequest:
        """Read a quote and hold its row lock until the transaction ends."""
        try:
            return QuoteRequest.objects.select_for_update().get(pk=quote_id)
        except (QuoteRequest.DoesNotExist, DjangoValidationError, ValueError):
            raise QuoteNotFound(rule="quote_exists")

    @staticmethod
    def update_status(quote_id, new_status: str, now=None, **fields) -> QuoteRequest:
        fields["status"] = new_status
        fields["updated_at"] = now or timezone.now()
        updated = QuoteRequest.objects.filter(pk=quote_id).update(**fields)
        if not updated:
            raise QuoteNotFound(rule="quote_exists")
        return QuoteRequest.objects.get(pk=quote_id)

    @staticmethod
    def list_active_expired(
        before, limit=None, exclude_ids=None, lock=False
    ) -> List[QuoteRequest]:
        """Active quotes whose deadline is earlier than ``before``, oldest first."""
        queryset = QuoteRequest.objects.all()
        if lock:
            queryset = queryset.select_for_update(skip_locked=True)
        queryset = queryset.filter(
            status__in=ACTIVE_STATUSES, expires_at__lt=before
        ).order_by("expires_at", "id")
        if exclude_ids:
            queryset = queryset.exclude(id__in=exclude_ids)
        if limit is not None:
            queryset = queryset[:limit]
        return list(queryset)

    @staticmethod
    def expire_quotes(quote_ids, now) -> int:
        """
        Move the given quotes to EXPIRED in one statement. Rows that are no
        longer active or overdue are left alone, so repeated or concurrent
        runs never count a quote twice.
        """
        if not quote_ids:
            return 0
        return QuoteRequest.objects.filter(
            id__in=list(quote_ids),
            status__in=ACTIVE_STATUSES,
            expires_at__lt=now,
        ).update(status=QuoteStatus.EXPIRED, counter_offer=None, updated_at=now)

    @classmethod
    def query(cls, query: QuoteQuery) -> QuotePage:
        filterset = QuoteFilter(
            data=query.as_filter_data(), queryset=cls._base_queryset()
        )
        if not filterset.is_valid():
            raise QuoteValidationError(
                f"Invalid quote filters: {dict(filterset.errors)}",
                rule="query_filters",
            )

        page_size = max(1, min(int(query.page_size or 20), MAX_PAGE_SIZE))
        paginator = Paginator(filterset.qs, page_size)
        try:
            page = paginator.page(max(1, int(query.page or 1)))
            results = list(page.object_list)
            number = page.number
        except EmptyPage:
            results = []
            number = int(query.page)

        return QuotePage(
            results=results,
            total=paginator.count,
            page=number,
            page_size=page_size,
            total_pages=paginator.num_pages if paginator.count else 0,
        )
