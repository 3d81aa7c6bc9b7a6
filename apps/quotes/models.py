import uuid
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.core.models import BaseModel


class QuoteStatus(models.TextChoices):
    """
    Lifecycle of a quote request.

    PENDING and COUNTER_OFFERED are the active states; ACCEPTED, REJECTED
    and EXPIRED are terminal for the negotiation. ACCEPTED quotes may still
    move to COMPLETED when they are converted into an order.
    """

    PENDING = "pending", _("Pending")
    COUNTER_OFFERED = "counter_offered", _("Counter Offered")
    ACCEPTED = "accepted", _("Accepted")
    REJECTED = "rejected", _("Rejected")
    EXPIRED = "expired", _("Expired")
    COMPLETED = "completed", _("Completed")


ACTIVE_STATUSES = (QuoteStatus.PENDING, QuoteStatus.COUNTER_OFFERED)
TERMINAL_STATUSES = (
    QuoteStatus.ACCEPTED,
    QuoteStatus.REJECTED,
    QuoteStatus.EXPIRED,
    QuoteStatus.COMPLETED,
)


class NegotiationAction(models.TextChoices):
    REQUEST = "request", _("Request")
    ACCEPT = "accept", _("Accept")
    REJECT = "reject", _("Reject")
    COUNTER = "counter", _("Counter")
    MESSAGE = "message", _("Message")


class NegotiationActor(models.TextChoices):
    CUSTOMER = "customer", _("Customer")
    ARTISAN = "artisan", _("Artisan")


class QuoteRequest(BaseModel):
    """
    A customer's request for a custom price or specification on a
    customizable product, and the artisan's standing answer to it.

    ``customer_message`` and ``artisan_message`` only mirror the latest note
    from each side; the full conversation lives in ``negotiation_history``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        "product_base.Product",
        on_delete=models.CASCADE,
        related_name="quote_requests",
    )
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="customer_quotes",
    )
    artisan = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="artisan_quotes",
        help_text=_("Seller of the product when the quote was requested"),
    )

    requested_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    counter_offer = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    final_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )

    specifications = models.TextField(max_length=2000, blank=True)
    customer_message = models.TextField(max_length=1000, blank=True)
    artisan_message = models.TextField(max_length=1000, blank=True)

    status = models.CharField(
        max_length=20,
        choices=QuoteStatus.choices,
        default=QuoteStatus.PENDING,
        db_index=True,
    )
    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "status"], name="quote_customer_status_idx"),
            models.Index(fields=["artisan", "status"], name="quote_artisan_status_idx"),
            models.Index(fields=["status", "expires_at"], name="quote_status_expiry_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "customer"],
                condition=Q(status__in=["pending", "counter_offered"]),
                name="unique_active_quote_per_customer_product",
            ),
            models.CheckConstraint(
                condition=~Q(customer=F("artisan")),
                name="quote_customer_is_not_artisan",
            ),
            models.CheckConstraint(
                condition=Q(requested_price__isnull=True) | Q(requested_price__gt=0),
                name="quote_requested_price_positive",
            ),
            models.CheckConstraint(
                condition=Q(counter_offer__isnull=True) | Q(counter_offer__gt=0),
                name="quote_counter_offer_positive",
            ),
            models.CheckConstraint(
                condition=Q(final_price__isnull=True)
                | Q(status__in=["accepted", "completed"]),
                name="quote_final_price_only_when_accepted",
            ),
            models.CheckConstraint(
                condition=Q(counter_offer__isnull=True) | Q(status="counter_offered"),
                name="quote_counter_offer_only_when_countered",
            ),
        ]

    def __str__(self):
        return f"Quote {self.id} ({self.status})"

    def clean(self):
        if self.customer_id and self.customer_id == self.artisan_id:
            raise ValidationError(_("Customers cannot request quotes from themselves."))

    @property
    def is_active(self):
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def is_past_deadline(self, now=None):
        return self.expires_at < (now or timezone.now())

    @property
    def current_offer(self):
        """The price currently on the table, artisan's counter first."""
        if self.counter_offer is not None:
            return self.counter_offer
        return self.requested_price

    def party_role(self, user_id):
        """'customer', 'artisan' or None for a user id."""
        if user_id is None:
            return None
        if str(user_id) == str(self.customer_id):
            return NegotiationActor.CUSTOMER
        if str(user_id) == str(self.artisan_id):
            return NegotiationActor.ARTISAN
        return None


class NegotiationEntry(models.Model):
    """
    One immutable audit record of an action taken on a quote.

    Entries are written alongside every party action and are never
    modified or deleted afterwards.
    """

    quote = models.ForeignKey(
        QuoteRequest, on_delete=models.CASCADE, related_name="negotiation_history"
    )
    action = models.CharField(max_length=10, choices=NegotiationAction.choices)
    actor = models.CharField(max_length=10, choices=NegotiationActor.choices)
    previous_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    new_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    message = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["timestamp", "id"]
        verbose_name_plural = "Negotiation entries"

    def __str__(self):
        return f"{self.actor} {self.action} on {self.quote_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Negotiation entries are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Negotiation entries cannot be deleted")
