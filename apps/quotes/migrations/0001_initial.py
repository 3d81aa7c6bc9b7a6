import django.db.models.deletion
import django.utils.timezone
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("product_base", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="QuoteRequest",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "requested_price",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "counter_offer",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "final_price",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                ("specifications", models.TextField(blank=True, max_length=2000)),
                ("customer_message", models.TextField(blank=True, max_length=1000)),
                ("artisan_message", models.TextField(blank=True, max_length=1000)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("counter_offered", "Counter Offered"),
                            ("accepted", "Accepted"),
                            ("rejected", "Rejected"),
                            ("expired", "Expired"),
                            ("completed", "Completed"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("expires_at", models.DateTimeField(db_index=True)),
                (
                    "artisan",
                    models.ForeignKey(
                        help_text="Seller of the product when the quote was requested",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="artisan_quotes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="customer_quotes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="quote_requests",
                        to="product_base.product",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["customer", "status"], name="quote_customer_status_idx"
                    ),
                    models.Index(
                        fields=["artisan", "status"], name="quote_artisan_status_idx"
                    ),
                    models.Index(
                        fields=["status", "expires_at"], name="quote_status_expiry_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("status__in", ["pending", "counter_offered"])
                        ),
                        fields=("product", "customer"),
                        name="unique_active_quote_per_customer_product",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("customer", models.F("artisan")), _negated=True
                        ),
                        name="quote_customer_is_not_artisan",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("requested_price__isnull", True),
                            ("requested_price__gt", 0),
                            _connector="OR",
                        ),
                        name="quote_requested_price_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("counter_offer__isnull", True),
                            ("counter_offer__gt", 0),
                            _connector="OR",
                        ),
                        name="quote_counter_offer_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="NegotiationEntry",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("request", "Request"),
                            ("accept", "Accept"),
                            ("reject", "Reject"),
                            ("counter", "Counter"),
                            ("message", "Message"),
                        ],
                        max_length=10,
                    ),
                ),
                (
                    "actor",
                    models.CharField(
                        choices=[("customer", "Customer"), ("artisan", "Artisan")],
                        max_length=10,
                    ),
                ),
                (
                    "previous_price",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "new_price",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                ("message", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "timestamp",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
                (
                    "quote",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="negotiation_history",
                        to="quotes.quoterequest",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Negotiation entries",
                "ordering": ["timestamp", "id"],
            },
        ),
    ]
