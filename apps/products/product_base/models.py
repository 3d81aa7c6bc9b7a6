import uuid

from django.conf import settings
from django.db import models
from django.utils.text import slugify

from apps.core.models import BaseModel


class Product(BaseModel):
    class ProductsStatus(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"
        INACTIVE = "inactive", "Inactive"
        SOLD = "sold", "Sold"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Basic product information
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="products"
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    slug = models.SlugField(max_length=255, unique=True, blank=True, db_index=True)

    # Pricing
    price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    currency = models.CharField(max_length=3, default="USD")

    # Status
    status = models.CharField(
        max_length=12, choices=ProductsStatus.choices, default=ProductsStatus.DRAFT
    )
    is_active = models.BooleanField(default=True)

    # Custom orders: customers may request a quote for a tailored version
    is_customizable = models.BooleanField(default=False)

    class Meta:
        db_table = "product"
        ordering = ["-created_at"]
        verbose_name_plural = "Products"
        indexes = [
            models.Index(fields=["seller", "status"], name="product_seller_status_idx"),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = f"{slugify(self.title)[:200]}-{uuid.uuid4().hex[:6]}"
        super().save(*args, **kwargs)

    @property
    def current_price(self):
        """Price a buyer pays today: the discount price when one is set."""
        if self.discount_price is not None:
            return self.discount_price
        return self.price

    @property
    def is_available(self):
        return self.is_active and self.status == self.ProductsStatus.PUBLISHED

    def discount_percentage(self):
        if self.discount_price is not None and self.price and self.discount_price < self.price:
            return int(((self.price - self.discount_price) / self.price) * 100)
        return 0
