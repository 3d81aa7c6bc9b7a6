"""
Read-only lookups of the products and users a quote refers to.

The negotiation engine only needs a handful of attributes from each, so
lookups return frozen snapshots rather than live model instances.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError

from apps.products.product_base.models import Product
from apps.quotes.exceptions import QuoteNotFound


@dataclass(frozen=True)
class ProductSnapshot:
    id: object
    seller_id: object
    title: str
    price: Optional[Decimal]
    discount_price: Optional[Decimal]
    is_customizable: bool
    status: str
    is_active: bool = True

    @property
    def current_price(self) -> Optional[Decimal]:
        if self.discount_price is not None:
            return self.discount_price
        return self.price

    @property
    def is_published(self) -> bool:
        return self.is_active and self.status == Product.ProductsStatus.PUBLISHED

    @classmethod
    def from_model(cls, product: Product) -> "ProductSnapshot":
        return cls(
            id=product.id,
            seller_id=product.seller_id,
            title=product.title,
            price=product.price,
            discount_price=product.discount_price,
            is_customizable=product.is_customizable,
            status=product.status,
            is_active=product.is_active,
        )


@dataclass(frozen=True)
class UserSnapshot:
    id: object
    role: str
    is_staff: bool = False


class ProductGateway:
    @staticmethod
    def get_product(product_id) -> ProductSnapshot:
        try:
            product = Product.objects.only(
                "id",
                "seller_id",
                "title",
                "price",
                "discount_price",
                "is_customizable",
                "status",
                "is_active",
            ).get(id=product_id)
        except (Product.DoesNotExist, DjangoValidationError, ValueError):
            raise QuoteNotFound("Product not found.", rule="product_exists")
        return ProductSnapshot.from_model(product)


class UserGateway:
    @staticmethod
    def get_user(user_id) -> UserSnapshot:
        User = get_user_model()
        try:
            user = User.objects.only("id", "role", "is_staff").get(id=user_id)
        except (User.DoesNotExist, DjangoValidationError, ValueError):
            raise QuoteNotFound("User not found.", rule="user_exists")
        return UserSnapshot(id=user.id, role=user.role, is_staff=user.is_staff)
