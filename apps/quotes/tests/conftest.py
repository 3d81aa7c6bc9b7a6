from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from apps.products.product_base.models import Product
from apps.quotes.models import QuoteRequest, QuoteStatus

User = get_user_model()


@pytest.fixture
def artisan(db):
    return User.objects.create_user(
        email="artisan@test.com",
        password="testpassword123",
        first_name="Ada",
        last_name="Potter",
        role="artisan",
    )


@pytest.fixture
def customer(db):
    return User.objects.create_user(
        email="customer@test.com",
        password="testpassword123",
        first_name="Cole",
        last_name="Buyer",
        role="customer",
    )


@pytest.fixture
def other_customer(db):
    return User.objects.create_user(
        email="someone@test.com", password="testpassword123", role="customer"
    )


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        email="staff@test.com",
        password="testpassword123",
        role="admin",
        is_staff=True,
    )


@pytest.fixture
def product(artisan):
    return Product.objects.create(
        seller=artisan,
        title="Walnut Cutting Board",
        price=Decimal("100.00"),
        status=Product.ProductsStatus.PUBLISHED,
        is_customizable=True,
    )


@pytest.fixture
def second_product(artisan):
    return Product.objects.create(
        seller=artisan,
        title="Oak Serving Tray",
        price=Decimal("40.00"),
        status=Product.ProductsStatus.PUBLISHED,
        is_customizable=True,
    )


@pytest.fixture
def make_quote(product, customer, artisan):
    """Insert a quote row directly, bypassing the negotiation rules."""

    def _make(status=QuoteStatus.PENDING, expires_in=timedelta(days=7), **fields):
        fields.setdefault("product", product)
        fields.setdefault("customer", customer)
        fields.setdefault("artisan", artisan)
        return QuoteRequest.objects.create(
            status=status, expires_at=timezone.now() + expires_in, **fields
        )

    return _make


@pytest.fixture
def api_client():
    return APIClient()
