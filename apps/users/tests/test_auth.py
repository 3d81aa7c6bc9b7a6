from unittest.mock import patch

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from apps.users.models import UserRole

User = get_user_model()

PASSWORD = "StrongTestPass123!"


@pytest.fixture
def client():
    return APIClient()


@pytest.fixture
def artisan(db):
    return User.objects.create_user(
        email="potter@test.com",
        password=PASSWORD,
        first_name="Ada",
        last_name="Potter",
        role=UserRole.ARTISAN,
    )


@pytest.fixture
def customer(db):
    return User.objects.create_user(
        email="buyer@test.com", password=PASSWORD, role=UserRole.CUSTOMER
    )


def login(client, email, password=PASSWORD):
    return client.post(
        reverse("token_obtain_pair"),
        {"email": email, "password": password},
        format="json",
    )


@pytest.mark.django_db
class TestLogin:
    def test_tokens_are_set_as_cookies(self, client, artisan):
        response = login(client, artisan.email)

        assert response.status_code == status.HTTP_200_OK
        profile = response.data["data"]
        assert profile["role"] == UserRole.ARTISAN
        assert profile["full_name"] == "Ada Potter"
        assert settings.JWT_AUTH_COOKIE in response.cookies
        assert settings.JWT_AUTH_REFRESH_COOKIE in response.cookies
        assert "access" not in response.data

    def test_wrong_password(self, client, customer):
        response = login(client, customer.email, password="nope-nope-nope")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["message"] == "Authentication failed"
        assert settings.JWT_AUTH_COOKIE not in response.cookies

    def test_inactive_account(self, client, customer):
        customer.is_active = False
        customer.save(update_fields=["is_active"])

        assert login(client, customer.email).status_code == status.HTTP_401_UNAUTHORIZED

    def test_last_login_recorded(self, client, customer):
        with patch("apps.users.views.update_last_login") as update_last_login:
            login(client, customer.email)

        update_last_login.assert_called_once()

    def test_cookie_authenticates_quote_api(self, client, customer):
        login(client, customer.email)

        response = client.get(reverse("quote-list"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["data"]["count"] == 0


@pytest.mark.django_db
class TestRefresh:
    def test_refresh_issues_new_access_cookie(self, client, customer):
        refresh = login(client, customer.email).cookies[
            settings.JWT_AUTH_REFRESH_COOKIE
        ].value
        client.cookies.clear()
        client.cookies[settings.JWT_AUTH_REFRESH_COOKIE] = refresh

        response = client.post(reverse("token_refresh"))

        assert response.status_code == status.HTTP_200_OK
        assert settings.JWT_AUTH_COOKIE in response.cookies

    def test_missing_refresh_cookie(self, client):
        response = client.post(reverse("token_refresh"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["message"] == "No refresh token found"


@pytest.mark.django_db
class TestCurrentUser:
    def test_anonymous(self, client):
        assert client.get(reverse("current-user")).status_code == 401

    def test_bearer_header(self, client, artisan):
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(artisan)}")

        response = client.get(reverse("current-user"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["data"]["email"] == artisan.email
        assert response.data["data"]["role"] == UserRole.ARTISAN
