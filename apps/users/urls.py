from django.urls import path

from apps.users.views import (
    CookieTokenObtainPairView,
    CookieTokenRefreshView,
    CurrentUserView,
)

urlpatterns = [
    path("auth/token/", CookieTokenObtainPairView.as_view(), name="token_obtain_pair"),
    path(
        "auth/token/refresh/", CookieTokenRefreshView.as_view(), name="token_refresh"
    ),
    path("users/me/", CurrentUserView.as_view(), name="current-user"),
]
