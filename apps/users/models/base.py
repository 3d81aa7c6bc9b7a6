import uuid
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.core.models import BaseModel

from apps.users.managers import CustomUserManager


class UserRole(models.TextChoices):
    """Marketplace role choices"""

    CUSTOMER = "customer", _("Customer")
    ARTISAN = "artisan", _("Artisan")
    ADMIN = "admin", _("Admin")


class CustomUser(AbstractUser, BaseModel):
    """
    CustomUser is a custom user model that extends Django's AbstractUser.
    It uses email as the unique identifier instead of the username.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # The username field is set to None to disable it.
    username = None

    # The email field is set to be unique because it is the unique identifier.
    email = models.EmailField(_("email address"), unique=True)
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.CUSTOMER,
        db_index=True,
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    class Meta:
        db_table = "core_user"
        indexes = [
            models.Index(fields=["email", "is_active"], name="core_user_email_active_idx"),
            models.Index(fields=["first_name", "last_name"], name="core_user_name_idx"),
        ]

    def __str__(self):
        return self.email

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.email

    def get_short_name(self):
        return self.first_name or self.email.split("@")[0]

    @property
    def is_artisan(self):
        return self.role == UserRole.ARTISAN
