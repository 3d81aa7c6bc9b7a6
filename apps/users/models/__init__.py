# users/models/__init__.py
from .base import CustomUser, UserRole

__all__ = [
    "CustomUser",
    "UserRole",
]
