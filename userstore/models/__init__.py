"""Data models for userstore."""

from userstore.models.user import User, UserCreate, UserUpdate

__all__ = [
    "User",
    "UserCreate",
    "UserUpdate",
]
