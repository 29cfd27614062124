from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from .common import CamelModel, utcnow


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(CamelModel):
    """Domain representation of a registered user."""

    id: int
    email: str
    password_hash: str = Field(default="", exclude=True, repr=False)
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company: str | None = None
    bio: str | None = None
    profile_picture: str | None = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    firebase_uid: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class UserCreate(CamelModel):
    """Fields accepted by the storage layer when creating a user."""

    email: str
    password_hash: str = ""
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company: str | None = None
    bio: str | None = None
    profile_picture: str | None = None
    role: UserRole = UserRole.USER
    firebase_uid: str | None = None


class UserUpdate(CamelModel):
    """Partial user update; only explicitly set fields are applied."""

    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company: str | None = None
    bio: str | None = None
    profile_picture: str | None = None
    role: UserRole | None = None
    firebase_uid: str | None = None
    is_active: bool | None = None


class Principal(CamelModel):
    """Minimal identity stored in a server-side session."""

    user_id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> Principal:
        return cls(
            user_id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
        )
