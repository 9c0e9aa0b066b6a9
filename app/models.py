"""Domain models for user records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class User:
    """Represents a user record stored in the database.

    Records always carry the identity assigned by the store; data that has not
    been persisted yet is described by :class:`UserDraft` instead.
    """

    id: int
    name: str
    email: str
    age: int
    created_at: datetime


@dataclass(frozen=True)
class UserDraft:
    """The client-editable fields of a user record."""

    name: str
    email: str
    age: int

    @classmethod
    def from_user(cls, user: User) -> "UserDraft":
        return cls(name=user.name, email=user.email, age=user.age)

    def to_payload(self) -> dict[str, object]:
        return {"name": self.name, "email": self.email, "age": self.age}


__all__ = ["User", "UserDraft"]
