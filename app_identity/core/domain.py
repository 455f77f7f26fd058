"""Domain primitives for user identity.

``UserId`` and ``Email`` wrap raw strings so that identifiers and addresses
cannot be mixed up with other text, and so that an ``Email`` instance is
always known to be well-formed.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .validators import is_valid_email


@dataclass(frozen=True)
class UserId:
    """Identifier of a user. In OIDC this is the ``sub`` claim."""
    value: str

    def __post_init__(self):
        # If user ids get a specific format, validate it here.
        if not isinstance(self.value, str):
            raise TypeError(f"UserId must be a string, got {type(self.value).__name__}")

    @classmethod
    def of(cls, value: str) -> "UserId":
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Email:
    """A syntactically valid email address."""
    value: str

    def __post_init__(self):
        if not is_valid_email(self.value):
            raise ValueError("Invalid email")

    @classmethod
    def of(cls, value: str) -> "Email":
        """Create an ``Email``.

        Raises:
            ValueError: If the address is invalid
        """
        return cls(value)

    @staticmethod
    def is_valid(value: str) -> bool:
        return is_valid_email(value)

    def __str__(self) -> str:
        return self.value


class UserIdColumn:
    """Converts ``UserId`` to and from a plain string storage column."""

    @staticmethod
    def to_column(user_id: Optional[UserId]) -> Optional[str]:
        return None if user_id is None else str(user_id)

    @staticmethod
    def from_column(value: Optional[str]) -> Optional[UserId]:
        return None if value is None else UserId.of(value)
