"""In-memory users for local development.

Active only when ``AUTH_PROFILE=dev``. Users log in with their email address
and a password; the registry doubles as the ``AppUserInfoLookup`` so audit
trails resolve without an identity provider.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Dict, FrozenSet, Iterable, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from .domain import Email, UserId
from .user_info import AppUserInfo, system_default_locale, system_default_zone
from .validators import validate_name

ADMIN_EMAIL = "admin@example.com"
USER_EMAIL = "user@example.com"


class UsernameNotFoundError(LookupError):
    """Raised when a login name does not belong to any development user."""
    pass


@dataclass(frozen=True, eq=False)
class DevUser:
    """A development user. Implements ``AppUserInfo`` directly."""
    user_id: UserId
    full_name: str
    email: Email
    password_hash: str = field(repr=False)
    roles: FrozenSet[str] = frozenset()
    profile_url: Optional[str] = None
    picture_url: Optional[str] = None
    zone_id: tzinfo = field(default_factory=system_default_zone)
    locale: str = field(default_factory=system_default_locale)

    @classmethod
    def create(
        cls,
        full_name: str,
        email: str,
        password: Optional[str] = None,
        roles: Iterable[str] = (),
        user_id: Optional[UserId] = None,
        profile_url: Optional[str] = None,
        picture_url: Optional[str] = None,
        zone_id: Optional[tzinfo] = None,
        locale: Optional[str] = None,
    ) -> "DevUser":
        """Create a user, hashing the password.

        Raises:
            RuntimeError: If no password is given
            ValueError: If the email or full name is invalid
        """
        if password is None:
            raise RuntimeError("Password must be set before building the user")
        return cls(
            user_id=user_id or UserId.of(str(uuid.uuid4())),
            full_name=validate_name(full_name, "Full name"),
            email=Email.of(email),
            password_hash=generate_password_hash(password),
            roles=frozenset(f"ROLE_{role}" for role in roles),
            profile_url=profile_url,
            picture_url=picture_url,
            zone_id=zone_id or system_default_zone(),
            locale=locale or system_default_locale(),
        )

    @property
    def username(self) -> str:
        return str(self.email)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __eq__(self, other) -> bool:
        if isinstance(other, DevUser):
            return self.user_id == other.user_id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.user_id)


class DevUserRegistry:
    """Looks up development users by email (login) and by id (user info)."""

    def __init__(self, users: Iterable[DevUser]):
        self._by_email: Dict[Email, DevUser] = {}
        self._by_id: Dict[UserId, DevUser] = {}
        for user in users:
            self._by_email[user.email] = user
            self._by_id[user.user_id] = user

    def load_user_by_username(self, username: str) -> DevUser:
        """Return the user whose email equals ``username``.

        Raises:
            UsernameNotFoundError: If the username is not a known email
        """
        if not Email.is_valid(username):
            raise UsernameNotFoundError(username)
        user = self._by_email.get(Email.of(username))
        if user is None:
            raise UsernameNotFoundError(username)
        return user

    def authenticate(self, username: str, password: str) -> Optional[DevUser]:
        try:
            user = self.load_user_by_username(username)
        except UsernameNotFoundError:
            return None
        return user if user.check_password(password) else None

    def find_by_id(self, user_id: UserId) -> Optional[DevUser]:
        return self._by_id.get(user_id)

    def find_user_info(self, user_id: UserId) -> Optional[AppUserInfo]:
        return self._by_id.get(user_id)

    def __iter__(self):
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)


def sample_users(password: str) -> List[DevUser]:
    """The two users available when running with the dev profile."""
    return [
        DevUser.create("Alice Administrator", ADMIN_EMAIL, password=password, roles=["ADMIN"]),
        DevUser.create("Ursula User", USER_EMAIL, password=password, roles=["USER"]),
    ]
