"""User information contract shared by every identity source.

``AppUserInfo`` describes a user for display and attribution purposes: who
created a record, whom to notify, which time zone to render dates in. It is
deliberately separate from roles and credentials, so it can describe any
user and not only the one making the current request.

Sources that cannot expose these attributes directly (because their own
attribute names mean something else) implement ``HasAppUserInfo`` instead.
"""
from __future__ import annotations
import locale as _locale
import os
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .domain import Email, UserId

DEFAULT_LOCALE = "en"
LOCALTIME_PATH = Path("/etc/localtime")


@runtime_checkable
class AppUserInfo(Protocol):
    """Read-only identity attributes of an application user."""

    @property
    def user_id(self) -> UserId: ...

    @property
    def full_name(self) -> str: ...

    @property
    def email(self) -> Email: ...

    @property
    def profile_url(self) -> Optional[str]: ...

    @property
    def picture_url(self) -> Optional[str]: ...

    @property
    def zone_id(self) -> tzinfo: ...

    @property
    def locale(self) -> str: ...


@runtime_checkable
class HasAppUserInfo(Protocol):
    """Bridge for principals that expose an ``AppUserInfo`` by delegation."""

    def get_app_user_info(self) -> AppUserInfo: ...


@runtime_checkable
class AppUserInfoLookup(Protocol):
    """Looks up ``AppUserInfo`` for any user, not only the current one.

    Implementations return ``None`` when the user does not exist. Failures of
    the backing store are raised, so callers can tell "no such user" apart
    from "lookup unavailable".
    """

    def find_user_info(self, user_id: UserId) -> Optional[AppUserInfo]: ...


@dataclass(frozen=True)
class StaticUserInfo:
    """Plain ``AppUserInfo`` value built by the identity adapters."""
    user_id: UserId
    full_name: str
    email: Email
    profile_url: Optional[str] = None
    picture_url: Optional[str] = None
    zone_id: tzinfo = field(default_factory=lambda: system_default_zone())
    locale: str = field(default_factory=lambda: system_default_locale())


def system_default_zone() -> tzinfo:
    """Return the time zone of the running process.

    Resolution order is ``TZ``, then the zone ``/etc/localtime`` links to.
    Only when neither names an IANA zone does this fall back to the current
    UTC offset, which is a fixed offset and does not follow DST changes.
    """
    name = os.environ.get("TZ", "").lstrip(":")
    if name:
        zone = _zone_or_none(name)
        if zone is not None:
            return zone

    name = _localtime_zone_name()
    if name:
        zone = _zone_or_none(name)
        if zone is not None:
            return zone

    return datetime.now().astimezone().tzinfo


def _zone_or_none(name: str) -> Optional[tzinfo]:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def _localtime_zone_name() -> Optional[str]:
    """IANA key of the zone file ``/etc/localtime`` points at, if any."""
    if not LOCALTIME_PATH.is_symlink():
        return None
    target = os.path.realpath(LOCALTIME_PATH)
    _, marker, key = target.partition("/zoneinfo/")
    return key if marker else None


def system_default_locale() -> str:
    """Return the process locale as a language tag, e.g. ``en-US``."""
    language = _locale.getlocale()[0]
    if not language or language in ("C", "POSIX"):
        return DEFAULT_LOCALE
    return language.replace("_", "-")


def parse_zone_info(zone_info: Optional[str]) -> tzinfo:
    """Parse a ``zoneinfo`` claim, falling back to the system zone.

    Display preferences are not critical, so unknown or malformed zone
    identifiers never raise.
    """
    if not zone_info:
        return system_default_zone()
    try:
        return ZoneInfo(zone_info)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        return system_default_zone()


def parse_locale(tag: Optional[str]) -> str:
    """Parse a ``locale`` claim into a language tag.

    Both ``en-US`` and the POSIX form ``en_US`` are accepted.
    """
    if not tag or not tag.strip():
        return system_default_locale()
    return tag.strip().replace("_", "-")


def build_full_name(first: Optional[str], last: Optional[str], username: str) -> str:
    """Combine first and last name, falling back to the username."""
    if first and last:
        return f"{first} {last}"
    if first:
        return first
    if last:
        return last
    return username
