"""Access to the user of the current session.

The caller passes the request's ``Authentication`` explicitly (in Flask it
lives on ``g.authentication``, see ``app_identity.api.session``), so these
helpers work the same in request handlers, background jobs and tests.

Usage:
    user = CurrentUser.get(g.authentication)       # Optional[AppUserInfo]
    user = CurrentUser.require(g.authentication)   # raises if anonymous
    full_name = CurrentUser.require(g.authentication).full_name
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional

from .domain import UserId
from .user_info import AppUserInfo, HasAppUserInfo

logger = logging.getLogger(__name__)


class AuthenticationCredentialsNotFoundError(Exception):
    """No authenticated user where one is required (maps to HTTP 401)."""
    pass


@dataclass(frozen=True)
class Authentication:
    """Outcome of authenticating a request."""
    principal: Any
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_anonymous(self) -> bool:
        return False


@dataclass(frozen=True)
class AnonymousAuthentication(Authentication):
    """Request that passed through authentication without credentials."""
    principal: Any = "anonymousUser"

    @property
    def is_anonymous(self) -> bool:
        return True


class CurrentUser:
    """Helpers for reading ``AppUserInfo`` from an ``Authentication``."""

    @staticmethod
    def get(authentication: Optional[Authentication]) -> Optional[AppUserInfo]:
        """Return the authenticated user, or None.

        None is returned for missing or anonymous authentication, and for
        principals that expose no ``AppUserInfo`` (logged as a warning).
        """
        if authentication is None or authentication.principal is None or authentication.is_anonymous:
            return None

        principal = authentication.principal
        if isinstance(principal, HasAppUserInfo):
            return principal.get_app_user_info()
        if isinstance(principal, AppUserInfo):
            return principal

        logger.warning("Unexpected principal type: %s", type(principal).__qualname__)
        return None

    @staticmethod
    def require(authentication: Optional[Authentication]) -> AppUserInfo:
        """Return the authenticated user.

        Raises:
            AuthenticationCredentialsNotFoundError: If there is no user
        """
        user = CurrentUser.get(authentication)
        if user is None:
            raise AuthenticationCredentialsNotFoundError("No current user")
        return user


def current_auditor(authentication: Optional[Authentication]) -> Optional[UserId]:
    """User id to record as creator/modifier of an entity."""
    user = CurrentUser.get(authentication)
    return user.user_id if user is not None else None
