"""Rebuilds the request ``Authentication`` from the Flask session.

The session stores a small description of the principal:
- ``{"type": "oidc", "claims": {...}}`` after an OIDC login
- ``{"type": "dev", "user_id": "..."}`` after a development login
"""
from __future__ import annotations
import logging
from functools import wraps
from typing import Any, Dict, Optional

from flask import abort, current_app, g, session

from app_identity.core.current_user import (
    AnonymousAuthentication,
    Authentication,
    AuthenticationCredentialsNotFoundError,
    CurrentUser,
)
from app_identity.core.domain import UserId
from app_identity.core.oidc import OidcUserAdapter

logger = logging.getLogger(__name__)

SESSION_KEY = "principal"


def store_oidc_principal(principal: OidcUserAdapter) -> None:
    session[SESSION_KEY] = {"type": "oidc", "claims": dict(principal.claims)}


def store_dev_principal(user_id: UserId) -> None:
    session[SESSION_KEY] = {"type": "dev", "user_id": str(user_id)}


def clear_principal() -> None:
    session.pop(SESSION_KEY, None)


def load_authentication() -> Authentication:
    """Build the ``Authentication`` for the current request."""
    stored: Optional[Dict[str, Any]] = session.get(SESSION_KEY)
    if not stored:
        return AnonymousAuthentication()

    kind = stored.get("type")
    if kind == "oidc":
        try:
            principal = OidcUserAdapter(stored.get("claims") or {})
        except ValueError as exc:
            logger.warning("Discarding OIDC principal with invalid claims: %s", exc)
            clear_principal()
            return AnonymousAuthentication()
        return Authentication(principal=principal)

    if kind == "dev":
        registry = current_app.extensions.get("dev_user_registry")
        user = registry.find_by_id(UserId.of(stored.get("user_id", ""))) if registry else None
        if user is None:
            clear_principal()
            return AnonymousAuthentication()
        return Authentication(principal=user, roles=user.roles)

    logger.warning("Unknown principal type in session: %s", kind)
    clear_principal()
    return AnonymousAuthentication()


def current_authentication() -> Optional[Authentication]:
    return g.get("authentication")


def init_session_authentication(app) -> None:
    """Register the before_request hook that populates ``g.authentication``."""

    @app.before_request
    def attach_authentication() -> None:
        g.authentication = load_authentication()


def login_required(view):
    """Abort with 401 unless the request has an authenticated user."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            g.current_user = CurrentUser.require(current_authentication())
        except AuthenticationCredentialsNotFoundError:
            abort(401)
        return view(*args, **kwargs)

    return wrapper
