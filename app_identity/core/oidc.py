"""OIDC principal adapter.

Authlib hands back the ID token claims and, optionally, the userinfo
response. ``OidcUserAdapter`` keeps those raw claims available under their
standard names and exposes the normalized ``AppUserInfo`` through
``get_app_user_info()``.
"""
from __future__ import annotations
from typing import Any, Dict, Mapping, Optional

from .domain import Email, UserId
from .user_info import AppUserInfo, StaticUserInfo, build_full_name, parse_locale, parse_zone_info


class OidcUserAdapter:
    """Session principal for users authenticated through OIDC."""

    def __init__(self, claims: Mapping[str, Any], userinfo: Optional[Mapping[str, Any]] = None,
                 name_attribute_key: str = "sub"):
        merged: Dict[str, Any] = dict(claims)
        if userinfo:
            merged.update(userinfo)
        if not merged.get("sub"):
            raise ValueError("OIDC claims must contain a subject")
        self.claims = merged
        self.name_attribute_key = name_attribute_key
        self._app_user_info = _create_app_user_info(merged)

    @property
    def subject(self) -> str:
        return self.claims["sub"]

    @property
    def name(self) -> str:
        return str(self.claims.get(self.name_attribute_key) or self.subject)

    @property
    def email(self) -> Optional[str]:
        return self.claims.get("email")

    def get_app_user_info(self) -> AppUserInfo:
        return self._app_user_info

    def __repr__(self) -> str:
        return f"OidcUserAdapter(sub={self.subject!r})"


def _create_app_user_info(claims: Mapping[str, Any]) -> AppUserInfo:
    full_name = claims.get("name") or build_full_name(
        claims.get("given_name"),
        claims.get("family_name"),
        claims.get("preferred_username") or claims["sub"],
    )
    return StaticUserInfo(
        user_id=UserId.of(claims["sub"]),
        full_name=full_name,
        email=Email.of(claims.get("email")),
        profile_url=claims.get("profile"),
        picture_url=claims.get("picture"),
        zone_id=parse_zone_info(claims.get("zoneinfo")),
        locale=parse_locale(claims.get("locale")),
    )


def load_oidc_user(token: Mapping[str, Any], userinfo: Optional[Mapping[str, Any]] = None) -> OidcUserAdapter:
    """Wrap the result of an Authlib authorization into a session principal.

    Args:
        token: Token response from ``authorize_access_token()``; Authlib puts
            the parsed ID token claims under ``userinfo``
        userinfo: Claims from the userinfo endpoint, if fetched

    Raises:
        ValueError: If the claims lack a subject or a valid email
    """
    id_claims = token.get("userinfo") or token.get("id_claims") or {}
    return OidcUserAdapter(id_claims, userinfo)
