"""Keycloak-backed user information lookup."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

from ..domain import Email, UserId
from ..user_info import AppUserInfo, StaticUserInfo, build_full_name, parse_locale, parse_zone_info
from .client import KeycloakClient
from .exceptions import KeycloakAPIError, UserInfoLookupError

logger = logging.getLogger(__name__)

_REALMS_SEGMENT = "/realms/"
_UNADDRESSABLE_IDS = {"", ".", ".."}


@dataclass(frozen=True)
class KeycloakCredentials:
    """Connection settings for the Keycloak Admin API."""
    server_url: str
    realm: str
    client_id: str
    client_secret: str

    def __post_init__(self):
        for name in ("server_url", "realm", "client_id", "client_secret"):
            if not isinstance(getattr(self, name), str):
                raise TypeError(f"{name} must be a string")

    def __repr__(self) -> str:
        return (
            f"KeycloakCredentials(server_url={self.server_url!r}, realm={self.realm!r}, "
            f"client_id={self.client_id!r}, client_secret='***')"
        )


def create_credentials(oidc_issuer_uri: str, client_id: str, client_secret: str) -> KeycloakCredentials:
    """Derive Keycloak credentials from an OIDC issuer URI.

    Keycloak issuers look like ``https://host/realms/{realm}``; the part before
    ``/realms/`` is the server URL.

    Raises:
        ValueError: If the issuer is not a Keycloak issuer or names no realm
    """
    for name, value in (("oidc_issuer_uri", oidc_issuer_uri), ("client_id", client_id), ("client_secret", client_secret)):
        if not isinstance(value, str):
            raise TypeError(f"{name} must be a string")

    realms_index = oidc_issuer_uri.find(_REALMS_SEGMENT)
    if realms_index < 0:
        raise ValueError(f"OIDC issuer does not appear to be Keycloak: {oidc_issuer_uri}")

    server_url = oidc_issuer_uri[:realms_index]
    realm_start = realms_index + len(_REALMS_SEGMENT)
    realm_end = oidc_issuer_uri.find("/", realm_start)
    if realm_end < 0:
        realm_end = len(oidc_issuer_uri)

    realm = oidc_issuer_uri[realm_start:realm_end]
    if not realm:
        raise ValueError(f"Realm name is empty in OIDC issuer: {oidc_issuer_uri}")

    return KeycloakCredentials(server_url, realm, client_id, client_secret)


def _first_attribute(user: Dict[str, Any], name: str) -> Optional[str]:
    values = (user.get("attributes") or {}).get(name)
    if isinstance(values, list):
        return values[0] if values else None
    return values


def user_info_from_representation(user: Dict[str, Any]) -> AppUserInfo:
    """Map a Keycloak user representation to ``AppUserInfo``.

    Raises:
        KeyError: If the representation has no id or username
        TypeError: If the representation is not a JSON object
        ValueError: If the email is missing or malformed
    """
    username = user["username"]
    return StaticUserInfo(
        user_id=UserId.of(user["id"]),
        full_name=build_full_name(user.get("firstName"), user.get("lastName"), username),
        email=Email.of(user.get("email")),
        profile_url=_first_attribute(user, "profile"),
        picture_url=_first_attribute(user, "picture"),
        zone_id=parse_zone_info(_first_attribute(user, "zoneinfo")),
        locale=parse_locale(_first_attribute(user, "locale")),
    )


class KeycloakAppUserInfoLookup:
    """``AppUserInfoLookup`` backed by the Keycloak Admin REST API.

    The service account behind ``credentials`` needs the ``view-users`` role
    of the ``realm-management`` client. Call ``close()`` (or use the lookup as
    a context manager) to release the HTTP connection pool.
    """

    def __init__(self, credentials: KeycloakCredentials, client: Optional[KeycloakClient] = None):
        if credentials is None:
            raise TypeError("credentials must not be None")
        logger.info(
            "Looking up users from serverUrl '%s' and realm '%s'",
            credentials.server_url,
            credentials.realm,
        )
        self.credentials = credentials
        self.client = client or KeycloakClient(credentials.server_url)
        self.client.use_service_account(credentials.realm, credentials.client_id, credentials.client_secret)

    def find_user_info(self, user_id: UserId) -> Optional[AppUserInfo]:
        """Fetch a user by id.

        Returns:
            The user information, or None if Keycloak has no such user

        Raises:
            UserInfoLookupError: If Keycloak could not be queried or returned
                a user that cannot be mapped
        """
        logger.debug("Looking up user info for userId: %s", user_id)
        # Dot segments would be collapsed by the HTTP stack and address another endpoint
        if str(user_id) in _UNADDRESSABLE_IDS:
            logger.debug("User id cannot name a Keycloak user: %r", str(user_id))
            return None

        path = f"/admin/realms/{quote(self.credentials.realm, safe='')}/users/{quote(str(user_id), safe='')}"
        try:
            resp = self.client.get(path)
            representation = resp.json()
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                logger.debug("User not found in Keycloak: %s", user_id)
                return None
            logger.error("Failed to lookup user info for userId: %s", user_id, exc_info=True)
            raise UserInfoLookupError("Failed to retrieve user information from Keycloak") from exc
        except Exception as exc:
            logger.error("Failed to lookup user info for userId: %s", user_id, exc_info=True)
            raise UserInfoLookupError("Failed to retrieve user information from Keycloak") from exc

        try:
            return user_info_from_representation(representation)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Keycloak user %s has unusable user data: %s", user_id, exc)
            raise UserInfoLookupError(f"Keycloak user {user_id} has invalid user data") from exc

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "KeycloakAppUserInfoLookup":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
