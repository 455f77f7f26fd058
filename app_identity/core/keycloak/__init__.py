"""Keycloak Admin API integration.

Architecture:
- client.py: HTTP client with service account authentication and auto-refresh
- users.py: User information lookup and issuer URI parsing
- exceptions.py: Typed exceptions for error handling

Usage:
    from app_identity.core.keycloak import KeycloakAppUserInfoLookup, create_credentials

    credentials = create_credentials("https://kc.example.com/realms/demo", "app", "secret")
    with KeycloakAppUserInfoLookup(credentials) as lookup:
        info = lookup.find_user_info(UserId.of("8f0c..."))
"""
from .client import (
    KeycloakClient,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    UserInfoLookupError,
)
from .users import (
    KeycloakAppUserInfoLookup,
    KeycloakCredentials,
    create_credentials,
    user_info_from_representation,
)

__all__ = [
    # Client
    "KeycloakClient",
    "REQUEST_TIMEOUT",

    # Exceptions
    "KeycloakError",
    "KeycloakAPIError",
    "UserInfoLookupError",

    # Lookup
    "KeycloakAppUserInfoLookup",
    "KeycloakCredentials",
    "create_credentials",
    "user_info_from_representation",
]
