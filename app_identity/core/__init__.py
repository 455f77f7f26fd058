"""Core identity logic.

This module holds the identity model and its sources, independent of the
HTTP framework.

Module Structure:
    - domain.py        : UserId, Email domain primitives
    - validators.py    : Email and name validation rules
    - user_info.py     : AppUserInfo / HasAppUserInfo / AppUserInfoLookup contracts
    - caching.py       : Caching decorator for AppUserInfoLookup
    - current_user.py  : CurrentUser accessor for the session principal
    - oidc.py          : OIDC principal adapter
    - dev.py           : In-memory development users
    - keycloak/        : Keycloak Admin API lookup

Usage Pattern:
    Modules are NOT auto-imported here; import them explicitly:
        from app_identity.core.domain import UserId, Email
        from app_identity.core.current_user import CurrentUser
"""
