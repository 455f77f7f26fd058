"""User identity layer for Flask applications.

To use the Flask app:
    from app_identity.flask_app import create_app

To resolve users by id:
    from app_identity.core.caching import CacheConfig, CachingAppUserInfoLookup
    from app_identity.core.keycloak import KeycloakAppUserInfoLookup, create_credentials
"""
# Note: We don't import flask_app by default to avoid the Flask dependency
# for code that only uses app_identity.core
