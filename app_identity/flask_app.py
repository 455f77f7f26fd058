"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with the identity sources of the active profile.

Run with Gunicorn:
    gunicorn 'app_identity.flask_app:create_app()'
"""
from __future__ import annotations
import atexit
import logging
import os
from tempfile import gettempdir
from typing import Optional

from flask import Flask
from flask_session import Session

from app_identity.config import AppConfig, load_settings
from app_identity.core.caching import CacheConfig, CachingAppUserInfoLookup
from app_identity.core.dev import DevUserRegistry, sample_users
from app_identity.core.keycloak import KeycloakAppUserInfoLookup, create_credentials
from app_identity.core.user_info import AppUserInfoLookup

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, user_info_lookup: Optional[AppUserInfoLookup] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Configuration (defaults to load_settings())
        user_info_lookup: Lookup to use instead of the profile default
    """
    cfg = cfg or load_settings()
    _configure_logging(cfg.log_level)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg

    # Flask session configuration
    app.config["SECRET_KEY"] = cfg.secret_key
    app.config["SESSION_TYPE"] = os.environ.get("FLASK_SESSION_TYPE", "filesystem")
    if app.config["SESSION_TYPE"] == "filesystem":
        session_dir = os.environ.get("FLASK_SESSION_DIR") or os.path.join(gettempdir(), "app_identity_flask_session")
        os.makedirs(session_dir, exist_ok=True)
        app.config["SESSION_FILE_DIR"] = session_dir
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = cfg.session_cookie_secure
    Session(app)

    # Identity sources
    from app_identity.api import auth
    if cfg.dev_mode:
        registry = DevUserRegistry(sample_users(cfg.dev_user_password))
        app.extensions["dev_user_registry"] = registry
        app.extensions["user_info_lookup"] = user_info_lookup or registry
    else:
        auth.init_oauth(app, cfg)
        app.extensions["user_info_lookup"] = user_info_lookup or build_user_info_lookup(cfg)

    # Register blueprints
    from app_identity.api import errors, health, users
    from app_identity.api.session import init_session_authentication

    app.register_blueprint(auth.bp)
    app.register_blueprint(health.bp)
    app.register_blueprint(users.bp)

    init_session_authentication(app)
    errors.register_error_handlers(app)

    logger.info("Application created with profile=%s", cfg.auth_profile)

    return app


def build_user_info_lookup(cfg: AppConfig) -> CachingAppUserInfoLookup:
    """Cached Keycloak lookup derived from the OIDC client registration."""
    keycloak_lookup = KeycloakAppUserInfoLookup(
        create_credentials(cfg.oidc_issuer, cfg.oidc_client_id, cfg.oidc_client_secret)
    )
    lookup = CachingAppUserInfoLookup.from_config(CacheConfig(
        delegate=keycloak_lookup,
        max_size=cfg.user_info_cache_max_size,
        expire_after_write=cfg.user_info_cache_expire_after_write,
        expire_after_access=cfg.user_info_cache_expire_after_access,
    ))
    # Release the Keycloak connection pool on shutdown
    atexit.register(lookup.close)
    return lookup


def _configure_logging(level: str) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger("app_identity").setLevel(level)
