"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
import secrets
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

PROFILE_DEV = "dev"
PROFILE_OIDC = "oidc"
SUPPORTED_PROFILES = {PROFILE_DEV, PROFILE_OIDC}


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _seconds(var_name: str, default: Optional[int]) -> Optional[timedelta]:
    """Read a duration in seconds; unset uses ``default``, ``0`` disables."""
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return timedelta(seconds=default) if default else None
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer number of seconds.")
    if value < 0:
        raise RuntimeError(f"Environment variable {var_name} must not be negative.")
    return timedelta(seconds=value) if value else None


def _require(var_name: str, value: str, profile: str) -> str:
    if not value:
        raise RuntimeError(f"Environment variable {var_name} is required for AUTH_PROFILE={profile}.")
    return value


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    auth_profile: str

    # Flask
    secret_key: str
    session_cookie_secure: bool = True
    log_level: str = "INFO"

    # OIDC client (Keycloak)
    oidc_issuer: str = ""
    oidc_client_id: str = ""
    oidc_client_secret: str = ""
    oidc_redirect_uri: str = ""

    # User info cache
    user_info_cache_max_size: int = 1000
    user_info_cache_expire_after_write: Optional[timedelta] = timedelta(minutes=15)
    user_info_cache_expire_after_access: Optional[timedelta] = None

    # Development users
    dev_user_password: str = "tops3cr3t"

    @property
    def dev_mode(self) -> bool:
        return self.auth_profile == PROFILE_DEV


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets.

    Raises:
        RuntimeError: If the profile is unknown or required settings are missing
    """
    auth_profile = os.environ.get("AUTH_PROFILE", PROFILE_OIDC).strip().lower()
    if auth_profile not in SUPPORTED_PROFILES:
        raise RuntimeError(f"AUTH_PROFILE must be one of {sorted(SUPPORTED_PROFILES)}, got '{auth_profile}'.")
    dev_mode = auth_profile == PROFILE_DEV

    # Flask secret key
    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key:
        if not dev_mode:
            raise RuntimeError("FLASK_SECRET_KEY not found in /run/secrets or environment")
        secret_key = secrets.token_urlsafe(48)
        logger.warning("Generated temporary FLASK_SECRET_KEY for the dev profile")

    session_cookie_secure = os.environ.get("FLASK_SESSION_COOKIE_SECURE", str(not dev_mode)).lower() == "true"
    log_level = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    # OIDC
    oidc_issuer = os.environ.get("OIDC_ISSUER", "").strip()
    oidc_client_id = os.environ.get("OIDC_CLIENT_ID", "").strip()
    oidc_client_secret = _load_secret_from_file("oidc_client_secret", "OIDC_CLIENT_SECRET") or ""
    oidc_redirect_uri = os.environ.get("OIDC_REDIRECT_URI", "").strip()
    if not dev_mode:
        _require("OIDC_ISSUER", oidc_issuer, auth_profile)
        _require("OIDC_CLIENT_ID", oidc_client_id, auth_profile)
        _require("OIDC_CLIENT_SECRET", oidc_client_secret, auth_profile)

    # User info cache
    raw_max_size = os.environ.get("USER_INFO_CACHE_MAX_SIZE", "1000").strip()
    try:
        cache_max_size = int(raw_max_size)
    except ValueError:
        raise RuntimeError("Environment variable USER_INFO_CACHE_MAX_SIZE must be an integer.")
    if cache_max_size < 0:
        raise RuntimeError("Environment variable USER_INFO_CACHE_MAX_SIZE must not be negative.")

    expire_after_write = _seconds("USER_INFO_CACHE_EXPIRE_AFTER_WRITE", 15 * 60)
    expire_after_access = _seconds("USER_INFO_CACHE_EXPIRE_AFTER_ACCESS", None)

    dev_user_password = _load_secret_from_file("dev_user_password", "DEV_USER_PASSWORD") or "tops3cr3t"

    logger.info("Settings loaded: profile=%s; client_id=%s", auth_profile, oidc_client_id or "-")
    if dev_mode:
        logger.warning("Development users in use. Do not deploy with AUTH_PROFILE=dev.")

    return AppConfig(
        auth_profile=auth_profile,
        secret_key=secret_key,
        session_cookie_secure=session_cookie_secure,
        log_level=log_level,
        oidc_issuer=oidc_issuer,
        oidc_client_id=oidc_client_id,
        oidc_client_secret=oidc_client_secret,
        oidc_redirect_uri=oidc_redirect_uri,
        user_info_cache_max_size=cache_max_size,
        user_info_cache_expire_after_write=expire_after_write,
        user_info_cache_expire_after_access=expire_after_access,
        dev_user_password=dev_user_password,
    )
