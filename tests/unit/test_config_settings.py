from datetime import timedelta

import pytest

from app_identity.config import settings

SETTINGS_ENV = (
    "AUTH_PROFILE",
    "FLASK_SECRET_KEY",
    "FLASK_SESSION_COOKIE_SECURE",
    "LOG_LEVEL",
    "OIDC_ISSUER",
    "OIDC_CLIENT_ID",
    "OIDC_CLIENT_SECRET",
    "OIDC_REDIRECT_URI",
    "USER_INFO_CACHE_MAX_SIZE",
    "USER_INFO_CACHE_EXPIRE_AFTER_WRITE",
    "USER_INFO_CACHE_EXPIRE_AFTER_ACCESS",
    "DEV_USER_PASSWORD",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)

    # Point /run/secrets at an empty directory
    secrets_dir = tmp_path / "secrets"
    secrets_dir.mkdir()
    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return secrets_dir
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)
    return secrets_dir


@pytest.fixture()
def oidc_env(monkeypatch):
    monkeypatch.setenv("FLASK_SECRET_KEY", "secret")
    monkeypatch.setenv("OIDC_ISSUER", "https://kc.example.com/realms/demo")
    monkeypatch.setenv("OIDC_CLIENT_ID", "app")
    monkeypatch.setenv("OIDC_CLIENT_SECRET", "app-secret")


def test_oidc_profile_is_default(oidc_env):
    cfg = settings.load_settings()
    assert cfg.auth_profile == "oidc"
    assert cfg.dev_mode is False
    assert cfg.session_cookie_secure is True
    assert cfg.oidc_issuer == "https://kc.example.com/realms/demo"
    assert cfg.oidc_client_secret == "app-secret"


def test_cache_defaults(oidc_env):
    cfg = settings.load_settings()
    assert cfg.user_info_cache_max_size == 1000
    assert cfg.user_info_cache_expire_after_write == timedelta(minutes=15)
    assert cfg.user_info_cache_expire_after_access is None


def test_cache_settings_from_env(oidc_env, monkeypatch):
    monkeypatch.setenv("USER_INFO_CACHE_MAX_SIZE", "50")
    monkeypatch.setenv("USER_INFO_CACHE_EXPIRE_AFTER_WRITE", "0")
    monkeypatch.setenv("USER_INFO_CACHE_EXPIRE_AFTER_ACCESS", "120")

    cfg = settings.load_settings()

    assert cfg.user_info_cache_max_size == 50
    assert cfg.user_info_cache_expire_after_write is None
    assert cfg.user_info_cache_expire_after_access == timedelta(minutes=2)


@pytest.mark.parametrize(
    "name,value",
    [
        ("USER_INFO_CACHE_MAX_SIZE", "many"),
        ("USER_INFO_CACHE_MAX_SIZE", "-1"),
        ("USER_INFO_CACHE_EXPIRE_AFTER_WRITE", "15m"),
        ("USER_INFO_CACHE_EXPIRE_AFTER_ACCESS", "-5"),
    ],
)
def test_invalid_cache_settings(oidc_env, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError, match=name):
        settings.load_settings()


@pytest.mark.parametrize("missing", ["OIDC_ISSUER", "OIDC_CLIENT_ID", "OIDC_CLIENT_SECRET"])
def test_oidc_profile_requires_client(oidc_env, monkeypatch, missing):
    monkeypatch.delenv(missing)
    with pytest.raises(RuntimeError, match=missing):
        settings.load_settings()


def test_oidc_profile_requires_secret_key(oidc_env, monkeypatch):
    monkeypatch.delenv("FLASK_SECRET_KEY")
    with pytest.raises(RuntimeError, match="FLASK_SECRET_KEY"):
        settings.load_settings()


def test_unknown_profile(monkeypatch):
    monkeypatch.setenv("AUTH_PROFILE", "ldap")
    with pytest.raises(RuntimeError, match="AUTH_PROFILE"):
        settings.load_settings()


def test_dev_profile_needs_no_oidc(monkeypatch):
    monkeypatch.setenv("AUTH_PROFILE", "DEV")

    cfg = settings.load_settings()

    assert cfg.dev_mode is True
    assert cfg.session_cookie_secure is False
    assert len(cfg.secret_key) >= 32
    assert cfg.dev_user_password == "tops3cr3t"


def test_dev_password_from_env(monkeypatch):
    monkeypatch.setenv("AUTH_PROFILE", "dev")
    monkeypatch.setenv("DEV_USER_PASSWORD", "changed")
    assert settings.load_settings().dev_user_password == "changed"


def test_secret_read_from_run_secrets(oidc_env, clean_env):
    (clean_env / "oidc_client_secret").write_text("file-secret\n")
    assert settings.load_settings().oidc_client_secret == "file-secret"


def test_secret_falls_back_to_env(monkeypatch):
    monkeypatch.setenv("OIDC_CLIENT_SECRET", "env-secret")
    assert settings._load_secret_from_file("oidc_client_secret", "OIDC_CLIENT_SECRET") == "env-secret"


def test_secret_missing_everywhere():
    assert settings._load_secret_from_file("oidc_client_secret", "OIDC_CLIENT_SECRET") is None


def test_log_level(oidc_env, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert settings.load_settings().log_level == "DEBUG"
