"""Pytest shared fixtures."""
import json
import pathlib
import sys
from datetime import timedelta
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from app_identity.config.settings import AppConfig
from app_identity.core.domain import Email, UserId
from app_identity.core.user_info import StaticUserInfo


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_real_http(monkeypatch, request):
    """
    Prevent unit tests from hitting a live Keycloak.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _stub_request(self, method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests.Session, "request", _stub_request)


# ─────────────────────────────────────────────────────────────────────────────
# Fake HTTP
# ─────────────────────────────────────────────────────────────────────────────
class StubResponse:
    def __init__(self, payload: Optional[dict] = None, status_code: int = 200, url: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        self.text = json.dumps(payload) if payload is not None else ""

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSession:
    """Records requests and answers from a route table keyed by (method, url)."""

    def __init__(self, routes: Optional[dict] = None):
        self.routes = dict(routes or {})
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        answer = self.routes.get((method, url))
        if answer is None:
            return StubResponse({"error": "not routed"}, status_code=404, url=url)
        if isinstance(answer, Exception):
            raise answer
        answer.url = url
        return answer

    def close(self):
        self.closed = True


@pytest.fixture()
def fake_session():
    return FakeSession()


# ─────────────────────────────────────────────────────────────────────────────
# Domain Fixtures
# ─────────────────────────────────────────────────────────────────────────────
def make_user_info(user_id: str = "user-1", email: str = "user@example.com", **overrides) -> StaticUserInfo:
    values = dict(
        user_id=UserId.of(user_id),
        full_name="Ursula User",
        email=Email.of(email),
        locale="en-US",
    )
    values.update(overrides)
    return StaticUserInfo(**values)


def make_config(**overrides) -> AppConfig:
    base = dict(
        auth_profile="dev",
        secret_key="test-secret",
        session_cookie_secure=False,
        log_level="INFO",
        oidc_issuer="https://kc.example.com/realms/demo",
        oidc_client_id="app",
        oidc_client_secret="app-secret",
        oidc_redirect_uri="http://localhost/callback",
        user_info_cache_max_size=1000,
        user_info_cache_expire_after_write=timedelta(minutes=15),
        user_info_cache_expire_after_access=None,
        dev_user_password="tops3cr3t",
    )
    base.update(overrides)
    return AppConfig(**base)


@pytest.fixture()
def session_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("FLASK_SESSION_DIR", str(tmp_path / "sessions"))
    return tmp_path / "sessions"
