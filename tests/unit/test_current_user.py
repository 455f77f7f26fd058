"""Tests for CurrentUser and the auditor helper."""
import logging

import pytest

from app_identity.core.current_user import (
    AnonymousAuthentication,
    Authentication,
    AuthenticationCredentialsNotFoundError,
    CurrentUser,
    current_auditor,
)
from app_identity.core.domain import UserId
from app_identity.core.oidc import OidcUserAdapter
from tests.conftest import make_user_info


class Bridge:
    def __init__(self, info):
        self.info = info

    def get_app_user_info(self):
        return self.info


class TestGet:
    def test_none_authentication(self):
        assert CurrentUser.get(None) is None

    def test_anonymous(self):
        assert CurrentUser.get(AnonymousAuthentication()) is None

    def test_null_principal(self):
        assert CurrentUser.get(Authentication(principal=None)) is None

    def test_bridge_principal(self):
        info = make_user_info()
        assert CurrentUser.get(Authentication(principal=Bridge(info))) is info

    def test_oidc_principal(self):
        adapter = OidcUserAdapter({"sub": "abc", "email": "a@example.com", "name": "A"})
        assert CurrentUser.get(Authentication(principal=adapter)).user_id == UserId.of("abc")

    def test_user_info_principal(self):
        info = make_user_info()
        assert CurrentUser.get(Authentication(principal=info)) is info

    def test_unexpected_principal_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="app_identity.core.current_user"):
            assert CurrentUser.get(Authentication(principal="someone")) is None
        assert "Unexpected principal type: str" in caplog.text


class TestRequire:
    def test_returns_user(self):
        info = make_user_info()
        assert CurrentUser.require(Authentication(principal=info)) is info

    @pytest.mark.parametrize("auth", [None, AnonymousAuthentication(), Authentication(principal=object())])
    def test_raises_without_user(self, auth):
        with pytest.raises(AuthenticationCredentialsNotFoundError, match="No current user"):
            CurrentUser.require(auth)


def test_current_auditor():
    info = make_user_info("auditor-1")
    assert current_auditor(Authentication(principal=info)) == UserId.of("auditor-1")
    assert current_auditor(AnonymousAuthentication()) is None
