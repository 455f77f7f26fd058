"""Authentication routes.

Profiles:
- oidc: /login redirects to Keycloak, /callback stores the OIDC principal
- dev:  /login shows a form for the in-memory development users
"""
from __future__ import annotations
import logging

from flask import Blueprint, abort, current_app, jsonify, redirect, render_template_string, request, url_for
from authlib.integrations.flask_client import OAuth

from app_identity.core.oidc import load_oidc_user
from . import session as session_auth

bp = Blueprint("auth", __name__)
logger = logging.getLogger(__name__)

# Module-level OAuth instance (will be initialized by create_app)
oauth: OAuth = None

_DEV_LOGIN_FORM = """<!doctype html>
<title>Development login</title>
<form method="post" action="{{ url_for('auth.login') }}">
  <label>Email <input name="username" type="email" autofocus></label>
  <label>Password <input name="password" type="password"></label>
  <button type="submit">Log in</button>
  {% if error %}<p role="alert">{{ error }}</p>{% endif %}
</form>
"""


def init_oauth(app, cfg):
    """Register the Keycloak OIDC client with Authlib."""
    global oauth

    oauth = OAuth(app)
    oauth.register(
        name="keycloak",
        server_metadata_url=f"{cfg.oidc_issuer.rstrip('/')}/.well-known/openid-configuration",
        client_id=cfg.oidc_client_id,
        client_secret=cfg.oidc_client_secret or None,
        client_kwargs={"scope": "openid profile email"},
    )
    return oauth


def get_oidc_client():
    """Get the registered Keycloak OIDC client."""
    if oauth is None:
        raise RuntimeError("OIDC client not initialized. Call init_oauth first.")
    return oauth.create_client("keycloak")


def _dev_mode() -> bool:
    return current_app.config["APP_CONFIG"].dev_mode


@bp.route("/login", methods=["GET", "POST"])
def login():
    """Start a login for the active profile."""
    if not _dev_mode():
        if request.method != "GET":
            abort(405)
        cfg = current_app.config["APP_CONFIG"]
        redirect_uri = cfg.oidc_redirect_uri or url_for("auth.callback", _external=True)
        return get_oidc_client().authorize_redirect(redirect_uri)

    if request.method == "GET":
        return render_template_string(_DEV_LOGIN_FORM, error=None)

    payload = request.get_json(silent=True) if request.is_json else request.form
    username = (payload or {}).get("username", "")
    password = (payload or {}).get("password", "")

    registry = current_app.extensions["dev_user_registry"]
    user = registry.authenticate(username, password)
    if user is None:
        logger.warning("Failed development login for '%s'", username)
        if request.is_json:
            return jsonify({"error": "Unauthorized", "message": "Invalid username or password"}), 401
        return render_template_string(_DEV_LOGIN_FORM, error="Invalid username or password"), 401

    session_auth.store_dev_principal(user.user_id)
    logger.info("Development user %s logged in", user.user_id)
    if request.is_json:
        return jsonify({"userId": str(user.user_id)})
    return redirect(url_for("users.me"))


@bp.route("/callback")
def callback():
    """Complete the OIDC authorization code flow."""
    if _dev_mode():
        abort(404)

    token = get_oidc_client().authorize_access_token()
    try:
        principal = load_oidc_user(token)
    except ValueError as exc:
        logger.warning("Rejected OIDC login: %s", exc)
        abort(400, description="Identity provider returned incomplete user claims")

    session_auth.store_oidc_principal(principal)
    logger.info("OIDC user %s logged in", principal.subject)
    return redirect(url_for("users.me"))


@bp.route("/logout")
def logout():
    """Forget the session principal."""
    session_auth.clear_principal()
    return redirect(url_for("auth.login"))
