"""User information endpoints."""
from __future__ import annotations
from typing import Any, Dict

from flask import Blueprint, abort, current_app, g, jsonify

from app_identity.core.domain import UserId
from app_identity.core.user_info import AppUserInfo
from .session import login_required

bp = Blueprint("users", __name__)


def user_info_to_dict(info: AppUserInfo) -> Dict[str, Any]:
    return {
        "userId": str(info.user_id),
        "fullName": info.full_name,
        "email": str(info.email),
        "profileUrl": info.profile_url,
        "pictureUrl": info.picture_url,
        "zoneId": str(info.zone_id),
        "locale": info.locale,
    }


@bp.route("/me")
@login_required
def me():
    """Return the current user."""
    return jsonify(user_info_to_dict(g.current_user))


@bp.route("/users/<user_id>")
@login_required
def get_user(user_id: str):
    """Resolve any user by id, e.g. the author of a record."""
    lookup = current_app.extensions["user_info_lookup"]
    info = lookup.find_user_info(UserId.of(user_id))
    if info is None:
        abort(404)
    return jsonify(user_info_to_dict(info))
