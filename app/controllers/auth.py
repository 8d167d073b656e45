from flask import Blueprint, current_app, jsonify

from ..models.user import roles_from_claims
from ..services.identity_service import IdentityService
from ..services.user_service import UserService
from ..utils.constants import TOKEN_COOKIE
from ..utils.decorators import current_principal, login_required
from .common import json_body

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@bp.post("/register")
def register_submit():
    """Any "role" in the body is ignored; owner rights come from an approved request."""
    data = json_body("email", "password")
    uid = UserService.register(data["email"], data["password"])
    return jsonify({"message": "Registration successful", "user_id": uid}), 201


@bp.post("/login")
def login_submit():
    """Check the password and set the signed token cookie."""
    data = json_body("email", "password")
    user = UserService.authenticate(data["email"], data["password"])
    token = IdentityService.issue_token(user, current_app.config["SECRET_KEY"])

    roles = roles_from_claims(user.get("role"), bool(user.get("is_admin")))
    resp = jsonify({"user_id": user["user_id"], "roles": sorted(roles), "token": token})
    resp.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=current_app.config["TOKEN_MAX_AGE"],
        httponly=True,
        samesite="Lax",
        secure=current_app.config["APP_ENV"] == "production",
    )
    return resp


@bp.post("/logout")
def logout():
    resp = jsonify({"message": "Logged out"})
    resp.delete_cookie(TOKEN_COOKIE)
    return resp


@bp.get("/me")
@login_required
def me():
    p = current_principal()
    return jsonify({"user_id": p.user_id, "roles": sorted(p.roles)})
