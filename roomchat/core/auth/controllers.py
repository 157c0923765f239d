"""Auth HTTP controllers (API only)."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from roomchat.core.auth.middleware import VerifiedIdentity
from roomchat.core.auth.session_services import LoginResult, SessionAuthority
from roomchat.core.errors import UserNotFound
from roomchat.core.users.schemas import (
    LoginLinkRequest,
    LoginLinkVerify,
    LoginRequest,
    RegisterRequest,
    serialize_user,
)
from roomchat.core.users.services import get_user, register_user
from roomchat.core.utils.decorators import session_required
from roomchat.core.utils.validation import parse_body, validation_error
from roomchat.extensions import limiter

auth_bp = Blueprint("auth_api", __name__)


def _login_limit() -> str:
    return current_app.config["LOGIN_RATE_LIMIT"]


def _session_payload(result: LoginResult) -> dict:
    return {
        "ok": True,
        "token": result.token,
        "session_id": result.session_id,
        "expires_at": result.expires_at.isoformat(),
        "user": result.user.model_dump(mode="json"),
    }


@auth_bp.post("/register")
@limiter.limit("5/minute")
def register():
    data, err = parse_body(RegisterRequest)
    if err:
        return validation_error(err)
    user = register_user(data)
    return jsonify({"ok": True, "user": serialize_user(user).model_dump(mode="json")}), 201


@auth_bp.post("/login")
@limiter.limit(_login_limit)
def login():
    data, err = parse_body(LoginRequest)
    if err:
        return validation_error(err)
    result = SessionAuthority().login(data.email, data.password)
    return jsonify(_session_payload(result))


@auth_bp.post("/login-link")
@limiter.limit("5/minute")
def request_login_link():
    data, err = parse_body(LoginLinkRequest)
    if err:
        return validation_error(err)
    SessionAuthority().request_login_link(data.email)
    return jsonify({"ok": True, "message": "if the account exists, a login link has been sent"})


@auth_bp.post("/login-link/verify")
@limiter.limit(_login_limit)
def verify_login_link():
    data, err = parse_body(LoginLinkVerify)
    if err:
        return validation_error(err)
    result = SessionAuthority().login_with_link(data.token)
    return jsonify(_session_payload(result))


@auth_bp.post("/logout")
@session_required
def logout(identity: VerifiedIdentity):
    SessionAuthority().logout(identity.session_id, identity.user_id)
    return jsonify({"ok": True})


@auth_bp.get("/me")
@session_required
def me(identity: VerifiedIdentity):
    user = get_user(identity.user_id)
    if not user:
        raise UserNotFound()
    return jsonify(
        {
            "ok": True,
            "user": serialize_user(user).model_dump(mode="json"),
            "session_id": identity.session_id,
        }
    )
