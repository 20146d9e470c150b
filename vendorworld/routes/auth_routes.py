from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session

from vendorworld.application.auth_service import AuthService
from vendorworld.db import get_db
from vendorworld.domain.contracts import AuthLoginInput, AuthRegisterInput, AuthUser
from vendorworld.errors import AuthenticationError
from vendorworld.policies import current_role, current_user_id
from vendorworld.routes.common import json_payload


LOGIN_URL = "/api/auth/login"
_PUBLIC_PATHS = {"/health"}

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")
_AUTH_SERVICE = AuthService()


def register_auth(app) -> None:
    app.register_blueprint(auth_bp)

    @app.before_request
    def _require_login():
        if not app.config.get("AUTH_ENABLED", True):
            return None
        path = request.path or "/"
        if path in _PUBLIC_PATHS or path.startswith("/api/auth/"):
            return None
        if not path.startswith("/api/"):
            return None
        if current_user_id():
            return None
        raise AuthenticationError(payload={"login_url": LOGIN_URL})


def _start_session(user: AuthUser) -> None:
    session.clear()
    session["user_id"] = user.id
    session["user_email"] = user.email
    session["user_role"] = user.role
    session["display_name"] = user.display_name


def _session_payload() -> dict:
    return {
        "authenticated": bool(current_user_id()),
        "user": {
            "id": current_user_id(),
            "email": session.get("user_email"),
            "role": current_role() or None,
            "display_name": session.get("display_name"),
        }
        if current_user_id()
        else None,
    }


@auth_bp.route("/register", methods=["POST"])
def register():
    payload = json_payload()
    db = get_db()
    user = _AUTH_SERVICE.register(
        db,
        AuthRegisterInput(
            email=str(payload.get("email") or ""),
            password=str(payload.get("password") or ""),
            role=str(payload.get("role") or ""),
            full_name=payload.get("full_name"),
            company_name=payload.get("company_name"),
        ),
    )
    db.commit()
    _start_session(user)
    current_app.logger.info("user_registered", extra={"user_id": user.id, "role": user.role})
    return jsonify(_session_payload()), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    payload = json_payload()
    user = _AUTH_SERVICE.login(
        get_db(),
        AuthLoginInput(
            email=str(payload.get("email") or ""),
            password=str(payload.get("password") or ""),
        ),
    )
    if not user:
        raise AuthenticationError(code="auth_invalid_credentials", message_key="auth_invalid_credentials")
    _start_session(user)
    return jsonify(_session_payload()), 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    session.clear()
    return jsonify({"authenticated": False, "login_url": LOGIN_URL}), 200


@auth_bp.route("/session", methods=["GET"])
def current_session():
    return jsonify(_session_payload()), 200
