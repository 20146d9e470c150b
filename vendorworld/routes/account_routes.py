from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from vendorworld.application.account_service import AccountService
from vendorworld.db import get_db
from vendorworld.domain.contracts import ProfileUpdateInput
from vendorworld.messages import frontend_bundle
from vendorworld.routes.common import current_viewer, json_payload, respond


account_bp = Blueprint("accounts", __name__, url_prefix="/api")
_ACCOUNT_SERVICE = AccountService()


def _notification_limit() -> int:
    return int(current_app.config.get("NOTIFICATION_LIMIT", 20) or 20)


@account_bp.route("/profile", methods=["GET"])
def get_profile():
    return respond(_ACCOUNT_SERVICE.get_profile(get_db(), viewer=current_viewer()))


@account_bp.route("/profile", methods=["PATCH", "PUT"])
def update_profile():
    payload = json_payload()
    db = get_db()
    result = _ACCOUNT_SERVICE.update_profile(
        db,
        viewer=current_viewer(),
        update_input=ProfileUpdateInput(fields=payload),
    )
    db.commit()
    return respond(result)


@account_bp.route("/dashboard", methods=["GET"])
def dashboard():
    return respond(_ACCOUNT_SERVICE.dashboard(get_db(), viewer=current_viewer()))


@account_bp.route("/vendors", methods=["GET"])
def vendor_directory():
    search = request.args.get("search") or request.args.get("q")
    return respond(_ACCOUNT_SERVICE.vendor_directory(get_db(), viewer=current_viewer(), search=search))


@account_bp.route("/notifications", methods=["GET"])
def notifications():
    return respond(_ACCOUNT_SERVICE.notifications(get_db(), viewer=current_viewer(), limit=_notification_limit()))


@account_bp.route("/notifications/read-all", methods=["POST"])
def mark_all_notifications_read():
    db = get_db()
    result = _ACCOUNT_SERVICE.mark_notifications(db, viewer=current_viewer(), limit=_notification_limit())
    db.commit()
    return respond(result)


@account_bp.route("/notifications/<notification_id>/read", methods=["POST"])
def mark_notification_read(notification_id: str):
    db = get_db()
    result = _ACCOUNT_SERVICE.mark_notifications(
        db,
        viewer=current_viewer(),
        notification_id=notification_id,
        limit=_notification_limit(),
    )
    db.commit()
    return respond(result)


@account_bp.route("/notifications/<notification_id>", methods=["DELETE"])
def dismiss_notification(notification_id: str):
    db = get_db()
    result = _ACCOUNT_SERVICE.mark_notifications(
        db,
        viewer=current_viewer(),
        notification_id=notification_id,
        dismiss=True,
        limit=_notification_limit(),
    )
    db.commit()
    return respond(result)


@account_bp.route("/meta", methods=["GET"])
def meta():
    return jsonify(frontend_bundle()), 200
