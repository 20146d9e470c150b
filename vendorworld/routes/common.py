from __future__ import annotations

from typing import Any, Dict

from flask import current_app, g, jsonify, request

from vendorworld.domain.contracts import ServiceOutput, Viewer
from vendorworld.errors import ValidationError
from vendorworld.messages import confirm_message
from vendorworld.policies import current_role, require_user
from vendorworld.rfq.critical_actions import get_critical_action, resolve_confirmation


def current_viewer() -> Viewer:
    return Viewer(user_id=require_user(), role=current_role())


def json_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def respond(result: ServiceOutput):
    return jsonify(result.payload), result.status_code


def critical_confirmation_details(action_key: str) -> dict | None:
    meta = get_critical_action(action_key)
    if not meta:
        return None
    confirm_key = meta.get("confirm_message_key") or action_key
    return {
        "action_key": action_key,
        "confirm_key": confirm_key,
        "confirm_message": confirm_message(confirm_key, confirm_key),
    }


def require_critical_confirmation(
    action_key: str,
    *,
    entity: str,
    entity_id: str,
    payload: dict | None = None,
) -> None:
    if not get_critical_action(action_key):
        return

    confirmed, mode = resolve_confirmation(request, payload)
    if not confirmed:
        raise ValidationError(
            code="confirmation_required",
            message_key="confirmation_required",
            http_status=400,
            critical=False,
            payload={
                "action": action_key,
                "confirmation": critical_confirmation_details(action_key),
            },
        )

    current_app.logger.info(
        "confirmation_event",
        extra={
            "request_id": (getattr(g, "request_id", None) or "").strip() or "n/a",
            "action": action_key,
            "entity": entity,
            "entity_id": entity_id,
            "mode": mode,
        },
    )
