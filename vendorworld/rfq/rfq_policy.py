from __future__ import annotations

from typing import Dict, List, Mapping


RFQ_STATUSES: List[str] = ["draft", "open", "closed", "awarded", "cancelled"]
CREATE_STATUSES = {"draft", "open"}
QUOTE_CLOSED_STATUSES = {"closed", "awarded", "cancelled"}
COMPLETED_STATUSES = {"closed", "awarded"}

AUDIENCE_OWNER = "owner"
AUDIENCE_VENDOR = "vendor"


ACTION_LABELS: Dict[str, str] = {
    "edit_rfq": "Edit",
    "publish_rfq": "Publish",
    "close_rfq": "Close RFQ",
    "cancel_rfq": "Cancel RFQ",
    "delete_rfq": "Delete",
    "manage_participants": "Manage participants",
    "view_quotes": "View quotes",
    "submit_quote": "Submit quote",
    "view_rfq": "View RFQ",
}


# Status each transition action writes.
TRANSITIONS: Dict[str, str] = {
    "publish_rfq": "open",
    "close_rfq": "closed",
    "cancel_rfq": "cancelled",
}


FLOW_POLICY: Dict[str, Dict[str, Dict[str, object]]] = {
    AUDIENCE_OWNER: {
        "draft": {
            "allowed_actions": ["edit_rfq", "publish_rfq", "cancel_rfq", "delete_rfq", "manage_participants"],
            "primary_action": "publish_rfq",
        },
        "open": {
            "allowed_actions": ["close_rfq", "cancel_rfq", "delete_rfq", "manage_participants", "view_quotes"],
            "primary_action": "manage_participants",
        },
        "closed": {
            "allowed_actions": ["cancel_rfq", "delete_rfq", "view_quotes"],
            "primary_action": "view_quotes",
        },
        "awarded": {
            "allowed_actions": ["cancel_rfq", "delete_rfq", "view_quotes"],
            "primary_action": "view_quotes",
        },
        "cancelled": {
            "allowed_actions": ["delete_rfq", "view_quotes"],
            "primary_action": "view_quotes",
        },
    },
    AUDIENCE_VENDOR: {
        "draft": {
            "allowed_actions": ["submit_quote", "view_rfq"],
            "primary_action": "submit_quote",
        },
        "open": {
            "allowed_actions": ["submit_quote", "view_rfq"],
            "primary_action": "submit_quote",
        },
        "closed": {
            "allowed_actions": ["view_rfq"],
            "primary_action": "view_rfq",
        },
        "awarded": {
            "allowed_actions": ["view_rfq"],
            "primary_action": "view_rfq",
        },
        "cancelled": {
            "allowed_actions": ["view_rfq"],
            "primary_action": "view_rfq",
        },
    },
}


def _fallback_policy() -> Dict[str, object]:
    return {"allowed_actions": [], "primary_action": None}


def status_policy(audience: str | None, status: str | None) -> Dict[str, object]:
    if not audience or not status:
        return _fallback_policy()
    return FLOW_POLICY.get(audience, {}).get(str(status), _fallback_policy())


def allowed_actions(audience: str | None, status: str | None) -> List[str]:
    actions = status_policy(audience, status).get("allowed_actions") or []
    if not isinstance(actions, list):
        return []
    return [str(action) for action in actions]


def primary_action(audience: str | None, status: str | None) -> str | None:
    action = status_policy(audience, status).get("primary_action")
    if not action:
        return None
    return str(action)


def action_allowed(audience: str | None, status: str | None, action: str) -> bool:
    if not action:
        return False
    return action in set(allowed_actions(audience, status))


def target_status(action: str) -> str | None:
    return TRANSITIONS.get(str(action or "").strip())


def accepts_quotes(status: str | None) -> bool:
    return str(status or "") not in QUOTE_CLOSED_STATUSES


def viewer_audience(rfq: Mapping[str, object], user_id: str | None, role: str | None) -> str | None:
    """Which action table applies to ``user_id`` looking at ``rfq``.

    The creator always gets the owner table, whatever their role; any other
    vendor gets the vendor table; everyone else gets nothing.
    """
    if user_id and str(rfq.get("created_by") or "") == str(user_id):
        return AUDIENCE_OWNER
    if role == "vendor":
        return AUDIENCE_VENDOR
    return None


def flow_meta(audience: str | None, status: str | None) -> Dict[str, object]:
    return {
        "audience": audience,
        "status": status,
        "allowed_actions": allowed_actions(audience, status),
        "primary_action": primary_action(audience, status),
    }


def frontend_bundle() -> Dict[str, object]:
    return {
        "statuses": RFQ_STATUSES,
        "policy": FLOW_POLICY,
        "transitions": TRANSITIONS,
        "action_labels": ACTION_LABELS,
    }
