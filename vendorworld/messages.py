from __future__ import annotations

from typing import Dict, List

from vendorworld.rfq.rfq_policy import frontend_bundle as lifecycle_frontend_bundle


FRIENDLY_TERMS: Dict[str, str] = {
    "app_name": "VendorWorld",
    "rfq": "Request for Quotation",
    "quote": "Quote",
    "participant": "Participant",
    "vendor": "Vendor",
    "client": "Client",
}


STATUS_GROUPS: Dict[str, List[Dict[str, str]]] = {
    "rfq": [
        {
            "key": "draft",
            "label": "Draft",
            "description": "Being prepared by the client, not visible to vendors yet.",
        },
        {
            "key": "open",
            "label": "Open",
            "description": "Published and accepting quotes.",
        },
        {
            "key": "closed",
            "label": "Closed",
            "description": "No longer accepting quotes.",
        },
        {
            "key": "awarded",
            "label": "Awarded",
            "description": "A vendor has been selected.",
        },
        {
            "key": "cancelled",
            "label": "Cancelled",
            "description": "Withdrawn by the client.",
        },
    ],
    "quote": [
        {
            "key": "draft",
            "label": "Draft",
            "description": "Saved by the vendor but not submitted.",
        },
        {
            "key": "submitted",
            "label": "Submitted",
            "description": "Sent to the client for review.",
        },
    ],
    "participant": [
        {
            "key": "invited",
            "label": "Invited",
            "description": "Invitation sent, waiting for the vendor.",
        },
        {
            "key": "accepted",
            "label": "Accepted",
            "description": "The vendor accepted the invitation.",
        },
        {
            "key": "declined",
            "label": "Declined",
            "description": "The vendor declined the invitation.",
        },
        {
            "key": "submitted",
            "label": "Submitted",
            "description": "The vendor submitted a quote.",
        },
    ],
}


REPORT_RANGES: List[Dict[str, str]] = [
    {"key": "week", "label": "Last 7 days"},
    {"key": "month", "label": "This month"},
    {"key": "quarter", "label": "Last 90 days"},
]


MESSAGES: Dict[str, Dict[str, str]] = {
    "success": {
        "rfq_created_draft": "RFQ saved as draft successfully!",
        "rfq_created_open": "RFQ published successfully!",
        "rfq_updated": "RFQ updated successfully.",
        "rfq_status_updated": "RFQ status updated to {status}.",
        "rfq_deleted": "RFQ deleted successfully.",
        "vendor_invited": "Vendor invited successfully.",
        "participant_removed": "Participant removed successfully.",
        "invitation_answered": "Invitation updated successfully.",
        "quote_submitted": "Quote submitted successfully!",
        "quote_updated": "Quote updated successfully!",
        "profile_updated": "Profile updated successfully.",
        "notifications_updated": "Notifications updated.",
    },
    "error": {
        "action_invalid": "This action is not valid here.",
        "action_not_allowed_for_status": "This action is not allowed for the current status.",
        "amount_invalid": "Please enter a valid quote amount.",
        "amount_required": "Please enter a quote amount.",
        "auth_invalid_credentials": "Invalid credentials. Please try again.",
        "auth_missing_credentials": "Please enter email and password.",
        "auth_required": "Please sign in to continue.",
        "confirmation_required": "Please explicitly confirm this action to continue.",
        "conflict": "This record was changed by someone else.",
        "delete_failed": "Failed to delete. Please try again.",
        "due_date_invalid": "Please enter a valid due date.",
        "email_already_registered": "This email is already registered. Sign in instead.",
        "email_invalid": "Please enter a valid email address.",
        "invitation_not_found": "Invitation not found.",
        "load_failed": "Failed to load data. Please try again.",
        "no_changes": "No changes were provided.",
        "not_found": "Not found.",
        "notification_not_found": "Notification not found.",
        "participant_already_invited": "This vendor is already a participant.",
        "participant_not_found": "Participant not found.",
        "password_too_short": "Password must have at least 6 characters.",
        "permission_denied": "You do not have permission to perform this action.",
        "profile_not_found": "Profile not found.",
        "range_invalid": "Unknown report range.",
        "rate_limit_exceeded": "Too many requests. Please try again shortly.",
        "rfq_closed_for_quotes": "This RFQ is no longer accepting quotes.",
        "rfq_not_found": "RFQ not found.",
        "role_invalid": "Role must be client or vendor.",
        "save_failed": "Failed to save. Please try again.",
        "status_invalid": "Status is not valid for this RFQ.",
        "storage_error": "Failed to reach the data store. Please try again.",
        "title_required": "Please enter a title for your RFQ.",
        "unexpected_error": "Something went wrong. Please try again.",
        "update_failed": "Failed to update. Please try again.",
        "validation_error": "Please review the submitted data.",
        "vendor_id_required": "Please select a vendor.",
        "vendor_not_found": "Vendor not found.",
    },
    "confirm": {
        "delete_rfq": "Are you sure you want to delete this RFQ?",
        "cancel_rfq": "Are you sure you want to cancel this RFQ?",
        "remove_participant": "Are you sure you want to remove this participant?",
    },
}


def status_keys_for_group(group: str) -> List[str]:
    return [item["key"] for item in STATUS_GROUPS.get(group, [])]


def status_label(group: str, key: str | None) -> str:
    for item in STATUS_GROUPS.get(group, []):
        if item["key"] == key:
            return item["label"]
    return str(key or "")


def get_message(category: str, key: str, default: str | None = None) -> str:
    message = MESSAGES.get(category, {}).get(key)
    if message:
        return message
    if default is not None:
        return default
    return key


def error_message(key: str, default: str | None = None) -> str:
    return get_message("error", key, default)


def success_message(key: str, default: str | None = None, **params: str) -> str:
    message = get_message("success", key, default)
    if params:
        return message.format(**params)
    return message


def confirm_message(key: str, default: str | None = None) -> str:
    return get_message("confirm", key, default)


def frontend_bundle() -> Dict[str, object]:
    return {
        "terms": FRIENDLY_TERMS,
        "status_groups": STATUS_GROUPS,
        "report_ranges": REPORT_RANGES,
        "lifecycle": lifecycle_frontend_bundle(),
        "confirm": dict(MESSAGES["confirm"]),
    }
