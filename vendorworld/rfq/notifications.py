from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping

from vendorworld.rfq.reporting import parse_datetime


_STATUS_NOTIFICATION_TYPES = {
    "awarded": "rfq_awarded",
    "closed": "rfq_closed",
    "cancelled": "rfq_cancelled",
}
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def quote_received_notification(quote: Mapping[str, Any]) -> Dict[str, Any]:
    title = str(quote.get("rfq_title") or "")
    return {
        "id": f"quote-{quote['id']}",
        "type": "quote_received",
        "title": "New Quote Received",
        "message": f'You received a new quote for "{title}"',
        "rfq_id": quote.get("rfq_id"),
        "rfq_title": title,
        "created_at": quote.get("submitted_at") or quote.get("created_at"),
    }


def quote_status_notification(quote: Mapping[str, Any]) -> Dict[str, Any] | None:
    """Notification for a vendor's own quote once its RFQ left the bidding phase, else None."""
    title = str(quote.get("rfq_title") or "")
    rfq_status = str(quote.get("rfq_status") or "")
    notification_type = _STATUS_NOTIFICATION_TYPES.get(rfq_status)
    if not notification_type:
        return None
    return {
        "id": f"status-{quote['id']}-{rfq_status}",
        "type": notification_type,
        "title": "RFQ Status Update",
        "message": f'RFQ "{title}" status changed to {rfq_status}',
        "rfq_id": quote.get("rfq_id"),
        "rfq_title": title,
        "created_at": quote.get("rfq_updated_at") or quote.get("updated_at"),
    }


def build_notifications(
    received_quotes: Iterable[Mapping[str, Any]],
    own_quotes: Iterable[Mapping[str, Any]],
    states: Mapping[str, Mapping[str, Any]] | None = None,
    limit: int = 20,
) -> List[Dict[str, Any]]:
    states = states or {}
    candidates: List[Dict[str, Any]] = [quote_received_notification(quote) for quote in received_quotes]
    for quote in own_quotes:
        notification = quote_status_notification(quote)
        if notification:
            candidates.append(notification)

    notifications: List[Dict[str, Any]] = []
    for notification in candidates:
        state = states.get(notification["id"]) or {}
        if state.get("dismissed_at"):
            continue
        notification["read"] = bool(state.get("read_at"))
        notifications.append(notification)

    notifications.sort(key=lambda item: parse_datetime(item.get("created_at")) or _EPOCH, reverse=True)
    return notifications[: max(0, int(limit))]


def unread_count(notifications: Iterable[Mapping[str, Any]]) -> int:
    return sum(1 for notification in notifications if not notification.get("read"))
