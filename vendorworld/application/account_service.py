from __future__ import annotations

from typing import Any, Dict, List

from vendorworld.domain.contracts import ProfileUpdateInput, ServiceOutput, Viewer
from vendorworld.errors import NotFoundError, ValidationError
from vendorworld.infrastructure.repositories.account_repository import AccountRepository
from vendorworld.infrastructure.repositories.quote_repository import QuoteRepository
from vendorworld.infrastructure.repositories.rfq_repository import RfqRepository
from vendorworld.messages import success_message
from vendorworld.rfq.notifications import build_notifications, unread_count
from vendorworld.rfq.rfq_policy import COMPLETED_STATUSES


_PROFILE_FIELDS = ("full_name", "company_name")


class AccountService:
    """Profile, dashboard, vendor directory and notification center."""

    def get_profile(self, db, *, viewer: Viewer) -> ServiceOutput:
        profile = AccountRepository(viewer_id=viewer.user_id).get_profile(db)
        if not profile:
            raise NotFoundError(code="profile_not_found", message_key="profile_not_found")
        return ServiceOutput(payload={"profile": profile})

    def update_profile(self, db, *, viewer: Viewer, update_input: ProfileUpdateInput) -> ServiceOutput:
        repository = AccountRepository(viewer_id=viewer.user_id)
        if not repository.get_profile(db):
            raise NotFoundError(code="profile_not_found", message_key="profile_not_found")
        fields: Dict[str, Any] = {}
        payload = update_input.fields or {}
        for column in _PROFILE_FIELDS:
            if column in payload:
                fields[column] = str(payload.get(column) or "").strip() or None
        if not fields:
            raise ValidationError(
                code="no_changes",
                message_key="no_changes",
                payload={"editable_fields": list(_PROFILE_FIELDS)},
            )
        repository.update_profile(db, fields)
        return ServiceOutput(
            payload={
                "profile": repository.get_profile(db),
                "message": success_message("profile_updated"),
            }
        )

    def dashboard(self, db, *, viewer: Viewer) -> ServiceOutput:
        owned = RfqRepository(viewer_id=viewer.user_id).list_owned_statuses(db)
        own_quotes = QuoteRepository(viewer_id=viewer.user_id).list_own(db)
        return ServiceOutput(
            payload={
                "role": viewer.role,
                "active_rfqs": sum(1 for rfq in owned if rfq.get("status") == "open"),
                "completed_rfqs": sum(1 for rfq in owned if rfq.get("status") in COMPLETED_STATUSES),
                "pending_quotes": sum(1 for quote in own_quotes if quote.get("status") == "draft"),
                "total_vendors": AccountRepository(viewer_id=viewer.user_id).count_vendors(db),
            }
        )

    def vendor_directory(self, db, *, viewer: Viewer, search: str | None = None) -> ServiceOutput:
        vendors = AccountRepository(viewer_id=viewer.user_id).list_vendors(db)
        term = (search or "").strip().lower()
        if term:
            vendors = [vendor for vendor in vendors if _vendor_matches(vendor, term)]
        return ServiceOutput(payload={"items": vendors, "total": len(vendors)})

    def notifications(self, db, *, viewer: Viewer, limit: int = 20) -> ServiceOutput:
        items = self._notifications(db, viewer=viewer, limit=limit)
        return ServiceOutput(payload={"items": items, "unread_count": unread_count(items)})

    def mark_notifications(
        self,
        db,
        *,
        viewer: Viewer,
        notification_id: str | None = None,
        dismiss: bool = False,
        limit: int = 20,
    ) -> ServiceOutput:
        """Mark one notification (or every visible one) read, or dismiss one."""
        visible = self._notifications(db, viewer=viewer, limit=limit)
        visible_ids = [item["id"] for item in visible]
        if notification_id is None:
            if dismiss:
                raise ValidationError(code="action_invalid", message_key="action_invalid")
            targets = [item["id"] for item in visible if not item.get("read")]
        elif notification_id in visible_ids:
            targets = [notification_id]
        else:
            raise NotFoundError(
                code="notification_not_found",
                message_key="notification_not_found",
                payload={"notification_id": notification_id},
            )

        AccountRepository(viewer_id=viewer.user_id).mark_notifications(db, targets, dismiss=dismiss)
        return ServiceOutput(
            payload={
                "updated": targets,
                "message": success_message("notifications_updated"),
            }
        )

    def _notifications(self, db, *, viewer: Viewer, limit: int) -> List[Dict[str, Any]]:
        quotes = QuoteRepository(viewer_id=viewer.user_id)
        states = AccountRepository(viewer_id=viewer.user_id).notification_states(db)
        return build_notifications(
            quotes.list_for_owned_rfqs(db),
            quotes.list_own(db),
            states,
            limit=limit,
        )


def _vendor_matches(vendor: Dict[str, Any], term: str) -> bool:
    haystack = f"{vendor.get('full_name') or ''}\n{vendor.get('company_name') or ''}".lower()
    return term in haystack
