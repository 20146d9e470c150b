from __future__ import annotations

from typing import Any, Callable, Dict, List

from vendorworld.domain.contracts import RfqCreateInput, RfqListInput, RfqUpdateInput, ServiceOutput, Viewer
from vendorworld.errors import ConflictError, NotFoundError, ValidationError
from vendorworld.errors import PermissionError as AppPermissionError
from vendorworld.infrastructure.repositories.participant_repository import ParticipantRepository
from vendorworld.infrastructure.repositories.quote_repository import QuoteRepository
from vendorworld.infrastructure.repositories.rfq_repository import RfqRepository
from vendorworld.messages import success_message
from vendorworld.policies import require_roles
from vendorworld.rfq.reporting import parse_datetime
from vendorworld.rfq.rfq_policy import (
    AUDIENCE_OWNER,
    CREATE_STATUSES,
    RFQ_STATUSES,
    action_allowed,
    allowed_actions,
    flow_meta,
    primary_action,
    target_status,
    viewer_audience,
)
from vendorworld.rfq.critical_actions import is_critical_action


RequireConfirmationFn = Callable[..., None]

_EDITABLE_FIELDS = ("title", "description", "due_date")


def forbidden_action(status: str | None, action: str, *, audience: str | None) -> None:
    raise ConflictError(
        code="action_not_allowed_for_status",
        message_key="action_not_allowed_for_status",
        payload={
            "status": status,
            "action": action,
            "allowed_actions": allowed_actions(audience, status),
            "primary_action": primary_action(audience, status),
        },
    )


def rfq_not_found(rfq_id: str) -> NotFoundError:
    return NotFoundError(code="rfq_not_found", message_key="rfq_not_found", payload={"rfq_id": rfq_id})


def normalize_due_date(raw_value: Any) -> str | None:
    value = str(raw_value or "").strip()
    if not value:
        return None
    if parse_datetime(value) is None:
        raise ValidationError(code="due_date_invalid", message_key="due_date_invalid")
    return value


def with_flow(rfq: Dict[str, Any], viewer: Viewer) -> Dict[str, Any]:
    audience = viewer_audience(rfq, viewer.user_id, viewer.role)
    meta = flow_meta(audience, rfq.get("status"))
    rfq["allowed_actions"] = meta["allowed_actions"]
    rfq["primary_action"] = meta["primary_action"]
    return rfq


class RfqService:
    """RFQ lifecycle: creation, listing, detail, edits, transitions and deletion."""

    def create_rfq(self, db, *, viewer: Viewer, create_input: RfqCreateInput) -> ServiceOutput:
        require_roles("client", role=viewer.role)
        title = (create_input.title or "").strip()
        if not title:
            raise ValidationError(code="title_required", message_key="title_required")
        status = (create_input.status or "draft").strip().lower()
        if status not in CREATE_STATUSES:
            raise ValidationError(
                code="status_invalid",
                message_key="status_invalid",
                payload={"allowed_statuses": sorted(CREATE_STATUSES)},
            )
        due_date = normalize_due_date(create_input.due_date)

        repository = RfqRepository(viewer_id=viewer.user_id)
        rfq_id = repository.create(
            db,
            title=title,
            description=(create_input.description or "").strip() or None,
            due_date=due_date,
            status=status,
        )
        rfq = with_flow(repository.get_by_id(db, rfq_id), viewer)
        return ServiceOutput(
            payload={"rfq": rfq, "message": success_message(f"rfq_created_{status}")},
            status_code=201,
        )

    def list_rfqs(self, db, *, viewer: Viewer, list_input: RfqListInput) -> ServiceOutput:
        status_filter = (list_input.status or "").strip().lower()
        if status_filter and status_filter not in RFQ_STATUSES:
            raise ValidationError(
                code="status_invalid",
                message_key="status_invalid",
                payload={"allowed_statuses": RFQ_STATUSES},
            )

        repository = RfqRepository(viewer_id=viewer.user_id)
        if viewer.role == "vendor":
            rows = repository.list_visible_to_vendor(db)
        else:
            rows = repository.list_owned(db)

        search = (list_input.search or "").strip().lower()
        items: List[Dict[str, Any]] = []
        for row in rows:
            if status_filter and row.get("status") != status_filter:
                continue
            if search and not _matches_search(row, search):
                continue
            row["quote_count"] = int(row.get("quote_count") or 0)
            row["participant_count"] = int(row.get("participant_count") or 0)
            items.append(with_flow(row, viewer))
        return ServiceOutput(payload={"items": items, "total": len(items)})

    def get_rfq(self, db, *, viewer: Viewer, rfq_id: str) -> ServiceOutput:
        rfq = self.load_visible_rfq(db, viewer=viewer, rfq_id=rfq_id)
        audience = viewer_audience(rfq, viewer.user_id, viewer.role)
        is_owner = audience == AUDIENCE_OWNER

        quotes = QuoteRepository(viewer_id=viewer.user_id).list_by_rfq(db, rfq_id, only_own=not is_owner)
        participants = ParticipantRepository(viewer_id=viewer.user_id).list_by_rfq(db, rfq_id)
        if not is_owner:
            participants = [item for item in participants if item.get("vendor_id") == viewer.user_id]

        rfq = with_flow(rfq, viewer)
        rfq["quotes"] = quotes
        rfq["participants"] = participants
        return ServiceOutput(payload={"rfq": rfq})

    def update_rfq(self, db, *, viewer: Viewer, update_input: RfqUpdateInput) -> ServiceOutput:
        rfq = self.load_owned_rfq(db, viewer=viewer, rfq_id=update_input.rfq_id)
        if not action_allowed(AUDIENCE_OWNER, rfq["status"], "edit_rfq"):
            forbidden_action(rfq["status"], "edit_rfq", audience=AUDIENCE_OWNER)

        fields: Dict[str, Any] = {}
        payload = update_input.fields or {}
        if "title" in payload:
            title = str(payload.get("title") or "").strip()
            if not title:
                raise ValidationError(code="title_required", message_key="title_required")
            fields["title"] = title
        if "description" in payload:
            fields["description"] = str(payload.get("description") or "").strip() or None
        if "due_date" in payload:
            fields["due_date"] = normalize_due_date(payload.get("due_date"))
        if not fields:
            raise ValidationError(
                code="no_changes",
                message_key="no_changes",
                payload={"editable_fields": list(_EDITABLE_FIELDS)},
            )

        repository = RfqRepository(viewer_id=viewer.user_id)
        repository.update_fields(db, rfq["id"], fields)
        updated = with_flow(repository.get_by_id(db, rfq["id"]), viewer)
        return ServiceOutput(payload={"rfq": updated, "message": success_message("rfq_updated")})

    def transition_rfq(
        self,
        db,
        *,
        viewer: Viewer,
        rfq_id: str,
        action: str,
        payload: Dict[str, Any] | None,
        require_confirmation_fn: RequireConfirmationFn,
    ) -> ServiceOutput:
        next_status = target_status(action)
        if not next_status:
            raise ValidationError(
                code="action_invalid",
                message_key="action_invalid",
                payload={"action": action},
            )

        rfq = self.load_owned_rfq(db, viewer=viewer, rfq_id=rfq_id)
        previous_status = rfq["status"]
        if not action_allowed(AUDIENCE_OWNER, previous_status, action):
            forbidden_action(previous_status, action, audience=AUDIENCE_OWNER)
        if is_critical_action(action):
            require_confirmation_fn(action, entity="rfq", entity_id=rfq_id, payload=payload)

        repository = RfqRepository(viewer_id=viewer.user_id)
        repository.update_status(db, rfq_id, next_status)
        updated = with_flow(repository.get_by_id(db, rfq_id), viewer)
        return ServiceOutput(
            payload={
                "rfq": updated,
                "previous_status": previous_status,
                "message": success_message("rfq_status_updated", status=next_status),
            }
        )

    def delete_rfq(
        self,
        db,
        *,
        viewer: Viewer,
        rfq_id: str,
        payload: Dict[str, Any] | None,
        require_confirmation_fn: RequireConfirmationFn,
    ) -> ServiceOutput:
        rfq = self.load_owned_rfq(db, viewer=viewer, rfq_id=rfq_id)
        if not action_allowed(AUDIENCE_OWNER, rfq["status"], "delete_rfq"):
            forbidden_action(rfq["status"], "delete_rfq", audience=AUDIENCE_OWNER)
        require_confirmation_fn("delete_rfq", entity="rfq", entity_id=rfq_id, payload=payload)

        RfqRepository(viewer_id=viewer.user_id).delete(db, rfq_id)
        return ServiceOutput(payload={"deleted": True, "rfq_id": rfq_id, "message": success_message("rfq_deleted")})

    def load_owned_rfq(self, db, *, viewer: Viewer, rfq_id: str) -> Dict[str, Any]:
        rfq = RfqRepository(viewer_id=viewer.user_id).get_by_id(db, rfq_id)
        if not rfq:
            raise rfq_not_found(rfq_id)
        if rfq.get("created_by") != viewer.user_id:
            raise AppPermissionError(payload={"rfq_id": rfq_id})
        return rfq

    def load_visible_rfq(self, db, *, viewer: Viewer, rfq_id: str) -> Dict[str, Any]:
        """Owners see their RFQs; vendors see open ones and those they take part in."""
        rfq = RfqRepository(viewer_id=viewer.user_id).get_by_id(db, rfq_id)
        if not rfq:
            raise rfq_not_found(rfq_id)
        if rfq.get("created_by") == viewer.user_id:
            return rfq
        if viewer.role == "vendor":
            if rfq.get("status") == "open":
                return rfq
            if ParticipantRepository(viewer_id=viewer.user_id).get_for_vendor(db, rfq_id):
                return rfq
            if QuoteRepository(viewer_id=viewer.user_id).get_for_vendor(db, rfq_id):
                return rfq
        raise rfq_not_found(rfq_id)


def _matches_search(row: Dict[str, Any], search: str) -> bool:
    haystack = f"{row.get('title') or ''}\n{row.get('description') or ''}".lower()
    return search in haystack
