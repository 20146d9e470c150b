from __future__ import annotations

from typing import Any, Dict

from vendorworld.application.rfq_service import RequireConfirmationFn, RfqService, forbidden_action
from vendorworld.domain.contracts import ServiceOutput, Viewer
from vendorworld.errors import ConflictError, NotFoundError, ValidationError
from vendorworld.infrastructure.repositories.account_repository import AccountRepository
from vendorworld.infrastructure.repositories.participant_repository import ParticipantRepository
from vendorworld.messages import success_message
from vendorworld.policies import require_roles
from vendorworld.rfq.rfq_policy import AUDIENCE_OWNER, action_allowed


INVITATION_DECISIONS: Dict[str, str] = {
    "accept": "accepted",
    "decline": "declined",
}


class ParticipantService:
    """Invitations linking vendors to RFQs."""

    def __init__(self, rfq_service: RfqService | None = None) -> None:
        self.rfq_service = rfq_service or RfqService()

    def list_participants(self, db, *, viewer: Viewer, rfq_id: str) -> ServiceOutput:
        rfq = self.rfq_service.load_owned_rfq(db, viewer=viewer, rfq_id=rfq_id)
        items = ParticipantRepository(viewer_id=viewer.user_id).list_by_rfq(db, rfq_id)
        return ServiceOutput(
            payload={
                "rfq_id": rfq_id,
                "rfq_status": rfq["status"],
                "can_manage": action_allowed(AUDIENCE_OWNER, rfq["status"], "manage_participants"),
                "items": items,
            }
        )

    def list_available_vendors(self, db, *, viewer: Viewer, rfq_id: str) -> ServiceOutput:
        self.rfq_service.load_owned_rfq(db, viewer=viewer, rfq_id=rfq_id)
        items = ParticipantRepository(viewer_id=viewer.user_id).list_available_vendors(db, rfq_id)
        return ServiceOutput(payload={"rfq_id": rfq_id, "items": items})

    def invite_vendor(self, db, *, viewer: Viewer, rfq_id: str, vendor_id: str | None) -> ServiceOutput:
        rfq = self.rfq_service.load_owned_rfq(db, viewer=viewer, rfq_id=rfq_id)
        if not action_allowed(AUDIENCE_OWNER, rfq["status"], "manage_participants"):
            forbidden_action(rfq["status"], "manage_participants", audience=AUDIENCE_OWNER)

        vendor_id = str(vendor_id or "").strip()
        if not vendor_id:
            raise ValidationError(code="vendor_id_required", message_key="vendor_id_required")
        if AccountRepository(viewer_id=viewer.user_id).get_role(db, vendor_id) != "vendor":
            raise NotFoundError(
                code="vendor_not_found",
                message_key="vendor_not_found",
                payload={"vendor_id": vendor_id},
            )

        participants = ParticipantRepository(viewer_id=viewer.user_id)
        participant_id = participants.insert_if_absent(db, rfq_id=rfq_id, vendor_id=vendor_id)
        if participant_id is None:
            raise ConflictError(
                code="participant_already_invited",
                message_key="participant_already_invited",
                payload={"rfq_id": rfq_id, "vendor_id": vendor_id},
            )
        return ServiceOutput(
            payload={
                "participant": participants.get_by_id(db, participant_id),
                "message": success_message("vendor_invited"),
            },
            status_code=201,
        )

    def remove_participant(
        self,
        db,
        *,
        viewer: Viewer,
        rfq_id: str,
        participant_id: str,
        payload: Dict[str, Any] | None,
        require_confirmation_fn: RequireConfirmationFn,
    ) -> ServiceOutput:
        self.rfq_service.load_owned_rfq(db, viewer=viewer, rfq_id=rfq_id)
        participants = ParticipantRepository(viewer_id=viewer.user_id)
        participant = participants.get_by_id(db, participant_id)
        if not participant or participant.get("rfq_id") != rfq_id:
            raise NotFoundError(
                code="participant_not_found",
                message_key="participant_not_found",
                payload={"participant_id": participant_id},
            )
        require_confirmation_fn(
            "remove_participant",
            entity="participant",
            entity_id=participant_id,
            payload=payload,
        )
        participants.delete(db, participant_id)
        return ServiceOutput(
            payload={
                "deleted": True,
                "participant_id": participant_id,
                "message": success_message("participant_removed"),
            }
        )

    def respond_to_invitation(self, db, *, viewer: Viewer, rfq_id: str, decision: str | None) -> ServiceOutput:
        require_roles("vendor", role=viewer.role)
        next_status = INVITATION_DECISIONS.get(str(decision or "").strip().lower())
        if not next_status:
            raise ValidationError(
                code="action_invalid",
                message_key="action_invalid",
                payload={"allowed_decisions": sorted(INVITATION_DECISIONS)},
            )

        participants = ParticipantRepository(viewer_id=viewer.user_id)
        participant = participants.get_for_vendor(db, rfq_id)
        if not participant:
            raise NotFoundError(
                code="invitation_not_found",
                message_key="invitation_not_found",
                payload={"rfq_id": rfq_id},
            )
        if participant.get("status") == "submitted":
            raise ConflictError(
                code="action_not_allowed_for_status",
                message_key="action_not_allowed_for_status",
                payload={"status": "submitted", "action": f"{decision}_invitation"},
            )

        participants.update_status(db, participant["id"], next_status)
        return ServiceOutput(
            payload={
                "participant": participants.get_by_id(db, participant["id"]),
                "message": success_message("invitation_answered"),
            }
        )
