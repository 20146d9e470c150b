from __future__ import annotations

from flask import Blueprint, current_app, request

from vendorworld.application.participant_service import ParticipantService
from vendorworld.application.quote_service import QuoteService
from vendorworld.application.rfq_service import RfqService
from vendorworld.db import get_db
from vendorworld.domain.contracts import QuoteSubmitInput, RfqCreateInput, RfqListInput, RfqUpdateInput
from vendorworld.routes.common import current_viewer, json_payload, require_critical_confirmation, respond


rfq_bp = Blueprint("rfqs", __name__, url_prefix="/api/rfqs")

_RFQ_SERVICE = RfqService()
_QUOTE_SERVICE = QuoteService(rfq_service=_RFQ_SERVICE)
_PARTICIPANT_SERVICE = ParticipantService(rfq_service=_RFQ_SERVICE)


@rfq_bp.route("", methods=["GET"])
def list_rfqs():
    result = _RFQ_SERVICE.list_rfqs(
        get_db(),
        viewer=current_viewer(),
        list_input=RfqListInput(
            search=request.args.get("search") or request.args.get("q"),
            status=request.args.get("status"),
        ),
    )
    return respond(result)


@rfq_bp.route("", methods=["POST"])
def create_rfq():
    payload = json_payload()
    db = get_db()
    result = _RFQ_SERVICE.create_rfq(
        db,
        viewer=current_viewer(),
        create_input=RfqCreateInput(
            title=str(payload.get("title") or ""),
            description=payload.get("description"),
            due_date=payload.get("due_date"),
            status=str(payload.get("status") or "draft"),
        ),
    )
    db.commit()
    current_app.logger.info(
        "rfq_created",
        extra={"rfq_id": result.payload["rfq"]["id"], "status": result.payload["rfq"]["status"]},
    )
    return respond(result)


@rfq_bp.route("/<rfq_id>", methods=["GET"])
def get_rfq(rfq_id: str):
    return respond(_RFQ_SERVICE.get_rfq(get_db(), viewer=current_viewer(), rfq_id=rfq_id))


@rfq_bp.route("/<rfq_id>", methods=["PATCH"])
def update_rfq(rfq_id: str):
    db = get_db()
    result = _RFQ_SERVICE.update_rfq(
        db,
        viewer=current_viewer(),
        update_input=RfqUpdateInput(rfq_id=rfq_id, fields=json_payload()),
    )
    db.commit()
    return respond(result)


@rfq_bp.route("/<rfq_id>", methods=["DELETE"])
def delete_rfq(rfq_id: str):
    db = get_db()
    result = _RFQ_SERVICE.delete_rfq(
        db,
        viewer=current_viewer(),
        rfq_id=rfq_id,
        payload=json_payload(),
        require_confirmation_fn=require_critical_confirmation,
    )
    db.commit()
    current_app.logger.info("rfq_deleted", extra={"rfq_id": rfq_id})
    return respond(result)


@rfq_bp.route("/<rfq_id>/actions/<action>", methods=["POST"])
def transition_rfq(rfq_id: str, action: str):
    db = get_db()
    result = _RFQ_SERVICE.transition_rfq(
        db,
        viewer=current_viewer(),
        rfq_id=rfq_id,
        action=action,
        payload=json_payload(),
        require_confirmation_fn=require_critical_confirmation,
    )
    db.commit()
    current_app.logger.info(
        "rfq_status_changed",
        extra={
            "rfq_id": rfq_id,
            "action": action,
            "from_status": result.payload["previous_status"],
            "to_status": result.payload["rfq"]["status"],
        },
    )
    return respond(result)


@rfq_bp.route("/<rfq_id>/quotes", methods=["POST"])
def submit_quote(rfq_id: str):
    payload = json_payload()
    db = get_db()
    result = _QUOTE_SERVICE.submit_quote(
        db,
        viewer=current_viewer(),
        submit_input=QuoteSubmitInput(
            rfq_id=rfq_id,
            amount=payload.get("amount"),
            currency=payload.get("currency"),
            message=payload.get("message"),
        ),
        default_currency=current_app.config.get("DEFAULT_CURRENCY", "USD"),
    )
    db.commit()
    current_app.logger.info(
        "quote_submitted",
        extra={"rfq_id": rfq_id, "quote_id": result.payload["quote"]["id"], "created": result.payload["created"]},
    )
    return respond(result)


@rfq_bp.route("/<rfq_id>/quotes/mine", methods=["GET"])
def get_my_quote(rfq_id: str):
    return respond(_QUOTE_SERVICE.get_my_quote(get_db(), viewer=current_viewer(), rfq_id=rfq_id))


@rfq_bp.route("/<rfq_id>/participants", methods=["GET"])
def list_participants(rfq_id: str):
    return respond(_PARTICIPANT_SERVICE.list_participants(get_db(), viewer=current_viewer(), rfq_id=rfq_id))


@rfq_bp.route("/<rfq_id>/participants", methods=["POST"])
def invite_vendor(rfq_id: str):
    db = get_db()
    result = _PARTICIPANT_SERVICE.invite_vendor(
        db,
        viewer=current_viewer(),
        rfq_id=rfq_id,
        vendor_id=json_payload().get("vendor_id"),
    )
    db.commit()
    return respond(result)


@rfq_bp.route("/<rfq_id>/participants/<participant_id>", methods=["DELETE"])
def remove_participant(rfq_id: str, participant_id: str):
    db = get_db()
    result = _PARTICIPANT_SERVICE.remove_participant(
        db,
        viewer=current_viewer(),
        rfq_id=rfq_id,
        participant_id=participant_id,
        payload=json_payload(),
        require_confirmation_fn=require_critical_confirmation,
    )
    db.commit()
    return respond(result)


@rfq_bp.route("/<rfq_id>/available-vendors", methods=["GET"])
def available_vendors(rfq_id: str):
    return respond(_PARTICIPANT_SERVICE.list_available_vendors(get_db(), viewer=current_viewer(), rfq_id=rfq_id))


@rfq_bp.route("/<rfq_id>/invitation", methods=["POST"])
def respond_to_invitation(rfq_id: str):
    db = get_db()
    result = _PARTICIPANT_SERVICE.respond_to_invitation(
        db,
        viewer=current_viewer(),
        rfq_id=rfq_id,
        decision=json_payload().get("decision"),
    )
    db.commit()
    return respond(result)
