from __future__ import annotations

import math
import re
from typing import Any

from vendorworld.application.rfq_service import RfqService
from vendorworld.domain.contracts import QuoteSubmitInput, ServiceOutput, Viewer
from vendorworld.errors import ConflictError, ValidationError
from vendorworld.infrastructure.repositories.participant_repository import ParticipantRepository
from vendorworld.infrastructure.repositories.quote_repository import QuoteRepository
from vendorworld.messages import success_message
from vendorworld.policies import require_roles
from vendorworld.rfq.rfq_policy import accepts_quotes


_LEADING_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def parse_amount(raw_value: Any) -> float:
    """Read a quote amount from free text, keeping the leading numeric part."""
    if isinstance(raw_value, bool):
        raise ValidationError(code="amount_invalid", message_key="amount_invalid")
    if isinstance(raw_value, (int, float)):
        try:
            value = float(raw_value)
        except OverflowError:
            raise ValidationError(code="amount_invalid", message_key="amount_invalid") from None
    else:
        text = str(raw_value or "").strip()
        if not text:
            raise ValidationError(code="amount_required", message_key="amount_required")
        match = _LEADING_NUMBER.match(text)
        if not match:
            raise ValidationError(code="amount_invalid", message_key="amount_invalid")
        value = float(match.group(0))
    if not math.isfinite(value):
        raise ValidationError(code="amount_invalid", message_key="amount_invalid")
    return value


class QuoteService:
    def __init__(self, rfq_service: RfqService | None = None) -> None:
        self.rfq_service = rfq_service or RfqService()

    def submit_quote(
        self,
        db,
        *,
        viewer: Viewer,
        submit_input: QuoteSubmitInput,
        default_currency: str = "USD",
    ) -> ServiceOutput:
        require_roles("vendor", role=viewer.role)
        amount = parse_amount(submit_input.amount)
        rfq = self.rfq_service.load_visible_rfq(db, viewer=viewer, rfq_id=submit_input.rfq_id)
        if not accepts_quotes(rfq.get("status")):
            raise ConflictError(
                code="rfq_closed_for_quotes",
                message_key="rfq_closed_for_quotes",
                payload={"rfq_id": rfq["id"], "status": rfq.get("status")},
            )

        quotes = QuoteRepository(viewer_id=viewer.user_id)
        existing = quotes.get_for_vendor(db, rfq["id"])
        quotes.upsert(
            db,
            rfq_id=rfq["id"],
            amount=amount,
            currency=(submit_input.currency or "").strip().upper() or default_currency,
            message=(submit_input.message or "").strip() or None,
            status="submitted",
        )

        participants = ParticipantRepository(viewer_id=viewer.user_id)
        participant = participants.get_for_vendor(db, rfq["id"])
        if participant and participant.get("status") != "submitted":
            participants.update_status(db, participant["id"], "submitted")

        quote = quotes.get_for_vendor(db, rfq["id"])
        created = existing is None
        return ServiceOutput(
            payload={
                "quote": quote,
                "created": created,
                "message": success_message("quote_submitted" if created else "quote_updated"),
            },
            status_code=201 if created else 200,
        )

    def get_my_quote(self, db, *, viewer: Viewer, rfq_id: str) -> ServiceOutput:
        require_roles("vendor", role=viewer.role)
        self.rfq_service.load_visible_rfq(db, viewer=viewer, rfq_id=rfq_id)
        quote = QuoteRepository(viewer_id=viewer.user_id).get_for_vendor(db, rfq_id)
        return ServiceOutput(payload={"rfq_id": rfq_id, "quote": quote})
