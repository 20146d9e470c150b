from __future__ import annotations

from datetime import datetime, timezone

from vendorworld.domain.contracts import ServiceOutput, Viewer
from vendorworld.errors import ValidationError
from vendorworld.infrastructure.repositories.quote_repository import QuoteRepository
from vendorworld.infrastructure.repositories.rfq_repository import RfqRepository
from vendorworld.rfq.reporting import (
    REPORT_RANGE_KEYS,
    TOP_VENDORS_LIMIT,
    build_report,
    export_filename,
    filter_report_dataset,
    normalize_range_key,
    report_to_csv,
    resolve_date_range,
)


class ReportingService:
    def __init__(self, top_vendors_limit: int = TOP_VENDORS_LIMIT) -> None:
        self.top_vendors_limit = top_vendors_limit

    def build(self, db, *, viewer: Viewer, range_key: str | None, now: datetime | None = None) -> ServiceOutput:
        normalized = normalize_range_key(range_key)
        if normalized is None:
            raise ValidationError(
                code="range_invalid",
                message_key="range_invalid",
                payload={"allowed_ranges": list(REPORT_RANGE_KEYS)},
            )

        reference = now or datetime.now(timezone.utc)
        start, end = resolve_date_range(normalized, reference)
        rfqs = RfqRepository(viewer_id=viewer.user_id).list_owned_statuses(db)
        quotes = QuoteRepository(viewer_id=viewer.user_id).list_for_owned_rfqs(db)
        rfqs_in_range, quotes_in_range = filter_report_dataset(rfqs, quotes, start, end)
        report = build_report(
            rfqs_in_range,
            quotes_in_range,
            range_key=normalized,
            now=reference,
            top_limit=self.top_vendors_limit,
        )
        return ServiceOutput(payload=report)

    def export_csv(self, db, *, viewer: Viewer, range_key: str | None, now: datetime | None = None) -> tuple[str, str]:
        reference = now or datetime.now(timezone.utc)
        report = self.build(db, viewer=viewer, range_key=range_key, now=reference).payload
        return report_to_csv(report), export_filename(reference)
