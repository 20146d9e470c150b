from __future__ import annotations

from flask import Blueprint, Response, current_app, request

from vendorworld.application.reporting_service import ReportingService
from vendorworld.db import get_db
from vendorworld.routes.common import current_viewer, respond


report_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _service() -> ReportingService:
    return ReportingService(top_vendors_limit=int(current_app.config.get("REPORT_TOP_VENDORS", 5) or 5))


@report_bp.route("", methods=["GET"])
def report():
    return respond(_service().build(get_db(), viewer=current_viewer(), range_key=request.args.get("range")))


@report_bp.route("/export", methods=["GET"])
def export_report():
    body, filename = _service().export_csv(get_db(), viewer=current_viewer(), range_key=request.args.get("range"))
    return Response(
        body,
        mimetype="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
        },
    )
