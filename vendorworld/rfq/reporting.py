from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone
from statistics import mean
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from vendorworld.rfq.rfq_policy import COMPLETED_STATUSES


REPORT_RANGE_KEYS = ("week", "month", "quarter")
DEFAULT_RANGE_KEY = "month"
QUOTES_OVER_TIME_DAYS = 7
TOP_VENDORS_LIMIT = 5
VENDOR_NAME_PREFIX_LENGTH = 8


def normalize_range_key(raw_value: Any) -> str | None:
    value = str(raw_value or "").strip().lower()
    if not value:
        return DEFAULT_RANGE_KEY
    if value in REPORT_RANGE_KEYS:
        return value
    return None


def resolve_date_range(range_key: str, now: datetime | None = None) -> Tuple[datetime, datetime]:
    """Return the ``(start, end)`` window for a report range.

    ``week`` and ``quarter`` are trailing windows of 7 and 90 days ending at
    ``now``; ``month`` starts at midnight on the first day of the current
    month.
    """
    end = _as_utc(now or datetime.now(timezone.utc))
    if range_key == "week":
        start = end - timedelta(days=7)
    elif range_key == "quarter":
        start = end - timedelta(days=90)
    else:
        start = end.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start, end


def filter_report_dataset(
    rfqs: Iterable[dict],
    quotes: Iterable[dict],
    start: datetime,
    end: datetime,
) -> Tuple[List[dict], List[dict]]:
    """Keep RFQs created in the window and the in-window quotes on those RFQs."""
    rfqs_in_range = [rfq for rfq in rfqs if _in_window(rfq.get("created_at"), start, end)]
    rfq_ids = {str(rfq.get("id")) for rfq in rfqs_in_range}
    quotes_in_range = [
        quote
        for quote in quotes
        if str(quote.get("rfq_id")) in rfq_ids and _in_window(quote.get("created_at"), start, end)
    ]
    return rfqs_in_range, quotes_in_range


def average_quote_value(quotes: Sequence[dict]) -> float:
    amounts = [_safe_float(quote.get("amount")) or 0.0 for quote in quotes]
    if not amounts:
        return 0.0
    return float(mean(amounts))


def completion_rate(rfqs: Sequence[dict]) -> float:
    total = len(rfqs)
    if total == 0:
        return 0.0
    completed = sum(1 for rfq in rfqs if rfq.get("status") in COMPLETED_STATUSES)
    return completed / total * 100.0


def rfqs_by_status(rfqs: Iterable[dict]) -> Dict[str, int]:
    return dict(Counter(str(rfq.get("status") or "") for rfq in rfqs))


def quotes_over_time(
    quotes: Sequence[dict],
    now: datetime | None = None,
    days: int = QUOTES_OVER_TIME_DAYS,
) -> List[Dict[str, Any]]:
    end = _as_utc(now or datetime.now(timezone.utc))
    quote_days = [_day_key(quote.get("created_at")) for quote in quotes]
    buckets: List[Dict[str, Any]] = []
    for offset in range(days - 1, -1, -1):
        day = end - timedelta(days=offset)
        key = day.strftime("%Y-%m-%d")
        buckets.append(
            {
                "date": key,
                "label": day.strftime("%b %d"),
                "count": sum(1 for quote_day in quote_days if quote_day == key),
            }
        )
    return buckets


def top_vendors(quotes: Iterable[dict], limit: int = TOP_VENDORS_LIMIT) -> List[Dict[str, Any]]:
    stats: Dict[str, Dict[str, float]] = {}
    for quote in quotes:
        vendor_id = str(quote.get("vendor_id") or "")
        entry = stats.setdefault(vendor_id, {"count": 0, "total_amount": 0.0})
        entry["count"] += 1
        entry["total_amount"] += _safe_float(quote.get("amount")) or 0.0

    vendors = [
        {
            "vendor_id": vendor_id,
            "name": vendor_display_name(vendor_id),
            "quote_count": int(entry["count"]),
            "total_amount": float(entry["total_amount"]),
            "avg_amount": float(entry["total_amount"]) / entry["count"],
        }
        for vendor_id, entry in stats.items()
    ]
    # sorted() is stable, so ties stay in first-seen order.
    vendors = sorted(vendors, key=lambda item: item["quote_count"], reverse=True)
    return vendors[: max(0, int(limit))]


def vendor_display_name(vendor_id: str) -> str:
    return f"Vendor {str(vendor_id)[:VENDOR_NAME_PREFIX_LENGTH]}"


def build_report(
    rfqs: Sequence[dict],
    quotes: Sequence[dict],
    *,
    range_key: str = DEFAULT_RANGE_KEY,
    now: datetime | None = None,
    top_limit: int = TOP_VENDORS_LIMIT,
) -> Dict[str, Any]:
    reference = _as_utc(now or datetime.now(timezone.utc))
    start, end = resolve_date_range(range_key, reference)
    return {
        "range": range_key,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "total_rfqs": len(rfqs),
        "total_quotes": len(quotes),
        "average_quote_value": average_quote_value(quotes),
        "completion_rate": completion_rate(rfqs),
        "rfqs_by_status": rfqs_by_status(rfqs),
        "quotes_over_time": quotes_over_time(quotes, reference),
        "top_vendors": top_vendors(quotes, top_limit),
    }


def report_rows(report: Dict[str, Any]) -> List[List[str]]:
    rows: List[List[str]] = [
        ["Metric", "Value"],
        ["Total RFQs", str(report.get("total_rfqs", 0))],
        ["Total Quotes", str(report.get("total_quotes", 0))],
        ["Average Quote Value", _fmt_currency(report.get("average_quote_value"))],
        ["Completion Rate", _fmt_percent(report.get("completion_rate"))],
        [],
        ["RFQ Status Breakdown"],
    ]
    for status, count in (report.get("rfqs_by_status") or {}).items():
        rows.append([str(status), str(count)])
    rows.append([])
    rows.append(["Top Vendors"])
    for vendor in report.get("top_vendors") or []:
        rows.append(
            [
                str(vendor.get("name") or ""),
                f"{vendor.get('quote_count', 0)} quotes, {_fmt_currency(vendor.get('avg_amount'))} avg",
            ]
        )
    return rows


def report_to_csv(report: Dict[str, Any]) -> str:
    """Plain comma-joined rows, no quoting."""
    return "\n".join(",".join(row) for row in report_rows(report))


def export_filename(now: datetime | None = None) -> str:
    reference = _as_utc(now or datetime.now(timezone.utc))
    return f"rfq-report-{reference.date().isoformat()}.csv"


def _fmt_currency(value: Any) -> str:
    numeric = _safe_float(value) or 0.0
    return f"${numeric:.2f}"


def _fmt_percent(value: Any) -> str:
    numeric = _safe_float(value) or 0.0
    return f"{numeric:.1f}%"


def _in_window(raw_datetime: Any, start: datetime, end: datetime) -> bool:
    value = parse_datetime(raw_datetime)
    if value is None:
        return False
    return start <= value <= end


def _day_key(raw_datetime: Any) -> str | None:
    value = parse_datetime(raw_datetime)
    if not value:
        return None
    return value.strftime("%Y-%m-%d")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(raw_value: Any) -> datetime | None:
    if raw_value in (None, ""):
        return None
    if isinstance(raw_value, datetime):
        return _as_utc(raw_value)
    value = str(raw_value).strip()
    if not value:
        return None
    try:
        if value.endswith("Z"):
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        else:
            parsed = datetime.fromisoformat(value)
        return _as_utc(parsed)
    except ValueError:
        pass

    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d"):
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def _safe_float(value: Any) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
