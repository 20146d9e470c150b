from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Iterable


class ViewerScopeRequiredError(ValueError):
    """Raised when a repository is instantiated without an authenticated viewer."""


def new_id() -> str:
    return str(uuid.uuid4())


def utc_timestamp(value: datetime | None = None) -> str:
    moment = value or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.isoformat(sep=" ", timespec="microseconds")


class BaseRepository:
    """Row access on behalf of one authenticated user.

    Every query a repository issues is scoped to ``viewer_id`` the way the
    store's row-level policies would scope it.
    """

    def __init__(self, *, viewer_id: str | None = None) -> None:
        scope = str(viewer_id or "").strip()
        if not scope:
            raise ViewerScopeRequiredError("viewer_id is required for repository access")
        self.viewer_id = scope

    @staticmethod
    def row_to_dict(row: Any) -> dict | None:
        if row is None:
            return None
        record = dict(row)
        for key, value in record.items():
            if isinstance(value, (datetime, date)):
                record[key] = value.isoformat()
        return record

    @classmethod
    def rows_to_dicts(cls, rows: Iterable[Any]) -> list[dict]:
        return [cls.row_to_dict(row) for row in rows]

    @staticmethod
    def returned_id(cursor) -> str | None:
        row = cursor.fetchone()
        if row is None:
            return None
        return str(row["id"] if isinstance(row, dict) else row[0])
