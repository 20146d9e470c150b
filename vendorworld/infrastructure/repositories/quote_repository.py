from __future__ import annotations

from vendorworld.infrastructure.repositories.base import BaseRepository, new_id, utc_timestamp


class QuoteRepository(BaseRepository):
    def get_for_vendor(self, db, rfq_id: str) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM quotes
            WHERE rfq_id = ? AND vendor_id = ?
            LIMIT 1
            """,
            (rfq_id, self.viewer_id),
        ).fetchone()
        return self.row_to_dict(row)

    def list_by_rfq(self, db, rfq_id: str, *, only_own: bool = False) -> list[dict]:
        sql = """
            SELECT id, rfq_id, vendor_id, amount, currency, message, status, submitted_at, created_at, updated_at
            FROM quotes
            WHERE rfq_id = ?
        """
        params: list = [rfq_id]
        if only_own:
            sql += " AND vendor_id = ?"
            params.append(self.viewer_id)
        sql += " ORDER BY created_at DESC, id DESC"
        return self.rows_to_dicts(db.execute(sql, tuple(params)).fetchall())

    def list_for_owned_rfqs(self, db) -> list[dict]:
        rows = db.execute(
            """
            SELECT q.id, q.rfq_id, q.vendor_id, q.amount, q.currency, q.status,
                   q.submitted_at, q.created_at, q.updated_at, r.title AS rfq_title
            FROM quotes q
            JOIN rfqs r ON r.id = q.rfq_id
            WHERE r.created_by = ?
            ORDER BY q.created_at DESC, q.id DESC
            """,
            (self.viewer_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def list_own(self, db) -> list[dict]:
        rows = db.execute(
            """
            SELECT q.id, q.rfq_id, q.vendor_id, q.amount, q.currency, q.status,
                   q.submitted_at, q.created_at, q.updated_at,
                   r.title AS rfq_title, r.status AS rfq_status, r.updated_at AS rfq_updated_at
            FROM quotes q
            JOIN rfqs r ON r.id = q.rfq_id
            WHERE q.vendor_id = ?
            ORDER BY q.created_at DESC, q.id DESC
            """,
            (self.viewer_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def upsert(self, db, *, rfq_id: str, amount: float, currency: str, message: str | None, status: str) -> str:
        """Insert or update the viewer's quote for ``rfq_id``; one row per (rfq, vendor)."""
        now = utc_timestamp()
        cursor = db.execute(
            """
            INSERT INTO quotes (
                id, rfq_id, vendor_id, amount, currency, message, status, submitted_at, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (rfq_id, vendor_id) DO UPDATE SET
                amount = excluded.amount,
                currency = excluded.currency,
                message = excluded.message,
                status = excluded.status,
                submitted_at = excluded.submitted_at,
                updated_at = excluded.updated_at
            RETURNING id
            """,
            (new_id(), rfq_id, self.viewer_id, amount, currency, message, status, now, now, now),
        )
        return self.returned_id(cursor)
