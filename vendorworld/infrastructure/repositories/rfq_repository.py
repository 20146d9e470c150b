from __future__ import annotations

from vendorworld.infrastructure.repositories.base import BaseRepository, new_id, utc_timestamp


_RFQ_COLUMNS = "r.id, r.title, r.description, r.status, r.due_date, r.created_by, r.created_at, r.updated_at"


class RfqRepository(BaseRepository):
    def create(
        self,
        db,
        *,
        title: str,
        description: str | None,
        due_date: str | None,
        status: str = "draft",
    ) -> str:
        now = utc_timestamp()
        cursor = db.execute(
            """
            INSERT INTO rfqs (id, title, description, status, due_date, created_by, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (new_id(), title, description, status, due_date, self.viewer_id, now, now),
        )
        return self.returned_id(cursor)

    def get_by_id(self, db, rfq_id: str) -> dict | None:
        row = db.execute(
            f"""
            SELECT {_RFQ_COLUMNS}
            FROM rfqs r
            WHERE r.id = ?
            LIMIT 1
            """,
            (rfq_id,),
        ).fetchone()
        return self.row_to_dict(row)

    def list_owned(self, db) -> list[dict]:
        rows = db.execute(
            f"""
            SELECT
                {_RFQ_COLUMNS},
                (SELECT COUNT(*) FROM quotes q WHERE q.rfq_id = r.id) AS quote_count,
                (SELECT COUNT(*) FROM rfq_participants p WHERE p.rfq_id = r.id) AS participant_count
            FROM rfqs r
            WHERE r.created_by = ?
            ORDER BY r.created_at DESC, r.id DESC
            """,
            (self.viewer_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def list_visible_to_vendor(self, db) -> list[dict]:
        rows = db.execute(
            f"""
            SELECT
                {_RFQ_COLUMNS},
                (SELECT COUNT(*) FROM quotes q WHERE q.rfq_id = r.id) AS quote_count,
                (SELECT COUNT(*) FROM rfq_participants p WHERE p.rfq_id = r.id) AS participant_count
            FROM rfqs r
            WHERE r.status = 'open'
               OR EXISTS (
                    SELECT 1 FROM rfq_participants p
                    WHERE p.rfq_id = r.id AND p.vendor_id = ?
               )
            ORDER BY r.created_at DESC, r.id DESC
            """,
            (self.viewer_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def list_owned_statuses(self, db) -> list[dict]:
        rows = db.execute(
            "SELECT id, status, created_at FROM rfqs WHERE created_by = ?",
            (self.viewer_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def update_fields(self, db, rfq_id: str, fields: dict) -> None:
        if not fields:
            return
        assignments = ", ".join(f"{column} = ?" for column in fields)
        db.execute(
            f"""
            UPDATE rfqs
            SET {assignments}, updated_at = ?
            WHERE id = ? AND created_by = ?
            """,
            (*fields.values(), utc_timestamp(), rfq_id, self.viewer_id),
        )

    def update_status(self, db, rfq_id: str, status: str) -> None:
        self.update_fields(db, rfq_id, {"status": status})

    def delete(self, db, rfq_id: str) -> None:
        db.execute("DELETE FROM quotes WHERE rfq_id = ?", (rfq_id,))
        db.execute("DELETE FROM rfq_participants WHERE rfq_id = ?", (rfq_id,))
        db.execute("DELETE FROM rfqs WHERE id = ? AND created_by = ?", (rfq_id, self.viewer_id))
