from __future__ import annotations

from vendorworld.infrastructure.repositories.base import BaseRepository, new_id, utc_timestamp


class ParticipantRepository(BaseRepository):
    def list_by_rfq(self, db, rfq_id: str) -> list[dict]:
        rows = db.execute(
            """
            SELECT p.id, p.rfq_id, p.vendor_id, p.status, p.invited_at, p.updated_at,
                   pr.full_name, pr.company_name
            FROM rfq_participants p
            LEFT JOIN profiles pr ON pr.id = p.vendor_id
            WHERE p.rfq_id = ?
            ORDER BY p.invited_at DESC, p.id DESC
            """,
            (rfq_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def get_by_id(self, db, participant_id: str) -> dict | None:
        row = db.execute(
            "SELECT * FROM rfq_participants WHERE id = ? LIMIT 1",
            (participant_id,),
        ).fetchone()
        return self.row_to_dict(row)

    def get_for_vendor(self, db, rfq_id: str, vendor_id: str | None = None) -> dict | None:
        row = db.execute(
            "SELECT * FROM rfq_participants WHERE rfq_id = ? AND vendor_id = ? LIMIT 1",
            (rfq_id, vendor_id or self.viewer_id),
        ).fetchone()
        return self.row_to_dict(row)

    def insert_if_absent(self, db, *, rfq_id: str, vendor_id: str) -> str | None:
        """Insert an ``invited`` participant; returns None when the pair already exists."""
        now = utc_timestamp()
        cursor = db.execute(
            """
            INSERT INTO rfq_participants (id, rfq_id, vendor_id, status, invited_at, updated_at)
            VALUES (?, ?, ?, 'invited', ?, ?)
            ON CONFLICT (rfq_id, vendor_id) DO NOTHING
            RETURNING id
            """,
            (new_id(), rfq_id, vendor_id, now, now),
        )
        return self.returned_id(cursor)

    def update_status(self, db, participant_id: str, status: str) -> None:
        db.execute(
            "UPDATE rfq_participants SET status = ?, updated_at = ? WHERE id = ?",
            (status, utc_timestamp(), participant_id),
        )

    def delete(self, db, participant_id: str) -> None:
        db.execute("DELETE FROM rfq_participants WHERE id = ?", (participant_id,))

    def list_available_vendors(self, db, rfq_id: str) -> list[dict]:
        rows = db.execute(
            """
            SELECT ur.user_id AS id, pr.full_name, pr.company_name
            FROM user_roles ur
            LEFT JOIN profiles pr ON pr.id = ur.user_id
            WHERE ur.role = 'vendor'
              AND NOT EXISTS (
                    SELECT 1 FROM rfq_participants p
                    WHERE p.rfq_id = ? AND p.vendor_id = ur.user_id
              )
            ORDER BY pr.company_name, pr.full_name, ur.user_id
            """,
            (rfq_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)
