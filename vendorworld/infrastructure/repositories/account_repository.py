from __future__ import annotations

from vendorworld.infrastructure.repositories.base import BaseRepository, utc_timestamp


class AccountRepository(BaseRepository):
    def get_profile(self, db, user_id: str | None = None) -> dict | None:
        row = db.execute(
            """
            SELECT pr.id, pr.full_name, pr.company_name, pr.created_at, pr.updated_at,
                   au.email, ur.role
            FROM profiles pr
            JOIN auth_users au ON au.id = pr.id
            LEFT JOIN user_roles ur ON ur.user_id = pr.id
            WHERE pr.id = ?
            LIMIT 1
            """,
            (user_id or self.viewer_id,),
        ).fetchone()
        return self.row_to_dict(row)

    def update_profile(self, db, fields: dict) -> None:
        if not fields:
            return
        assignments = ", ".join(f"{column} = ?" for column in fields)
        db.execute(
            f"UPDATE profiles SET {assignments}, updated_at = ? WHERE id = ?",
            (*fields.values(), utc_timestamp(), self.viewer_id),
        )

    def get_role(self, db, user_id: str | None = None) -> str | None:
        row = db.execute(
            "SELECT role FROM user_roles WHERE user_id = ? LIMIT 1",
            (user_id or self.viewer_id,),
        ).fetchone()
        return str(row["role"]) if row else None

    def list_vendors(self, db) -> list[dict]:
        rows = db.execute(
            """
            SELECT ur.user_id AS id, pr.full_name, pr.company_name, pr.created_at
            FROM user_roles ur
            LEFT JOIN profiles pr ON pr.id = ur.user_id
            WHERE ur.role = 'vendor'
            ORDER BY pr.created_at DESC, ur.user_id
            """
        ).fetchall()
        return self.rows_to_dicts(rows)

    def count_vendors(self, db) -> int:
        row = db.execute("SELECT COUNT(*) AS total FROM user_roles WHERE role = 'vendor'").fetchone()
        return int(row["total"] or 0) if row else 0

    def notification_states(self, db) -> dict[str, dict]:
        rows = db.execute(
            """
            SELECT notification_id, read_at, dismissed_at
            FROM notification_states
            WHERE user_id = ?
            """,
            (self.viewer_id,),
        ).fetchall()
        return {str(row["notification_id"]): self.row_to_dict(row) for row in rows}

    def mark_notifications(self, db, notification_ids: list[str], *, dismiss: bool = False) -> None:
        now = utc_timestamp()
        column = "dismissed_at" if dismiss else "read_at"
        for notification_id in notification_ids:
            db.execute(
                f"""
                INSERT INTO notification_states (user_id, notification_id, {column})
                VALUES (?, ?, ?)
                ON CONFLICT (user_id, notification_id) DO UPDATE SET {column} = excluded.{column}
                """,
                (self.viewer_id, notification_id, now),
            )
