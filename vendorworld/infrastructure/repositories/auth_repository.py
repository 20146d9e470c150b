from __future__ import annotations

from werkzeug.security import generate_password_hash

from vendorworld.infrastructure.repositories.base import new_id, utc_timestamp


class AuthRepository:
    """Credential store; the only repository usable before sign-in."""

    def find_user_by_email(self, db, email: str) -> dict | None:
        row = db.execute(
            """
            SELECT au.id, au.email, au.password_hash, ur.role, pr.full_name
            FROM auth_users au
            LEFT JOIN user_roles ur ON ur.user_id = au.id
            LEFT JOIN profiles pr ON pr.id = au.id
            WHERE au.email = ?
            """,
            (email,),
        ).fetchone()
        if not row:
            return None
        return dict(row)

    def email_exists(self, db, email: str) -> bool:
        row = db.execute("SELECT 1 FROM auth_users WHERE email = ?", (email,)).fetchone()
        return bool(row)

    def create_user(
        self,
        db,
        *,
        email: str,
        password: str,
        role: str,
        full_name: str | None,
        company_name: str | None,
    ) -> str:
        user_id = new_id()
        now = utc_timestamp()
        db.execute(
            """
            INSERT INTO auth_users (id, email, password_hash, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, email, generate_password_hash(password), now),
        )
        db.execute(
            """
            INSERT INTO profiles (id, full_name, company_name, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (user_id, full_name, company_name, now, now),
        )
        db.execute(
            "INSERT INTO user_roles (user_id, role, created_at) VALUES (?, ?, ?)",
            (user_id, role, now),
        )
        return user_id
