from __future__ import annotations

import re

from werkzeug.security import check_password_hash

from vendorworld.domain.contracts import AuthLoginInput, AuthRegisterInput, AuthUser
from vendorworld.errors import ValidationError
from vendorworld.infrastructure.repositories.auth_repository import AuthRepository
from vendorworld.policies import normalize_role


MIN_PASSWORD_LENGTH = 6
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthService:
    def __init__(self, repository: AuthRepository | None = None) -> None:
        self.repository = repository or AuthRepository()

    def login(self, db, auth_input: AuthLoginInput) -> AuthUser | None:
        email = (auth_input.email or "").strip().lower()
        password = auth_input.password or ""
        if not email or not password:
            raise ValidationError(code="auth_missing_credentials", message_key="auth_missing_credentials")

        db_user = self.repository.find_user_by_email(db, email)
        if not db_user or not check_password_hash(db_user["password_hash"], password):
            return None
        return AuthUser(
            id=str(db_user["id"]),
            email=db_user["email"],
            role=normalize_role(db_user.get("role")),
            display_name=db_user.get("full_name") or db_user["email"].split("@")[0],
        )

    def register(self, db, auth_input: AuthRegisterInput) -> AuthUser:
        email = (auth_input.email or "").strip().lower()
        password = auth_input.password or ""
        role = normalize_role(auth_input.role)
        full_name = (auth_input.full_name or "").strip() or None
        company_name = (auth_input.company_name or "").strip() or None

        if not email or not password:
            raise ValidationError(code="auth_missing_credentials", message_key="auth_missing_credentials")
        if not _EMAIL_PATTERN.match(email):
            raise ValidationError(code="email_invalid", message_key="email_invalid")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(code="password_too_short", message_key="password_too_short")
        if not role:
            raise ValidationError(code="role_invalid", message_key="role_invalid")
        if self.repository.email_exists(db, email):
            raise ValidationError(
                code="email_already_registered",
                message_key="email_already_registered",
                http_status=409,
            )

        user_id = self.repository.create_user(
            db,
            email=email,
            password=password,
            role=role,
            full_name=full_name,
            company_name=company_name,
        )
        return AuthUser(
            id=user_id,
            email=email,
            role=role,
            display_name=full_name or email.split("@")[0],
        )
