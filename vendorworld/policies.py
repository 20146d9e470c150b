from __future__ import annotations

from typing import Iterable, Set

from flask import session

from vendorworld.errors import AuthenticationError
from vendorworld.errors import PermissionError as AppPermissionError


VALID_ROLES: Set[str] = {"client", "vendor"}


def normalize_role(role: str | None, default: str = "") -> str:
    normalized = str(role or "").strip().lower()
    if normalized in VALID_ROLES:
        return normalized
    return default if default in VALID_ROLES else ""


def current_user_id() -> str | None:
    user_id = str(session.get("user_id") or "").strip()
    return user_id or None


def current_role() -> str:
    return normalize_role(session.get("user_role"))


def require_user() -> str:
    user_id = current_user_id()
    if user_id:
        return user_id
    raise AuthenticationError(payload={"login_url": "/api/auth/login"})


def has_any_role(role: str | None, allowed_roles: Iterable[str]) -> bool:
    normalized_role = normalize_role(role)
    allowed = {normalize_role(item) for item in allowed_roles} - {""}
    return not allowed or normalized_role in allowed


def require_roles(*allowed_roles: str, role: str | None = None) -> str:
    normalized_role = normalize_role(role) if role is not None else current_role()
    if has_any_role(normalized_role, allowed_roles):
        return normalized_role
    raise AppPermissionError(
        code="permission_denied",
        message_key="permission_denied",
        http_status=403,
        critical=False,
        payload={"required_roles": sorted(allowed_roles)},
    )
