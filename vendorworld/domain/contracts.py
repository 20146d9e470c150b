from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ServiceOutput:
    payload: Dict[str, Any]
    status_code: int = 200


@dataclass(frozen=True)
class Viewer:
    user_id: str
    role: str


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    role: str
    display_name: str


@dataclass(frozen=True)
class AuthLoginInput:
    email: str
    password: str


@dataclass(frozen=True)
class AuthRegisterInput:
    email: str
    password: str
    role: str
    full_name: str | None = None
    company_name: str | None = None


@dataclass(frozen=True)
class RfqCreateInput:
    title: str
    description: str | None
    due_date: str | None
    status: str = "draft"


@dataclass(frozen=True)
class RfqListInput:
    search: str | None = None
    status: str | None = None


@dataclass(frozen=True)
class RfqUpdateInput:
    rfq_id: str
    fields: Dict[str, Any]


@dataclass(frozen=True)
class QuoteSubmitInput:
    rfq_id: str
    amount: Any
    currency: str | None
    message: str | None


@dataclass(frozen=True)
class ProfileUpdateInput:
    fields: Dict[str, Any]
