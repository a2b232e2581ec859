"""
Domain: registry users (staff accounts).

Users record transactions and manage land plots. Registration is admin-gated;
users are never deleted, only edited (profile) or re-keyed (password change).

Invariants:
- Email is unique case-insensitively; it is stored lowercased and trimmed.
- The password is never stored; only a one-way verifiable hash is kept.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from .errors import InvalidInputError
from .time import require_utc_timestamp
from .validation import require_text

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_NAME_PATTERN = re.compile(r"^[A-Za-z\s]+$")


class Role(str, Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    AUDITOR = "AUDITOR"


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address, rejecting malformed ones."""

    if not isinstance(email, str) or not email.strip():
        raise InvalidInputError("Email is required")
    normalized = email.strip().lower()
    if not _EMAIL_PATTERN.match(normalized):
        raise InvalidInputError("Please provide a valid email address")
    return normalized


def validate_person_name(label: str, value: str) -> str:
    name = require_text(label, value, min_length=2, max_length=50)
    if not _NAME_PATTERN.match(name):
        raise InvalidInputError(f"{label} can only contain letters and spaces")
    return name


@dataclass(frozen=True, slots=True)
class User:
    """
    Registry user with role-based access.

    `password_hash` holds a bcrypt hash; API responses must never include it.
    """

    user_id: UUID
    email: str
    password_hash: str
    role: Role
    first_name: str
    last_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.email != normalize_email(self.email):
            raise InvalidInputError("email must be stored normalized (lowercase, trimmed)")
        if not self.password_hash:
            raise InvalidInputError("password_hash is required")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


__all__ = [
    "Role",
    "User",
    "normalize_email",
    "validate_person_name",
]
