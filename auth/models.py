"""
auth/models.py -- Domain types for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these classes only own the shape.

Role is a closed enum. The wire values ("ADMIN" / "USER") are what the store
persists and what tokens carry in their "role" claim.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    MEMBER = "USER"
    ADMINISTRATOR = "ADMIN"


@dataclass
class Account:
    """A registered identity.

    hashed_password is the bcrypt digest; the plaintext never reaches this
    class. It stays server-side -- api/models.AccountResponse has no field
    for it.

    id is None before the record is written. Timestamps are ISO 8601 UTC.
    """

    username: str
    role: Role = Role.MEMBER
    id: str | None = None
    hashed_password: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class Claims:
    """Decoded payload of a validated bearer token. Immutable once issued."""

    subject_id: str
    username: str
    role: Role
    expires_at: datetime
