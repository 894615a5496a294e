"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in judgments/models.py -- dataclasses own domain shape; stores and services do
the work.

Layer rule: no imports from api/ or judgments/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed set of account roles.

    Role strings arriving from outside (request bodies, token claims, CLI
    flags) go through Role.parse() once at the boundary; everything past that
    point compares enum members, not free-form strings.
    """

    admin = "admin"
    user = "user"

    @classmethod
    def parse(cls, raw: str) -> Role:
        """Return the Role for raw, ignoring case and surrounding whitespace.

        Raises ValueError for anything outside the closed set.
        """
        return cls(str(raw).strip().lower())


@dataclass
class User:
    """A user account.

    email is always stored trimmed and lowercased -- the service layer
    normalizes before every write and lookup, so the store's UNIQUE(email)
    constraint is effectively case-insensitive.

    hashed_password never leaves the process: public_view() omits it and the
    API response models have no field for it.
    """

    email: str
    name: str
    role: Role
    hashed_password: str = ""
    id: str | None = None
    avatar_url: str | None = None
    created_at: str | None = None

    def public_view(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "avatar_url": self.avatar_url,
            "created_at": self.created_at or "",
        }


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as established by the bearer-token gate.

    role is the normalized (trimmed, lowercased) role claim. It is kept as a
    string because a token may carry a role this build no longer knows; the
    RBAC gate then answers 403 rather than treating the token as malformed.
    """

    subject_id: str
    email: str = ""
    role: str = ""
