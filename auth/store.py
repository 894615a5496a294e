"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as judgments/store.py).
UserStore is the repository; _row_to_user is the mapper. Service and route
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL. Partial updates
  are built with Table.update().values(**fields) from a fixed column
  whitelist, so no identifier ever comes from request input.

Schema: created by migrations/0001_create_users.sql. The Table below mirrors
that DDL for query building only; it is never used for create_all().

Uniqueness: UNIQUE(email) is enforced by the database. create_user() and
update_user() let sqlalchemy.exc.IntegrityError propagate; the service layer
turns it into ConflictError.

Layer rule: no imports from api/ or judgments/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import Role, User

# ---------------------------------------------------------------------------
# Schema (mirror of migrations/0001_create_users.sql)
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("role", String(20), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("avatar_url", Text),
    Column("created_at", String(32), nullable=False),
)

# Columns update_user() may touch. Anything else is a programming error.
_UPDATABLE = frozenset({"email", "name", "role", "password_hash", "avatar_url"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(engine)
        user = store.create_user(User(email="a@x.com", name="A", role=Role.user, hashed_password=h))
        store.get_by_email("a@x.com")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_user(self, user: User) -> User:
        """Insert a new user and return it with id and created_at filled in.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        user_id = str(uuid.uuid4())
        created_at = _now_iso()
        with self.engine.begin() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    email=user.email,
                    name=user.name,
                    role=user.role.value,
                    password_hash=user.hashed_password,
                    avatar_url=user.avatar_url,
                    created_at=created_at,
                )
            )
        return User(
            id=user_id,
            email=user.email,
            name=user.name,
            role=user.role,
            hashed_password=user.hashed_password,
            avatar_url=user.avatar_url,
            created_at=created_at,
        )

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by normalized email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.created_at.desc())).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, user_id: str, **fields) -> bool:
        """Update a subset of mutable columns on an existing user.

        Accepted fields: email, name, role, password_hash, avatar_url. role may
        be passed as a Role member. Unknown keys raise ValueError rather than
        being silently ignored.

        Returns True if a row matched, False if user_id was not found.
        Raises sqlalchemy.exc.IntegrityError on a duplicate email.
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        if "role" in fields and isinstance(fields["role"], Role):
            fields["role"] = fields["role"].value
        with self.engine.begin() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
        return result.rowcount > 0

    def delete_user(self, user_id: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found."""
        with self.engine.begin() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
        return result.rowcount > 0

    def count_admins(self) -> int:
        """Return the number of admin accounts. Used by the create-admin CLI."""
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_users).where(_users.c.role == Role.admin.value)
            ).scalar()
        return result or 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name,
        role=Role.parse(row.role),
        hashed_password=row.password_hash,
        avatar_url=row.avatar_url,
        created_at=row.created_at,
    )
