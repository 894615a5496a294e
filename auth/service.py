"""
auth/service.py -- Registration, login, and current-user lookups.

Functions take the UserStore explicitly (the same shape as
auth.tokens.authenticate_user) so routes pass request.app.state.user_store
and tests pass an in-memory store. Failures raise core.errors kinds; the HTTP
layer maps them to status codes.

Token issuance lives in auth.tokens. Every successful register/login returns
(token, user) with the same claim shape.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token, hash_password
from core.errors import AuthError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger("judgmentnotes.auth")

MIN_PASSWORD_LENGTH = 6
# bcrypt ignores (or, in recent releases, refuses) input beyond 72 bytes.
MAX_PASSWORD_BYTES = 72

_BAD_CREDENTIALS = "invalid email or password"


def normalize_email(raw: str | None) -> str:
    return (raw or "").strip().lower()


def check_password(password: str) -> None:
    """Raise ValidationError if password is too short or too long for bcrypt."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")


def insert_user(store: UserStore, user: User) -> User:
    """Insert user, translating a UNIQUE(email) violation into ConflictError."""
    try:
        return store.create_user(user)
    except IntegrityError as exc:
        raise ConflictError("email already exists") from exc


def register(store: UserStore, email: str, password: str, name: str) -> tuple[str, User]:
    """Create a `user`-role account and return (token, user).

    Self-registration can never produce an admin; admins are created through
    the user admin API or the create-admin CLI command.
    """
    email = normalize_email(email)
    name = (name or "").strip()
    password = password or ""
    if not email or not password or not name:
        raise ValidationError("email, password, and name are required")
    check_password(password)

    user = insert_user(
        store,
        User(email=email, name=name, role=Role.user, hashed_password=hash_password(password)),
    )
    logger.info("Registered user %s", user.id)
    return create_access_token(user), user


def login(store: UserStore, email: str, password: str) -> tuple[str, User]:
    """Verify credentials and return (token, user).

    Unknown email and wrong password raise the same AuthError so the response
    never reveals which one was wrong.
    """
    user = authenticate_user(store, normalize_email(email), password or "")
    if user is None:
        logger.info("Failed login attempt")
        raise AuthError(_BAD_CREDENTIALS)
    return create_access_token(user), user


def who_am_i(store: UserStore, subject_id: str) -> User:
    """Return the caller's account.

    Tokens outlive deletions (there is no revocation), so a valid token can
    name an account that no longer exists: that is a 404, not a 401.
    """
    user = store.get_by_id(subject_id)
    if user is None:
        raise NotFoundError("user not found")
    return user


def logout() -> dict:
    """Acknowledge a logout. Tokens are stateless; the client discards its copy."""
    return {"message": "logged out"}
