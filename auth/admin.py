"""
auth/admin.py -- User account administration (admin role only).

The admin-role requirement is enforced by the RBAC gate in
auth/dependencies.py before any of these functions run. What this module
enforces is the self-protection rule: the calling admin can neither demote
their own account away from admin nor delete it, so an admin cannot lock
themselves out through the API.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from auth.service import check_password, insert_user, normalize_email
from auth.store import UserStore
from auth.tokens import hash_password
from core.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger("judgmentnotes.auth.admin")


def _parse_role(raw: str) -> Role:
    try:
        return Role.parse(raw)
    except ValueError as exc:
        raise ValidationError("invalid role") from exc


def list_users(store: UserStore) -> list[User]:
    return store.list_users()


def get_user(store: UserStore, user_id: str) -> User:
    user = store.get_by_id(user_id)
    if user is None:
        raise NotFoundError("user not found")
    return user


def create_user(store: UserStore, email: str, name: str, password: str, role: str | None = None) -> User:
    """Create an account with an explicit role (default: user)."""
    email = normalize_email(email)
    name = (name or "").strip()
    password = password or ""
    if not email or not name or not password:
        raise ValidationError("email, password, and name are required")
    check_password(password)
    parsed_role = _parse_role(role) if role and role.strip() else Role.user

    user = insert_user(
        store,
        User(email=email, name=name, role=parsed_role, hashed_password=hash_password(password)),
    )
    logger.info("Admin created user %s with role %s", user.id, user.role.value)
    return user


def update_user(
    store: UserStore,
    caller_id: str,
    user_id: str,
    email: str | None = None,
    name: str | None = None,
    role: str | None = None,
    password: str | None = None,
) -> None:
    """Apply a partial update. None means "leave unchanged".

    Every supplied field is validated before anything is written, so a bad
    field never leaves the record half-updated. An empty update is a no-op
    success, even for an unknown id.
    """
    fields: dict = {}

    if email is not None:
        email = normalize_email(email)
        if not email or "@" not in email:
            raise ValidationError("invalid email")
        fields["email"] = email

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("name cannot be empty")
        fields["name"] = name

    if role is not None:
        parsed_role = _parse_role(role)
        if user_id == caller_id and parsed_role is not Role.admin:
            logger.warning("Admin %s attempted to downgrade their own role", caller_id)
            raise ValidationError("cannot downgrade your own role")
        fields["role"] = parsed_role

    if password is not None:
        check_password(password)
        fields["password_hash"] = hash_password(password)

    if not fields:
        return

    try:
        updated = store.update_user(user_id, **fields)
    except IntegrityError as exc:
        raise ConflictError("email already exists") from exc
    if not updated:
        raise NotFoundError("user not found")
    logger.info("Admin %s updated user %s (%s)", caller_id, user_id, ", ".join(sorted(fields)))


def delete_user(store: UserStore, caller_id: str, user_id: str) -> None:
    if user_id == caller_id:
        logger.warning("Admin %s attempted to delete their own account", caller_id)
        raise ValidationError("cannot delete your own account")
    if not store.delete_user(user_id):
        raise NotFoundError("user not found")
    logger.info("Admin %s deleted user %s", caller_id, user_id)
