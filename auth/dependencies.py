"""
auth/dependencies.py -- Bearer-token gate and role gate as FastAPI Depends() helpers.

Two layers, always composed in this order:
  1. authenticate_request() -- Authorization: Bearer <token> -> Principal.
     Raises AuthError (401) for a missing header, a missing/empty Bearer
     credential, a bad signature, a disallowed algorithm, an expired token,
     or a token without a subject.
  2. authorize() -- Principal + allowed roles -> pass / ForbiddenError (403).
     Raises AuthError (401) when the principal carries no role at all.

get_principal() is the dependency for "any authenticated caller".
require_roles(Role.admin) is the dependency for role-restricted routes; it
runs get_principal() first, so the role gate never sees an unauthenticated
request.

The Principal is built from token claims alone -- no database lookup -- so
authentication is stateless. Routes that need the live account record (e.g.
GET /auth/me) look it up themselves.

Layer rule: no imports from api/ or judgments/.
  auth/dependencies.py may import from fastapi (for Depends/Request) because
  this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from fastapi import Depends, Request

from auth.models import Principal, Role
from auth.tokens import decode_access_token
from core.errors import AuthError, ForbiddenError

logger = logging.getLogger("judgmentnotes.auth")


def _claim(claims: dict, name: str) -> str:
    value = claims.get(name)
    return str(value).strip() if value is not None else ""


def authenticate_request(raw_header: str | None) -> Principal:
    """Turn a raw Authorization header value into a Principal or raise AuthError."""
    if not raw_header or not raw_header.strip():
        raise AuthError("authorization header required")

    scheme, _, credential = raw_header.strip().partition(" ")
    token = credential.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthError("invalid token")

    claims = decode_access_token(token)
    if claims is None:
        raise AuthError("invalid token")

    subject_id = _claim(claims, "sub")
    if not subject_id:
        raise AuthError("invalid token (no sub)")

    return Principal(
        subject_id=subject_id,
        email=_claim(claims, "email"),
        role=_claim(claims, "role").lower(),
    )


def authorize(principal: Principal, allowed_roles: Iterable[Role | str]) -> None:
    """Raise unless principal's role is in allowed_roles.

    Matching is case-insensitive and ignores surrounding whitespace on both
    sides.
    """
    allowed = {(r.value if isinstance(r, Role) else str(r)).strip().lower() for r in allowed_roles}
    role = principal.role.strip().lower()
    if not role:
        raise AuthError("unauthorized")
    if role not in allowed:
        logger.warning("Forbidden: subject %s with role %r", principal.subject_id, role)
        raise ForbiddenError("forbidden")


def get_principal(request: Request) -> Principal:
    """Require a valid bearer token. Raises AuthError (401) otherwise.

    Use as a FastAPI dependency:
        @router.post("/protected")
        def route(principal: Principal = Depends(get_principal)): ...

    The principal is also stored on request.state for middleware and logging.
    """
    principal = authenticate_request(request.headers.get("Authorization"))
    request.state.principal = principal
    return principal


def require_roles(*roles: Role) -> Callable[..., Principal]:
    """Build a dependency that authenticates, then checks the caller's role.

    Use as a FastAPI dependency:
        router = APIRouter(dependencies=[Depends(require_roles(Role.admin))])
    """
    allowed = frozenset(roles)

    def _dependency(principal: Principal = Depends(get_principal)) -> Principal:
        authorize(principal, allowed)
        return principal

    return _dependency
