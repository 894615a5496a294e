"""
api/routes/users.py -- Account administration endpoints (admin only).

Routes:
  GET    /api/users        -- list accounts, newest first
  GET    /api/users/{id}   -- single account
  POST   /api/users        -- create account with explicit role; 201 user
  PATCH  /api/users/{id}   -- partial update; 204
  DELETE /api/users/{id}   -- delete account; 204

Every route requires a bearer token whose role is admin: 401 without a valid
token, 403 for any other role. The self-protection rules (no self-demotion,
no self-delete) are enforced in auth/admin.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import UserCreate, UserPatch, UserResponse
from auth import admin
from auth.dependencies import require_roles
from auth.models import Principal, Role
from auth.store import UserStore

# One instance so FastAPI's per-request dependency cache runs the gate once
# even though both the router and the handlers declare it.
_require_admin = require_roles(Role.admin)

router = APIRouter(dependencies=[Depends(_require_admin)])


def _store(request: Request) -> UserStore:
    return request.app.state.user_store


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    return [UserResponse.from_user(u) for u in admin.list_users(_store(request))]


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: str) -> UserResponse:
    return UserResponse.from_user(admin.get_user(_store(request), user_id))


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserResponse:
    """Create an account. role is optional and defaults to user."""
    user = admin.create_user(_store(request), body.email, body.name, body.password, body.role)
    return UserResponse.from_user(user)


@router.patch("/users/{user_id}", status_code=204)
def update_user(
    request: Request,
    user_id: str,
    body: UserPatch,
    principal: Principal = Depends(_require_admin),
) -> Response:
    """Update any subset of email, name, role and password."""
    admin.update_user(
        _store(request),
        caller_id=principal.subject_id,
        user_id=user_id,
        email=body.email,
        name=body.name,
        role=body.role,
        password=body.password,
    )
    return Response(status_code=204)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: str,
    principal: Principal = Depends(_require_admin),
) -> Response:
    admin.delete_user(_store(request), caller_id=principal.subject_id, user_id=user_id)
    return Response(status_code=204)
