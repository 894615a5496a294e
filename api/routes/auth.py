"""
api/routes/auth.py -- Account registration, login and identity endpoints.

Routes:
  POST /api/auth/register   -- create a `user` account; 201 {token, user}
  POST /api/auth/login      -- password login; 200 {token, user}
  GET  /api/auth/me         -- current account (requires bearer token)
  POST /api/auth/logout     -- acknowledgment only; tokens are stateless

Security:
  register and login are rate-limited per client IP (LOGIN_RATE_LIMIT).
  login goes through authenticate_user() (via auth.service.login), which
  equalizes timing between unknown emails and wrong passwords.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import CREDENTIAL_LIMIT, limiter
from api.models import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, UserResponse
from auth import service
from auth.dependencies import get_principal
from auth.models import Principal
from auth.store import UserStore

# Auth policy:
# - POST /api/auth/register: public, rate limited
# - POST /api/auth/login:    public, rate limited
# - GET  /api/auth/me:       requires bearer token (get_principal)
# - POST /api/auth/logout:   public -- there is nothing server-side to end
router = APIRouter()


@limiter.limit(CREDENTIAL_LIMIT)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, response: Response, body: RegisterRequest) -> AuthResponse:
    """Create a new account with role `user` and return a token for it."""
    user_store: UserStore = request.app.state.user_store
    token, user = service.register(user_store, body.email, body.password, body.name)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(token=token, user=UserResponse.from_user(user))


@limiter.limit(CREDENTIAL_LIMIT)
@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, response: Response, body: LoginRequest) -> AuthResponse:
    """Authenticate with email and password.

    Returns the same 401 for an unknown email and a wrong password.
    """
    user_store: UserStore = request.app.state.user_store
    token, user = service.login(user_store, body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(token=token, user=UserResponse.from_user(user))


@router.get("/auth/me", response_model=UserResponse)
def me(request: Request, principal: Principal = Depends(get_principal)) -> UserResponse:
    """Return the account named by the bearer token's subject."""
    user_store: UserStore = request.app.state.user_store
    return UserResponse.from_user(service.who_am_i(user_store, principal.subject_id))


@router.post("/auth/logout", response_model=MessageResponse)
async def logout() -> MessageResponse:
    """Acknowledge logout. The client is responsible for discarding its token."""
    return MessageResponse(**service.logout())
