"""
api/routes/auth.py -- Signup, login and logout endpoints.

Routes:
  POST /auth/signup  -- create account; 201 {accessToken}
  POST /auth/login   -- password login; 200 {accessToken}
  POST /auth/logout  -- acknowledge logout (requires bearer token)

Security:
  signup and login share the AUTH_RATE_LIMIT budget per client IP.
  Token responses carry Cache-Control: no-store so proxies never keep them.
  Errors (DuplicateEmail, InvalidCredentials) are raised by AuthService and
  rendered by the exception handlers in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import auth_rate_limit, limiter
from api.models import LoginRequest, MessageResponse, SignupRequest, TokenResponse
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.service import AuthService

# Auth policy:
# - POST /auth/signup:  public
# - POST /auth/login:   public
# - POST /auth/logout:  requires a valid bearer token (get_current_identity)
router = APIRouter()


def _token_response(token: str, status_code: int) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=TokenResponse(access_token=token).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@limiter.limit(auth_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/signup", response_model=TokenResponse, status_code=201)
def signup(request: Request, body: SignupRequest) -> JSONResponse:
    """Register a new user with email and password."""
    auth_service: AuthService = request.app.state.auth_service
    token = auth_service.signup(body.email, body.password)
    return _token_response(token, 201)


@limiter.limit(auth_rate_limit)
@router.post("/auth/login", response_model=TokenResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email and wrong password produce the same 401 invalid_credentials.
    """
    auth_service: AuthService = request.app.state.auth_service
    token = auth_service.login(body.email, body.password)
    return _token_response(token, 200)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(request: Request, identity: Identity = Depends(get_current_identity)) -> MessageResponse:
    """Log out the authenticated user.

    The token is not revoked; it stays valid until it expires.
    """
    auth_service: AuthService = request.app.state.auth_service
    return MessageResponse(message=auth_service.logout())
