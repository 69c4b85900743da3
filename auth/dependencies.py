"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Only one auth method exists: an "Authorization: Bearer <token>" header
carrying a JWT issued by AuthService. Verification is signature + expiry
only; the credential store is not consulted, so a request costs no DB call
to authenticate.

try_get_identity() is the soft variant (returns None on failure).
get_current_identity() wraps it and raises Unauthorized (HTTP 401).

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Identity
from auth.tokens import decode_access_token
from core.errors import Unauthorized


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def try_get_identity(request: Request) -> Identity | None:
    """Return the Identity behind the request's bearer token, or None.

    Never raises -- callers that need a hard 401 should use get_current_identity().
    """
    token = _bearer_token(request)
    if token is None:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    return Identity(user_id=str(payload["sub"]), email=str(payload["email"]))


def get_current_identity(request: Request) -> Identity:
    """Require authentication. Raises Unauthorized if the token is missing or invalid.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    identity = try_get_identity(request)
    if identity is None:
        raise Unauthorized()
    return identity
