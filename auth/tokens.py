"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub (user id), email, and expiry. Verification returns None on any
       failure -- the identity dependency turns that into Unauthorized.
       Tokens are never stored server-side; logout cannot revoke them.

  Passwords: bcrypt used directly. Its cost factor (BCRYPT_ROUNDS) makes
       brute-force expensive. _DUMMY_HASH enables timing equalization in
       AuthService.login() so response time does not reveal whether an
       email is registered.

  SECRET_KEY: sourced from core.config.get_settings(), which validates the
       key at startup.

Layer rule: no imports from api/ or tasks/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

logger = logging.getLogger("taskdesk.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are rejected by bcrypt 4.x. The API layer
    caps password length at 72 characters of input.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input.
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
DUMMY_HASH: str = hash_password("taskdesk_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: str, email: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT binding a user id and email.

    Args:
        user_id:        Opaque user id, stored as the JWT subject claim.
        email:          Account email, stored as the "email" claim.
        expire_seconds: Lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=duration)
    payload = {
        "sub": user_id,
        "email": email,
        "exp": expire,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    python-jose checks the signature and requires an unexpired exp claim.
    A token without sub or email is treated as invalid even if correctly signed.
    """
    try:
        payload = jwt.decode(
            token, _settings.secret_key, algorithms=[_ALGORITHM], options={"require_exp": True}
        )
    except JWTError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        return None
    if not payload.get("sub") or "email" not in payload:
        return None
    return payload
