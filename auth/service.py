"""
auth/service.py -- Signup, login and logout.

AuthService is constructed with a UserStore and holds no other state, so one
instance is shared by every request (it lives on app.state). The store is
injected rather than looked up, which lets tests hand in an in-memory store.

Security:
  login() always runs bcrypt, against DUMMY_HASH when the email is unknown,
  and raises the same InvalidCredentials for both failure causes. Neither
  the message nor the response time says which check failed.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from auth.tokens import DUMMY_HASH, create_access_token, hash_password, verify_password
from core.errors import DuplicateEmail, InvalidCredentials

logger = logging.getLogger("taskdesk.auth")

LOGOUT_MESSAGE = "Logout successful"


class AuthService:
    def __init__(self, store: UserStore) -> None:
        self._store = store

    def signup(self, email: str, password: str) -> str:
        """Register a new account and return a bearer token for it.

        Raises DuplicateEmail if the email is taken, including the case where
        a concurrent signup wins the race between the pre-check and the insert.
        """
        if self._store.get_by_email(email) is not None:
            raise DuplicateEmail()

        user = User(email=email, hashed_password=hash_password(password))
        try:
            user_id = self._store.create_user(user)
        except IntegrityError as exc:
            raise DuplicateEmail() from exc

        logger.info("New account registered (user_id=%s)", user_id)
        return create_access_token(user_id, email)

    def login(self, email: str, password: str) -> str:
        """Verify credentials and return a bearer token for the existing account."""
        user = self._store.get_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            verify_password(password, DUMMY_HASH)
            logger.info("Failed login attempt")
            raise InvalidCredentials()
        if not verify_password(password, user.hashed_password):
            logger.info("Failed login attempt")
            raise InvalidCredentials()
        return create_access_token(user.id, user.email)

    def logout(self) -> str:
        """Acknowledge a logout.

        Tokens are stateless and stay valid until they expire; there is no
        server-side revocation list. Clients are expected to discard the token.
        """
        return LOGOUT_MESSAGE
