"""
Credential hashing and session token signing.

Both services are used as black boxes by the account and auth layers:

- PasswordHasher: hash(plaintext) -> str, verify(plaintext, hash) -> bool
- TokenIssuer: sign(claims) -> str, verify(token) -> claims or TokenError
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Raised when a token is malformed, badly signed or expired."""


# PUBLIC_INTERFACE
class PasswordHasher:
    """Bcrypt password hashing utility."""

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            # Corrupt or foreign hash format in storage
            logger.error("Password verification failed: %s", e)
            return False


# PUBLIC_INTERFACE
class TokenIssuer:
    """
    Signs and verifies session tokens (JWT).

    Tokens carry ``sub`` (user id as a string), ``email``, ``iat`` and ``exp``.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 1440) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(minutes=expire_minutes)

    def sign(self, claims: Dict[str, Any]) -> str:
        now = datetime.now(timezone.utc)
        payload = dict(claims)
        payload.setdefault("iat", now)
        payload.setdefault("exp", now + self._ttl)
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenError("Token has expired") from e
        except jwt.PyJWTError as e:
            raise TokenError(f"Invalid token: {e}") from e

    def issue_session(self, user_id: int, email: str) -> str:
        """Sign a session token bound to the given account."""
        return self.sign({"sub": str(user_id), "email": email})
