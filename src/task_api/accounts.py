"""
Account directory: registration, login and identity resolution.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from .errors import InvalidCredentials, UnknownIdentity, ValidationFailure
from .models import UserEntity, public_user
from .repositories import UserRepository
from .security import PasswordHasher, TokenIssuer

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class AccountDirectory:
    """
    Owns user records and is the only place that issues session tokens.

    Emails are matched as exact strings: 'Ann@x.com' and 'ann@x.com' are
    different accounts.
    """

    def __init__(self, users: UserRepository, hasher: PasswordHasher, tokens: TokenIssuer) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens
        self._dummy_hash = hasher.hash("not-a-real-account-password")

    def register(self, name: str, email: str, password: str) -> Tuple[Dict[str, Any], str]:
        """
        Create an account and open a session for it.

        Returns:
            (public user view, session token)

        Raises:
            DuplicateAccount if the email is already registered.
            ValidationFailure on empty name, email or password.
        """
        if not name or not name.strip():
            raise ValidationFailure("Name is required")
        if not email:
            raise ValidationFailure("Email is required")
        if not password:
            raise ValidationFailure("Password is required")

        # Uniqueness is enforced atomically by the store; no pre-check here.
        user = self._users.create(name, email, self._hasher.hash(password))
        logger.info("Registered user id=%s", user["id"])
        return self._session(user)

    def login(self, email: str, password: str) -> Tuple[Dict[str, Any], str]:
        """
        Open a session for an existing account.

        Raises:
            InvalidCredentials when the email is unknown or the password is
            wrong. Both cases raise the same error with the same message.
        """
        user = self._users.get_by_email(email)
        # unknown emails are checked against a placeholder hash: one bcrypt run per attempt
        stored_hash = user["password_hash"] if user is not None else self._dummy_hash
        if not self._hasher.verify(password, stored_hash) or user is None:
            logger.warning("Rejected login attempt")
            raise InvalidCredentials()
        logger.info("User id=%s logged in", user["id"])
        return self._session(user)

    def resolve_identity(self, user_id: int) -> Dict[str, Any]:
        """Return the public view of a user, or raise UnknownIdentity."""
        user = self._users.get(user_id)
        if user is None:
            raise UnknownIdentity()
        return public_user(user)

    def _session(self, user: UserEntity) -> Tuple[Dict[str, Any], str]:
        token = self._tokens.issue_session(user["id"], user["email"])
        return public_user(user), token
