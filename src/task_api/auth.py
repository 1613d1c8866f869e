from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .accounts import AccountDirectory
from .errors import Unauthenticated, UnknownIdentity
from .security import TokenError, TokenIssuer

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller behind a request."""

    user_id: int
    email: str


# PUBLIC_INTERFACE
class AuthGate:
    """
    Stateless per-request session verification.

    A token is accepted only if its signature and expiry check out and its
    subject still resolves to an account.
    """

    def __init__(self, tokens: TokenIssuer, accounts: AccountDirectory) -> None:
        self._tokens = tokens
        self._accounts = accounts

    def authenticate(self, token: Optional[str]) -> Identity:
        if not token:
            raise Unauthenticated()
        try:
            claims = self._tokens.verify(token)
        except TokenError as e:
            logger.debug("Token rejected: %s", e)
            raise Unauthenticated() from e

        try:
            user_id = int(claims["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise Unauthenticated() from e

        try:
            user = self._accounts.resolve_identity(user_id)
        except UnknownIdentity as e:
            logger.info("Token subject id=%s no longer exists", user_id)
            raise Unauthenticated() from e
        return Identity(user_id=user["id"], email=user["email"])


# PUBLIC_INTERFACE
def get_current_identity(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
) -> Identity:
    """
    FastAPI dependency resolving the bearer token on the request to an Identity.

    Raises:
        Unauthenticated if the Authorization header is missing or the token
        does not verify.
    """
    gate: AuthGate = request.app.state.services.gate
    return gate.authenticate(creds.credentials if creds is not None else None)
