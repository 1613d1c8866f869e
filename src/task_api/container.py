from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .accounts import AccountDirectory
from .auth import AuthGate
from .repositories import TaskRepository, UserRepository, get_repositories
from .security import PasswordHasher, TokenIssuer
from .settings import Settings, get_settings
from .task_service import TaskService


@dataclass(frozen=True)
class Services:
    """Every component the routers need, wired together once per app."""

    settings: Settings
    accounts: AccountDirectory
    gate: AuthGate
    tasks: TaskService


# PUBLIC_INTERFACE
def build_services(
    settings: Optional[Settings] = None,
    users: Optional[UserRepository] = None,
    tasks: Optional[TaskRepository] = None,
) -> Services:
    """
    Wire repositories, hasher, token issuer and services with explicit
    constructor arguments. Repositories default to the configured backend.
    """
    settings = settings or get_settings()
    if users is None or tasks is None:
        users, tasks = get_repositories(settings)

    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    tokens = TokenIssuer(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )
    accounts = AccountDirectory(users, hasher, tokens)
    return Services(
        settings=settings,
        accounts=accounts,
        gate=AuthGate(tokens, accounts),
        tasks=TaskService(tasks),
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the services attached to the running app."""
    return request.app.state.services
