from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

_DEFAULT_JWT_SECRET = "dev-only-task-tracker-secret-change-me-in-production"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - JWT_SECRET: HMAC key used to sign session tokens
    - JWT_ALGORITHM: token signing algorithm (default: HS256)
    - ACCESS_TOKEN_EXPIRE_MINUTES: session token lifetime (default: 1440)
    - BCRYPT_ROUNDS: bcrypt cost factor, 4..31 (default: 10)
    - LOG_LEVEL: root log level name (default: INFO)
    """

    persistence_backend: str = "memory"
    sqlite_db_path: str = "./data/tasks.db"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    jwt_secret: str = _DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440
    bcrypt_rounds: int = 10
    log_level: str = "INFO"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int, lo: int, hi: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    if not (lo <= parsed <= hi):
        return default
    return parsed


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    algorithm = _get_env("JWT_ALGORITHM", "HS256").strip().upper()
    if algorithm not in {"HS256", "HS384", "HS512"}:
        algorithm = "HS256"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        log_level = "INFO"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/tasks.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        jwt_secret=_get_env("JWT_SECRET", _DEFAULT_JWT_SECRET),
        jwt_algorithm=algorithm,
        access_token_expire_minutes=_parse_int(
            _get_env("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"), 1440, 1, 60 * 24 * 365
        ),
        bcrypt_rounds=_parse_int(_get_env("BCRYPT_ROUNDS", "10"), 10, 4, 31),
        log_level=log_level,
    )
