# tsoam/config.py
"""
Runtime configuration.

Values come from the process environment (a local `.env` is loaded first).
`get_settings()` is cached; tests that tweak the environment call
`get_settings.cache_clear()`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(key: str, default: str) -> List[str]:
    raw = os.getenv(key, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./tsoam.db"
    sql_echo: bool = False
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 1440
    auth_enforce: bool = True
    demo_fallback: bool = True
    reset_code_in_response: bool = False
    client_urls: List[str] = field(default_factory=list)
    tz: str = "Africa/Nairobi"
    currency: str = "KES"
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./tsoam.db"),
        sql_echo=_env_bool("SQL_ECHO", "false"),
        jwt_secret=os.getenv("JWT_SECRET", "change-me"),
        jwt_expires_minutes=int(os.getenv("JWT_EXPIRES_MINUTES", "1440")),
        auth_enforce=_env_bool("AUTH_ENFORCE", "true"),
        demo_fallback=_env_bool("DEMO_FALLBACK", "true"),
        reset_code_in_response=_env_bool("RESET_CODE_IN_RESPONSE", "false"),
        client_urls=_env_list(
            "CLIENT_URLS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        ),
        tz=os.getenv("TZ", "Africa/Nairobi"),
        currency=os.getenv("CURRENCY", "KES"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the root logger (idempotent)."""
    root = logging.getLogger()
    root.setLevel(level or get_settings().log_level)
    if any(getattr(h, "_tsoam", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._tsoam = True  # type: ignore[attr-defined]
    root.addHandler(handler)
