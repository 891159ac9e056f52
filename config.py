from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


def _parse_origins(raw: str) -> tuple[str, ...]:
    # CORS_ORIGINS is a comma-separated list, e.g. http://localhost:3000,http://localhost:5173
    origins = [o.strip() for o in raw.split(",")]
    origins = [o for o in origins if o]
    if not origins:
        raise ValueError("CORS_ORIGINS is empty. Use '*' to allow every origin.")
    return tuple(dict.fromkeys(origins))


def _parse_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"Invalid STORE_TIMEOUT_SECONDS value: {raw!r}. Expected a number.") from e
    if value <= 0:
        raise ValueError("Invalid STORE_TIMEOUT_SECONDS value: must be greater than zero.")
    return value


@dataclass(frozen=True)
class Settings:
    # Checked lazily by database.get_engine() so the app can be imported without a database
    database_url: str | None = None

    # Upper bound for a single find/insert/delete against the database
    store_timeout_seconds: float = 5.0

    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    sql_echo: bool = False


def load_settings(dotenv_path: str | None = None) -> Settings:
    # Prefer .env in the project root; dotenv_path allows overriding in tests.
    load_dotenv(dotenv_path=dotenv_path, override=False)

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ValueError(f"Invalid LOG_LEVEL value: {log_level!r}")

    sql_echo_raw = os.getenv("SQL_ECHO", "0").strip().lower()

    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        store_timeout_seconds=_parse_timeout(os.getenv("STORE_TIMEOUT_SECONDS", "5")),
        cors_origins=_parse_origins(os.getenv("CORS_ORIGINS", "*")),
        log_level=log_level,
        sql_echo=sql_echo_raw in {"1", "true", "yes"},
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
