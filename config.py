"""Settings for the tracker, read from ``TRACKER_*`` environment variables.

A ``.env`` file in the working directory is loaded first, without
overriding variables that are already set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TRACKER"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    database_uri: str
    secret_key: str
    sql_echo: bool

    log_dir: Path
    log_level: str
    configure_logging: bool

    host: str
    port: int
    debug: bool


def load_settings() -> Settings:
    """Read settings from the environment (and ``.env`` when present)."""
    load_dotenv(override=False)
    return Settings(
        # Relative SQLite paths resolve inside the Flask instance folder
        database_uri=_env(_k("DATABASE_URI"), "sqlite:///progress_tracker.db"),
        # IMPORTANT: set this in a real deployment
        secret_key=_env(_k("SECRET_KEY"), "change-me-secret-key"),
        sql_echo=_env_bool(_k("SQL_ECHO"), False),
        log_dir=Path(_env(_k("LOG_DIR"), ".local/tracker")).expanduser(),
        log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
        configure_logging=_env_bool(_k("CONFIGURE_LOGGING"), True),
        host=_env(_k("HOST"), "0.0.0.0"),
        port=_env_int(_k("PORT"), 3000),
        debug=_env_bool(_k("DEBUG"), False),
    )
