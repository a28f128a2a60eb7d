# src/tasksync/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is required at import time; every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKSYNC"

load_dotenv(override=False)


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


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Store ----
    default_user_id: str

    # ---- Durability mirror ----
    snapshot_enabled: bool
    snapshot_path: Path

    # ---- Console ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasksync").strip() or "tasksync"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        default_user_id = _env(_k("DEFAULT_USER_ID"), "user1").strip() or "user1"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasksync"))
        snapshot_enabled = _env_bool(_k("SNAPSHOT_ENABLED"), True)
        snapshot_path = _env_path(_k("SNAPSHOT_PATH"), data_dir / "tasks.json")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            default_user_id=default_user_id,
            snapshot_enabled=snapshot_enabled,
            snapshot_path=snapshot_path,
            console_enabled=console_enabled,
            data_dir=data_dir,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
