# src/taskdeck/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

- One Settings object for the whole app.
- No secrets required at import time; the API key has a dev default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .core.terminology import BusinessCase

ENV_PREFIX = "TASKDECK"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


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


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


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

    # ---- Remote API ----
    api_url: str
    api_key: str
    request_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    prefs_path: Path

    # ---- Views / polling ----
    recent_completed_days: int
    poll_interval_seconds: float
    polling_enabled: bool
    business_case: BusinessCase

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "taskdeck") or "taskdeck"
        log_level = _env(_k("LOG_LEVEL"), "INFO").upper()

        # Unprefixed API_URL / API_KEY are accepted too.
        api_url = (_first_env(_k("API_URL"), "API_URL", default="http://localhost:3002/api") or "").rstrip("/")
        api_key = _first_env(_k("API_KEY"), "API_KEY", default="dev-api-key") or "dev-api-key"
        request_timeout_seconds = max(1.0, _env_float(_k("REQUEST_TIMEOUT_SECONDS"), 10.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskdeck"))
        prefs_path = _env_path(_k("PREFS_PATH"), data_dir / "prefs.json")

        recent_completed_days = max(0, _env_int(_k("RECENT_COMPLETED_DAYS"), 2))
        poll_interval_seconds = max(1.0, _env_float(_k("POLL_INTERVAL_SECONDS"), 60.0))
        polling_enabled = _env_bool(_k("POLLING_ENABLED"), True)
        business_case = BusinessCase.from_env(os.getenv(_k("BUSINESS_CASE")))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_url=api_url,
            api_key=api_key,
            request_timeout_seconds=request_timeout_seconds,
            data_dir=data_dir,
            prefs_path=prefs_path,
            recent_completed_days=recent_completed_days,
            poll_interval_seconds=poll_interval_seconds,
            polling_enabled=polling_enabled,
            business_case=business_case,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
