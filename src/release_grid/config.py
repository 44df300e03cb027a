# src/release_grid/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole daemon (normal "settings layer").
- No secrets required at import time.
- Unprefixed TELEGRAM_* names are accepted as fallbacks for the bot credentials.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "RELEASE_GRID"

DEFAULT_TASK_COLUMNS = [
    "build_ios_ipa_status",
    "build_android_aab_status",
    "asc_submission_status",
    "gplay_submission_status",
    "ci_pipeline_status",
    "release_ready_status",
]


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment variables win over .env entries.
load_dotenv(override=False)


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


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


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

    # ---- Local files ----
    data_dir: Path
    table_path: Path
    pid_path: Path
    log_path: Path
    offset_path: Path

    # ---- Pipeline ----
    task_columns: List[str]
    executor_command: str
    executor_timeout_seconds: float

    # ---- Scheduling ----
    timer_interval_seconds: float
    long_poll_seconds: int
    poll_retry_delay_seconds: float
    stop_grace_seconds: float

    # ---- Telegram ----
    telegram_bot_token: Optional[str]
    telegram_chat_id: Optional[str]
    telegram_api_base: str

    # ---- Commands ----
    extended_commands: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "release-grid")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/release-grid"))
        table_path = _env_path(_k("TABLE_PATH"), data_dir / "projects.csv")
        pid_path = _env_path(_k("PID_PATH"), data_dir / "daemon.pid")
        log_path = _env_path(_k("LOG_PATH"), data_dir / "daemon.log")
        offset_path = _env_path(_k("OFFSET_PATH"), data_dir / "telegram-offset")

        task_columns = _env_list(_k("TASK_COLUMNS"), DEFAULT_TASK_COLUMNS)
        executor_command = _env(_k("EXECUTOR"), "").strip()
        executor_timeout_seconds = _env_float(_k("EXECUTOR_TIMEOUT_SECONDS"), 3600.0)

        timer_interval_seconds = _env_float(_k("TIMER_INTERVAL_SECONDS"), 30.0)
        long_poll_seconds = _env_int(_k("LONG_POLL_SECONDS"), 25)
        poll_retry_delay_seconds = _env_float(_k("POLL_RETRY_DELAY_SECONDS"), 1.0)
        stop_grace_seconds = _env_float(_k("STOP_GRACE_SECONDS"), 5.0)

        telegram_bot_token = _first_env(_k("TELEGRAM_BOT_TOKEN"), "TELEGRAM_BOT_TOKEN", default=None)
        telegram_chat_id = _first_env(_k("TELEGRAM_CHAT_ID"), "TELEGRAM_CHAT_ID", default=None)
        telegram_api_base = _env(_k("TELEGRAM_API_BASE"), "https://api.telegram.org")

        extended_commands = _env_bool(_k("EXTENDED_COMMANDS"), False)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            table_path=table_path,
            pid_path=pid_path,
            log_path=log_path,
            offset_path=offset_path,
            task_columns=task_columns,
            executor_command=executor_command,
            executor_timeout_seconds=executor_timeout_seconds,
            timer_interval_seconds=timer_interval_seconds,
            long_poll_seconds=long_poll_seconds,
            poll_retry_delay_seconds=poll_retry_delay_seconds,
            stop_grace_seconds=stop_grace_seconds,
            telegram_bot_token=(telegram_bot_token or "").strip() or None,
            telegram_chat_id=(telegram_chat_id or "").strip() or None,
            telegram_api_base=telegram_api_base.rstrip("/"),
            extended_commands=extended_commands,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
