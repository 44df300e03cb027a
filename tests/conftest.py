# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from release_grid.core.state import AppState
from release_grid.grid.table_store import TableStore

from .fakes import FakeMessenger, FakeScheduler

TASKS = ["build_status", "test_status", "submit_status"]

HEADER = [
    "project",
    "row_overall_status",
    "next_row_permission",
    "repo_path",
    *TASKS,
    "build_completed_at",
]


def write_csv(path: Path, header: list[str], rows: list[list[str]]) -> None:
    lines = [",".join(header)] + [",".join(r) for r in rows]
    path.write_text("\n".join(lines) + "\n", "utf-8")


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the CLI.

    Built as a SimpleNamespace so tests never read the process environment
    or a local .env file.
    """
    return SimpleNamespace(
        app_name="release-grid-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        table_path=tmp_path / "projects.csv",
        pid_path=tmp_path / "daemon.pid",
        log_path=tmp_path / "daemon.log",
        offset_path=tmp_path / "telegram-offset",
        task_columns=list(TASKS),
        executor_command="",
        executor_timeout_seconds=30.0,
        timer_interval_seconds=0.05,
        long_poll_seconds=0,
        poll_retry_delay_seconds=0.0,
        stop_grace_seconds=0.5,
        telegram_bot_token="test-token",
        telegram_chat_id="42",
        telegram_api_base="https://api.telegram.test",
        extended_commands=False,
    )


@pytest.fixture()
def table_path(settings: SimpleNamespace) -> Path:
    """Three rows: alpha DONE, beta blank, gamma blank."""
    write_csv(
        settings.table_path,
        HEADER,
        [
            ["alpha", "DONE", "PAUSE", "/src/alpha", "DONE", "DONE", "DONE", "2026-01-01T00:00:00Z"],
            ["beta", "", "", "/src/beta", "", "", "", ""],
            ["gamma", "", "", "/src/gamma", "", "", "", ""],
        ],
    )
    return settings.table_path


@pytest.fixture()
def store(table_path: Path) -> TableStore:
    return TableStore(table_path)


@pytest.fixture()
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture()
def state(settings: SimpleNamespace, store: TableStore, messenger: FakeMessenger) -> AppState:
    return AppState(
        settings=settings,
        store=store,
        scheduler=FakeScheduler(),
        notifier=messenger,
        task_columns=list(TASKS),
    )
