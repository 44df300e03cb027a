# tests/test_executor.py

from __future__ import annotations

import asyncio
import logging
import shlex
import sys
from pathlib import Path

import pytest

from release_grid.grid.executor import (
    ENV_PROJECT,
    ENV_REPO_PATH,
    ENV_STATUS_COLUMN,
    ENV_TABLE_PATH,
    TaskExecutor,
)
from release_grid.grid.models import ProjectRow, TaskState
from release_grid.grid.table_store import TableStore

PY = shlex.quote(sys.executable)
SRC_DIR = Path(__file__).resolve().parents[1] / "src"


def _row() -> ProjectRow:
    return ProjectRow(values={"project": "beta", "repo_path": "/src/beta"})


def test_build_env_exposes_row_context(tmp_path: Path) -> None:
    executor = TaskExecutor("true", table_path=tmp_path / "projects.csv")
    env = executor.build_env(_row(), "build_status")

    assert env[ENV_PROJECT] == "beta"
    assert env[ENV_REPO_PATH] == "/src/beta"
    assert env[ENV_STATUS_COLUMN] == "build_status"
    assert env[ENV_TABLE_PATH] == str(tmp_path / "projects.csv")


@pytest.mark.asyncio
async def test_empty_command_is_a_configuration_failure(tmp_path: Path) -> None:
    executor = TaskExecutor("   ", table_path=tmp_path / "projects.csv")

    assert executor.configured is False
    result = await executor.run(_row(), "build_status")

    assert result.ok is False
    assert result.exit_code is None
    assert "RELEASE_GRID_EXECUTOR is not set" in result.reason


@pytest.mark.asyncio
async def test_zero_exit_is_ok(tmp_path: Path) -> None:
    cmd = f"{PY} -c \"import os; print(os.environ['{ENV_STATUS_COLUMN}'])\""
    result = await TaskExecutor(cmd, table_path=tmp_path / "t.csv").run(_row(), "build_status")

    assert result.ok is True
    assert result.exit_code == 0


@pytest.mark.asyncio
async def test_nonzero_exit_reports_code(tmp_path: Path) -> None:
    cmd = f"{PY} -c \"import sys; sys.exit(4)\""
    result = await TaskExecutor(cmd, table_path=tmp_path / "t.csv").run(_row(), "build_status")

    assert result.ok is False
    assert result.exit_code == 4
    assert result.reason == "Executor failed with exit code 4."


@pytest.mark.asyncio
async def test_timeout_kills_the_process(tmp_path: Path) -> None:
    cmd = f"exec {PY} -c \"import time; time.sleep(30)\""
    executor = TaskExecutor(cmd, table_path=tmp_path / "t.csv", timeout_seconds=0.3)

    result = await executor.run(_row(), "build_status")

    assert result.ok is False
    assert "timed out after 0.3s" in result.reason


@pytest.mark.asyncio
async def test_timeout_kills_children_of_the_shell(tmp_path: Path) -> None:
    marker = tmp_path / "marker"
    cmd = f"(sleep 1; touch {shlex.quote(str(marker))}); echo done"
    executor = TaskExecutor(cmd, table_path=tmp_path / "t.csv", timeout_seconds=0.2)

    result = await executor.run(_row(), "build_status")
    await asyncio.sleep(1.5)

    assert result.ok is False
    assert not marker.exists()


@pytest.mark.asyncio
async def test_output_is_logged_while_the_task_runs(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="release_grid.grid.executor")
    cmd = "echo first; sleep 2; echo second"
    task = asyncio.create_task(
        TaskExecutor(cmd, table_path=tmp_path / "t.csv").run(_row(), "build_status")
    )

    for _ in range(100):
        if "executor: first" in caplog.messages:
            break
        await asyncio.sleep(0.02)

    assert "executor: first" in caplog.messages
    assert not task.done()

    result = await task
    assert result.ok is True
    assert "executor: second" in caplog.messages


@pytest.mark.asyncio
async def test_dry_run_executor_marks_column_done(
    table_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("PYTHONPATH", str(SRC_DIR))
    cmd = f"{PY} -m release_grid.grid.dry_run_executor"
    store = TableStore(table_path)
    row = store.load().find("beta")
    assert row is not None

    result = await TaskExecutor(cmd, table_path=table_path).run(row, "test_status")

    assert result.ok is True
    beta = store.load().find("beta")
    assert beta is not None
    assert beta.task_state("test_status") == TaskState.DONE
    assert beta.task_state("build_status") == TaskState.EMPTY
