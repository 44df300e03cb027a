# src/release_grid/grid/executor.py

"""
External task executor.

The daemon never builds or submits anything itself. For every task it runs one
shell command and waits for it to exit. The command learns what to do from its
environment:

    RELEASE_GRID_PROJECT        project key of the row
    RELEASE_GRID_REPO_PATH      the row's repo_path cell
    RELEASE_GRID_STATUS_COLUMN  task status column it must update
    RELEASE_GRID_TABLE_PATH     path of the project table

Contract: exit 0 after writing DONE (worked) or BLOCKED (handled failure) into
the status column. Anything else is a pipeline failure.

Each command runs in its own session; a timeout kills the whole process group.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass
from pathlib import Path

from .models import REPO_PATH_COLUMN, ProjectRow

logger = logging.getLogger(__name__)

ENV_PROJECT = "RELEASE_GRID_PROJECT"
ENV_REPO_PATH = "RELEASE_GRID_REPO_PATH"
ENV_STATUS_COLUMN = "RELEASE_GRID_STATUS_COLUMN"
ENV_TABLE_PATH = "RELEASE_GRID_TABLE_PATH"

_LINE_LIMIT = 1024 * 1024


@dataclass(slots=True, frozen=True)
class ExecResult:
    ok: bool
    exit_code: int | None = None
    reason: str = ""


class TaskExecutor:
    def __init__(
        self,
        command: str,
        *,
        table_path: str | Path,
        timeout_seconds: float | None = None,
    ) -> None:
        self._command = (command or "").strip()
        self._table_path = Path(table_path)
        # <= 0 disables the timeout.
        self._timeout = timeout_seconds if timeout_seconds and timeout_seconds > 0 else None

    @property
    def configured(self) -> bool:
        return bool(self._command)

    def build_env(self, row: ProjectRow, task_column: str) -> dict[str, str]:
        env = dict(os.environ)
        env[ENV_PROJECT] = row.project
        env[ENV_REPO_PATH] = row.get(REPO_PATH_COLUMN)
        env[ENV_STATUS_COLUMN] = task_column
        env[ENV_TABLE_PATH] = str(self._table_path)
        return env

    async def run(self, row: ProjectRow, task_column: str) -> ExecResult:
        if not self._command:
            return ExecResult(
                ok=False,
                reason=(
                    "RELEASE_GRID_EXECUTOR is not set. "
                    "Provide a command that executes one lifecycle status column."
                ),
            )

        logger.info("executor start project=%s task=%s", row.project, task_column)
        try:
            proc = await asyncio.create_subprocess_shell(
                self._command,
                env=self.build_env(row, task_column),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                start_new_session=True,
                limit=_LINE_LIMIT,
            )
        except OSError as e:
            logger.error("executor spawn failed: %r", e)
            return ExecResult(ok=False, reason=f"Executor could not be started: {e}")

        try:
            code = await asyncio.wait_for(self._stream(proc), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error(
                "executor timed out after %ss project=%s task=%s; killing group pid=%s",
                self._timeout,
                row.project,
                task_column,
                proc.pid,
            )
            kill_process_group(proc.pid)
            await proc.wait()
            return ExecResult(
                ok=False,
                exit_code=proc.returncode,
                reason=f"Executor timed out after {self._timeout:g}s and was killed.",
            )

        logger.info("executor exit code=%s project=%s task=%s", code, row.project, task_column)
        if code != 0:
            return ExecResult(
                ok=False,
                exit_code=code,
                reason=f"Executor failed with exit code {code if code is not None else 'unknown'}.",
            )
        return ExecResult(ok=True, exit_code=0)

    async def _stream(self, proc: asyncio.subprocess.Process) -> int | None:
        """Log output lines as they arrive, then wait for the exit code."""
        assert proc.stdout is not None
        while True:
            try:
                raw = await proc.stdout.readline()
            except ValueError:
                logger.warning("executor: output line over %d bytes dropped", _LINE_LIMIT)
                continue
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").rstrip()
            if line:
                logger.info("executor: %s", line)
        return await proc.wait()


def kill_process_group(pid: int) -> None:
    """SIGKILL the executor's session, so children of the shell die with it."""
    try:
        os.killpg(pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
