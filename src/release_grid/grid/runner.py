# src/release_grid/grid/runner.py

from __future__ import annotations

"""
Task pipeline.

One invocation advances the single (READY, GO) row through the fixed task list:
- the row goes RUNNING,
- each task column is handed to the external executor in order,
- DONE tasks are skipped, so a restarted pass never redoes finished work,
- the first failure blocks the row and stops the pass (no retries here),
- when every task is DONE the row goes DONE and the grid waits for "YES".

The table is reloaded before and after every task because executors (and
humans) write to the same file.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from ..core.ports import OutboundMessenger
from .executor import ExecResult, TaskExecutor
from .lifecycle import find_runnable, is_row_complete
from .models import Permission, RowStatus, TaskState, completed_at_column
from .table_store import TableStore

logger = logging.getLogger(__name__)


class RunOutcome(str, Enum):
    IDLE = "idle"
    DONE = "done"
    BLOCKED = "blocked"
    VANISHED = "vanished"


@dataclass(slots=True, frozen=True)
class RunReport:
    outcome: RunOutcome
    project: str = ""
    task: str = ""
    reason: str = ""


def utc_now_iso() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def blocked_message(project: str, task: str, reason: str) -> str:
    lines = ["Release grid BLOCKED", f"Project: {project}"]
    if task:
        lines.append(f"Task: {task}")
    lines.append(f"Reason: {reason}")
    return "\n".join(lines)


def complete_message(project: str) -> str:
    return (
        "Release grid row complete\n"
        f"Project: {project}\n"
        "row_overall_status: DONE\n"
        "Reply YES to run next project, NO to pause."
    )


class PipelineRunner:
    def __init__(
        self,
        store: TableStore,
        executor: TaskExecutor,
        messenger: OutboundMessenger,
        task_columns: list[str],
        *,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self._store = store
        self._executor = executor
        self._messenger = messenger
        self._task_columns = list(task_columns)
        self._clock = clock

    @property
    def task_columns(self) -> list[str]:
        return list(self._task_columns)

    async def run_once(self) -> RunReport:
        table = self._store.load()
        row = find_runnable(table)
        if row is None:
            logger.info("No READY+GO rows found. Nothing to run.")
            return RunReport(outcome=RunOutcome.IDLE)

        project = row.project
        row.status = RowStatus.RUNNING
        self._store.save(table)
        logger.info("Pipeline start project=%s tasks=%s", project, self._task_columns)

        for task in self._task_columns:
            table = self._store.load()
            row = table.find(project)
            if row is None:
                logger.warning("Row %s disappeared from the table; stopping", project)
                return RunReport(outcome=RunOutcome.VANISHED, project=project, task=task)

            current = row.task_state(task)
            if current == TaskState.DONE:
                logger.debug("Skip %s/%s (already DONE)", project, task)
                continue
            if current == TaskState.BLOCKED:
                return await self._escalate(project, task, "task is already BLOCKED")
            if current == TaskState.UNKNOWN:
                return await self._escalate(
                    project, task, f"unrecognized task status {row.get(task)!r}"
                )

            row.set_task_state(task, TaskState.RUNNING)
            self._store.save(table)

            result: ExecResult = await self._executor.run(row, task)

            if not result.ok:
                return await self._escalate(project, task, result.reason)

            table = self._store.load()
            refreshed = table.find(project)
            if refreshed is None:
                logger.warning("Row %s disappeared after %s; stopping", project, task)
                return RunReport(outcome=RunOutcome.VANISHED, project=project, task=task)

            after = refreshed.task_state(task)
            if after == TaskState.BLOCKED:
                return await self._escalate(project, task, "task reported BLOCKED")
            if after != TaskState.DONE:
                got = refreshed.get(task).strip().upper() or "EMPTY"
                return await self._escalate(
                    project, task, f"task finished without DONE status (got: {got})"
                )

            stamp_col = completed_at_column(task)
            if stamp_col in table.columns and not refreshed.get(stamp_col).strip():
                refreshed.values[stamp_col] = self._clock()
            self._store.save(table)
            logger.info("Task done project=%s task=%s", project, task)

        table = self._store.load()
        final = table.find(project)
        if final is None:
            return RunReport(outcome=RunOutcome.VANISHED, project=project)

        if is_row_complete(final, self._task_columns):
            final.status = RowStatus.DONE
            final.permission = Permission.PAUSE
            self._store.save(table)
            logger.info("Row complete project=%s", project)
            await self._messenger.send_text(complete_message(project))
            return RunReport(outcome=RunOutcome.DONE, project=project)

        final.status = RowStatus.BLOCKED
        self._store.save(table)
        reason = "lifecycle tasks ended but not all status columns are DONE."
        logger.warning("Row %s blocked: %s", project, reason)
        await self._messenger.send_text(blocked_message(project, "", reason))
        return RunReport(outcome=RunOutcome.BLOCKED, project=project, reason=reason)

    async def _escalate(self, project: str, task: str, reason: str) -> RunReport:
        """Mark task and row BLOCKED, persist, send exactly one notification."""
        table = self._store.load()
        row = table.find(project)
        if row is None:
            logger.warning("Row %s disappeared before it could be blocked", project)
            return RunReport(outcome=RunOutcome.VANISHED, project=project, task=task)

        if row.task_state(task) != TaskState.UNKNOWN:
            row.set_task_state(task, TaskState.BLOCKED)
        row.status = RowStatus.BLOCKED
        self._store.save(table)

        logger.warning("BLOCKED project=%s task=%s reason=%s", project, task, reason)
        await self._messenger.send_text(blocked_message(project, task, reason))
        return RunReport(outcome=RunOutcome.BLOCKED, project=project, task=task, reason=reason)
