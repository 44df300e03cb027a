# src/release_grid/grid/lifecycle.py

"""
Row lifecycle rules.

    BACKLOG -> READY -> RUNNING -> DONE | BLOCKED

DONE is permanent for a row. BLOCKED is cleared only by an operator.
next_row_permission is a second gate on top of the status: only (READY, GO)
is runnable, and promotion keeps at most one row in that state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .models import Permission, ProjectRow, RowStatus, Table, TaskState
from .table_store import TableStore

logger = logging.getLogger(__name__)

_NOT_ELIGIBLE = (RowStatus.DONE, RowStatus.BLOCKED, RowStatus.UNKNOWN)


@dataclass(slots=True, frozen=True)
class PromotionResult:
    project: str
    changed: bool

    @property
    def found(self) -> bool:
        return bool(self.project)


@dataclass(slots=True, frozen=True)
class ForceStartResult:
    ok: bool
    project: str = ""
    reason: str = ""


def find_runnable(table: Table) -> ProjectRow | None:
    for row in table.rows:
        if row.is_runnable:
            return row
    return None


def has_runnable(table: Table) -> bool:
    return find_runnable(table) is not None


def is_row_complete(row: ProjectRow, task_columns: list[str]) -> bool:
    return all(row.task_state(col) == TaskState.DONE for col in task_columns)


def find_next_eligible_index(table: Table) -> int:
    """
    Index of the first row after the last DONE row that is neither DONE,
    BLOCKED nor UNKNOWN; -1 if there is none.
    """
    last_done = -1
    for i, row in enumerate(table.rows):
        if row.status == RowStatus.DONE:
            last_done = i

    for i in range(last_done + 1, len(table.rows)):
        status = table.rows[i].status
        if status in _NOT_ELIGIBLE:
            if status == RowStatus.UNKNOWN:
                logger.warning(
                    "Skipping row %r: unrecognized row_overall_status %r",
                    table.rows[i].project,
                    table.rows[i].get("row_overall_status"),
                )
            continue
        return i
    return -1


def grant_go(table: Table, target: ProjectRow) -> None:
    """PAUSE every row, then put `target` at (READY, GO)."""
    for row in table.rows:
        row.permission = Permission.PAUSE
    target.status = RowStatus.READY
    target.permission = Permission.GO


def promote_next_row(store: TableStore) -> PromotionResult:
    """
    Grant GO to the next eligible row.

    Idempotent: if a (READY, GO) row already exists it is returned as-is and
    nothing is written. A row left RUNNING by a crash counts as eligible and is
    put back to READY, so the next run resumes it (finished tasks are skipped).
    """
    table = store.load()

    existing = find_runnable(table)
    if existing is not None:
        return PromotionResult(project=existing.project, changed=False)

    index = find_next_eligible_index(table)
    if index < 0:
        return PromotionResult(project="", changed=False)

    target = table.rows[index]
    grant_go(table, target)
    store.save(table)
    logger.info("Promoted %s to READY+GO", target.project)
    return PromotionResult(project=target.project, changed=True)


def force_ready_go(store: TableStore, project: str) -> ForceStartResult:
    """Operator override: start a named row regardless of table position."""
    name = (project or "").strip()
    if not name:
        return ForceStartResult(ok=False, reason="Project name is empty.")

    table = store.load()
    target = table.find_ci(name)
    if target is None:
        return ForceStartResult(ok=False, reason=f"Project not found: {name}")

    if target.status == RowStatus.BLOCKED:
        return ForceStartResult(
            ok=False,
            project=target.project,
            reason=f"Project is BLOCKED and cannot be started: {target.project}",
        )

    if target.status == RowStatus.DONE:
        return ForceStartResult(
            ok=False,
            project=target.project,
            reason=f"Project is already DONE: {target.project}",
        )

    grant_go(table, target)
    store.save(table)
    logger.info("Forced %s to READY+GO", target.project)
    return ForceStartResult(ok=True, project=target.project)
