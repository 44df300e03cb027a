# src/release_grid/grid/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

PROJECT_COLUMN = "project"
STATUS_COLUMN = "row_overall_status"
PERMISSION_COLUMN = "next_row_permission"
REPO_PATH_COLUMN = "repo_path"


def _norm(raw: str | None) -> str:
    return (raw or "").strip().upper()


class RowStatus(StrEnum):
    """
    row_overall_status lifecycle.

    BACKLOG is stored as an empty cell. UNKNOWN is never written back;
    it only marks a cell whose text is not part of the lifecycle.
    """

    BACKLOG = ""
    READY = "READY"
    RUNNING = "RUNNING"
    BLOCKED = "BLOCKED"
    DONE = "DONE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: str | None) -> RowStatus:
        value = _norm(raw)
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class Permission(StrEnum):
    UNSET = ""
    GO = "GO"
    PAUSE = "PAUSE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: str | None) -> Permission:
        value = _norm(raw)
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class TaskState(StrEnum):
    EMPTY = ""
    READY = "READY"
    RUNNING = "RUNNING"
    DONE = "DONE"
    BLOCKED = "BLOCKED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: str | None) -> TaskState:
        value = _norm(raw)
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


def completed_at_column(task_column: str) -> str:
    """`build_ios_status` -> `build_ios_completed_at`, `build` -> `build_completed_at`."""
    stem = task_column[: -len("_status")] if task_column.endswith("_status") else task_column
    return f"{stem}_completed_at"


@dataclass(slots=True)
class ProjectRow:
    """
    One project's pipeline record.

    `values` keeps every cell as the raw string from the table, in header order,
    so columns the daemon does not understand survive a rewrite untouched.
    """

    values: dict[str, str] = field(default_factory=dict)

    @property
    def project(self) -> str:
        return (self.values.get(PROJECT_COLUMN) or "").strip()

    @property
    def status(self) -> RowStatus:
        return RowStatus.parse(self.values.get(STATUS_COLUMN))

    @status.setter
    def status(self, value: RowStatus) -> None:
        self.values[STATUS_COLUMN] = value.value

    @property
    def permission(self) -> Permission:
        return Permission.parse(self.values.get(PERMISSION_COLUMN))

    @permission.setter
    def permission(self, value: Permission) -> None:
        self.values[PERMISSION_COLUMN] = value.value

    @property
    def is_runnable(self) -> bool:
        return self.status == RowStatus.READY and self.permission == Permission.GO

    def task_state(self, task_column: str) -> TaskState:
        return TaskState.parse(self.values.get(task_column))

    def set_task_state(self, task_column: str, value: TaskState) -> None:
        self.values[task_column] = value.value

    def get(self, column: str, default: str = "") -> str:
        return self.values.get(column, default)


@dataclass(slots=True)
class Table:
    columns: list[str] = field(default_factory=list)
    rows: list[ProjectRow] = field(default_factory=list)

    def find(self, project: str) -> ProjectRow | None:
        key = (project or "").strip()
        for row in self.rows:
            if row.project == key:
                return row
        return None

    def find_ci(self, project: str) -> ProjectRow | None:
        """Case-insensitive lookup, for operator-typed project names."""
        key = (project or "").strip().lower()
        for row in self.rows:
            if row.project.lower() == key:
                return row
        return None

    def resolve_column(self, name: str) -> str | None:
        key = (name or "").strip().lower()
        for column in self.columns:
            if column.lower() == key:
                return column
        return None
