# src/release_grid/grid/dry_run_executor.py

"""
Dry-run executor.

Builds nothing: marks the requested status column DONE and exits 0. Point
RELEASE_GRID_EXECUTOR at `python -m release_grid.grid.dry_run_executor` to
exercise the whole orchestration safely.

Exit codes: 2 missing environment, 3 project not in the table.
"""

from __future__ import annotations

import os
import sys

from .executor import ENV_PROJECT, ENV_STATUS_COLUMN, ENV_TABLE_PATH
from .models import TaskState
from .table_store import TableStore


def main() -> int:
    project = os.getenv(ENV_PROJECT, "")
    column = os.getenv(ENV_STATUS_COLUMN, "")
    table_path = os.getenv(ENV_TABLE_PATH, "")

    if not project or not column or not table_path:
        print(
            f"Missing required env vars: {ENV_PROJECT}, {ENV_STATUS_COLUMN}, {ENV_TABLE_PATH}",
            file=sys.stderr,
        )
        return 2

    store = TableStore(table_path)
    table = store.load()
    row = table.find(project)
    if row is None:
        print(f"Project not found in table: {project}", file=sys.stderr)
        return 3

    row.set_task_state(column, TaskState.DONE)
    store.save(table)
    print(f"OK: {project} set {column}=DONE (dry-run executor)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
