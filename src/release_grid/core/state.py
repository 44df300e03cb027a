# src/release_grid/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..grid.table_store import TableStore
from .ports import OutboundMessenger, RunRequester


@dataclass
class AppState:
    """Everything command handlers need, wired once in bootstrap."""

    # Settings object (real Settings or a SimpleNamespace in tests).
    settings: Any

    store: TableStore
    scheduler: RunRequester
    notifier: OutboundMessenger
    task_columns: list[str] = field(default_factory=list)
