# tests/fakes.py

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from release_grid.core.ports import OutboundMessenger, Update
from release_grid.grid.executor import ExecResult
from release_grid.grid.models import ProjectRow, TaskState
from release_grid.grid.table_store import TableStore


@dataclass(slots=True)
class SentMessage:
    text: str
    chat_id: str | None


@dataclass(slots=True)
class FakeMessenger(OutboundMessenger):
    """Captures notifications for assertions."""

    sent: list[SentMessage] = field(default_factory=list)

    async def send_text(self, text: str, *, chat_id: str | None = None) -> None:
        self.sent.append(SentMessage(text=text, chat_id=chat_id))

    def texts(self) -> list[str]:
        return [m.text for m in self.sent]


@dataclass(slots=True)
class FakeScheduler:
    """Records run requests instead of running anything."""

    requests: list[str] = field(default_factory=list)

    def request_run(self, reason: str) -> bool:
        self.requests.append(reason)
        return True


Behavior = Callable[[TableStore, ProjectRow, str], ExecResult]


def writes_status(value: TaskState, exit_ok: bool = True) -> Behavior:
    """Executor behavior: write `value` into the task column, then exit."""

    def _behave(store: TableStore, row: ProjectRow, task: str) -> ExecResult:
        table = store.load()
        target = table.find(row.project)
        assert target is not None
        target.set_task_state(task, value)
        store.save(table)
        if exit_ok:
            return ExecResult(ok=True, exit_code=0)
        return ExecResult(ok=False, exit_code=1, reason="Executor failed with exit code 1.")

    return _behave


def exits_with(code: int) -> Behavior:
    def _behave(store: TableStore, row: ProjectRow, task: str) -> ExecResult:
        return ExecResult(ok=False, exit_code=code, reason=f"Executor failed with exit code {code}.")

    return _behave


class FakeExecutor:
    """
    In-process executor used by runner tests.

    Each task column maps to a behavior; unmapped tasks succeed by writing DONE.
    """

    def __init__(self, store: TableStore, behaviors: dict[str, Behavior] | None = None) -> None:
        self._store = store
        self._behaviors = behaviors or {}
        self.calls: list[tuple[str, str]] = []

    async def run(self, row: ProjectRow, task: str) -> ExecResult:
        self.calls.append((row.project, task))
        behave = self._behaviors.get(task, writes_status(TaskState.DONE))
        return behave(self._store, row, task)


class FakeTransport:
    """
    Scripted UpdatesTransport.

    `batches` are returned one per get_updates call; afterwards it returns [].
    """

    def __init__(self, batches: list[list[Update]] | None = None) -> None:
        self.batches = list(batches or [])
        self.offsets: list[int | None] = []
        self.sent: list[tuple[str, str]] = []
        self.fail_send = False

    async def get_updates(self, offset: int | None, timeout_seconds: int) -> list[Update]:
        self.offsets.append(offset)
        await asyncio.sleep(0)
        if self.batches:
            return self.batches.pop(0)
        return []

    async def send_message(self, chat_id: str, text: str) -> None:
        if self.fail_send:
            raise RuntimeError("network down")
        self.sent.append((chat_id, text))


def message_update(update_id: int, text: str, chat_id: int | str = 42) -> Update:
    return {
        "update_id": update_id,
        "message": {"message_id": update_id, "chat": {"id": chat_id}, "text": text},
    }
