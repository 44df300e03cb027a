# src/release_grid/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The pipeline and scheduler depend on Protocols instead of concrete
implementations. This keeps the chat transport and the executor swappable and
makes testing easier.
"""

from typing import Any, Awaitable, Protocol

Update = dict[str, Any]
# Bot API update objects: {"update_id": 1, "message": {"chat": {"id": ...}, "text": "..."}}.


class OutboundMessenger(Protocol):
    """
    Fire-and-forget notifications.

    chat_id=None means "the configured operator chat". Implementations must not
    raise on transport failure.
    """

    def send_text(self, text: str, *, chat_id: str | None = None) -> Awaitable[None]: ...


class UpdatesTransport(Protocol):
    """The two remote operations the command channel needs."""

    def get_updates(self, offset: int | None, timeout_seconds: int) -> Awaitable[list[Update]]: ...

    def send_message(self, chat_id: str, text: str) -> Awaitable[None]: ...


class TaskRunner(Protocol):
    """One full pipeline pass for the eligible row."""

    def run_once(self) -> Awaitable[Any]: ...


class RunRequester(Protocol):
    """What triggers (timer, commands) are allowed to do with the scheduler."""

    def request_run(self, reason: str) -> bool: ...
