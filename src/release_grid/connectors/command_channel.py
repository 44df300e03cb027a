# src/release_grid/connectors/command_channel.py

from __future__ import annotations

"""
Inbound command channel.

Long-polls the chat transport, hands each message to the command registry and
sends the reply back to the same chat. The offset is persisted only after the
whole batch was handled, so a crash in between replays the batch on restart
(at-least-once). YES is safe to replay because promotion is idempotent.
"""

import asyncio
import contextlib
import logging
import os
from collections.abc import Callable
from pathlib import Path

from ..cli.commands import CommandRegistry
from ..core.errors import TransportError
from ..core.ports import OutboundMessenger, Update, UpdatesTransport
from ..core.state import AppState

logger = logging.getLogger(__name__)


class OffsetStore:
    """Update-stream cursor in a one-line text file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def read(self) -> int | None:
        try:
            raw = self._path.read_text("utf-8").strip()
        except OSError:
            return None
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring unreadable offset file %s: %r", self._path, raw)
            return None

    def write(self, offset: int) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(str(int(offset)), "utf-8")
        os.replace(tmp, self._path)


def _update_id(update: Update) -> int | None:
    value = update.get("update_id")
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class CommandChannel:
    def __init__(
        self,
        state: AppState,
        transport: UpdatesTransport,
        notifier: OutboundMessenger,
        offsets: OffsetStore,
        registry: CommandRegistry,
        *,
        allowed_chat_id: str | None = None,
        long_poll_seconds: int = 25,
        retry_delay_seconds: float = 1.0,
    ) -> None:
        self._state = state
        self._transport = transport
        self._notifier = notifier
        self._offsets = offsets
        self._registry = registry
        self._allowed_chat_id = str(allowed_chat_id) if allowed_chat_id else None
        self._long_poll = max(0, int(long_poll_seconds))
        self._retry_delay = max(0.0, float(retry_delay_seconds))
        self._offset: int | None = offsets.read()

    @property
    def offset(self) -> int | None:
        return self._offset

    async def handle_update(self, update: Update) -> None:
        message = update.get("message") or {}
        if not isinstance(message, dict):
            return

        text = message.get("text") or ""
        chat = message.get("chat") or {}
        chat_id = chat.get("id") if isinstance(chat, dict) else None
        if chat_id is None:
            return
        chat_id = str(chat_id)

        if self._allowed_chat_id and chat_id != self._allowed_chat_id:
            logger.warning("Ignoring message from unexpected chat_id=%s", chat_id)
            return

        logger.info("telegram message received: %s", text)
        reply = self._registry.handle(self._state, str(text), chat_id=chat_id)
        if reply:
            await self._notifier.send_text(reply, chat_id=chat_id)

    async def poll_once(self) -> int:
        """Fetch and handle one batch; returns the number of updates seen."""
        try:
            updates = await self._transport.get_updates(self._offset, self._long_poll)
        except TransportError as e:
            logger.warning("getUpdates failed: %s", e)
            updates = []

        if not updates:
            await asyncio.sleep(self._retry_delay)
            return 0

        ids = [i for i in (_update_id(u) for u in updates) if i is not None]
        for update in updates:
            await self.handle_update(update)

        if ids:
            self._offset = max(ids) + 1
            self._offsets.write(self._offset)
        return len(updates)

    async def poll_loop(self, should_stop: Callable[[], bool] = lambda: False) -> None:
        shown = self._offset if self._offset is not None else "none"
        logger.info("telegram poll loop started (offset=%s)", shown)
        while not should_stop():
            await self.poll_once()


async def close_transport(transport: object) -> None:
    aclose = getattr(transport, "aclose", None)
    if aclose is None:
        return
    with contextlib.suppress(Exception):
        await aclose()
