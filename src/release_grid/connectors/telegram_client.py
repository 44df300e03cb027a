# src/release_grid/connectors/telegram_client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import TransportError
from ..core.ports import Update

logger = logging.getLogger(__name__)

# Extra slack on top of the long-poll wait so the server answers before we give up.
_READ_SLACK_SECONDS = 10.0


class TelegramTransport:
    """
    Minimal Bot API client: getUpdates (long poll) and sendMessage.

    Errors surface as TransportError; deciding whether to retry or swallow is
    the caller's job.
    """

    def __init__(
        self,
        token: str,
        *,
        api_base: str = "https://api.telegram.org",
        client: httpx.AsyncClient | None = None,
        connect_timeout: float = 10.0,
    ) -> None:
        if not token:
            raise ValueError("Telegram bot token is required")
        self._base = f"{api_base.rstrip('/')}/bot{token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(connect_timeout, read=_READ_SLACK_SECONDS + 60.0)
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _call(
        self,
        method: str,
        payload: dict[str, Any],
        *,
        read_timeout: float | None = None,
    ) -> Any:
        url = f"{self._base}/{method}"
        kwargs: dict[str, Any] = {}
        if read_timeout is not None:
            kwargs["timeout"] = httpx.Timeout(10.0, read=read_timeout)
        try:
            resp = await self._client.post(url, json=payload, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} request failed: {e!r}") from e

        if resp.status_code != 200:
            raise TransportError(f"{method} returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(f"{method} returned invalid JSON") from e

        if not isinstance(data, dict) or not data.get("ok"):
            desc = data.get("description") if isinstance(data, dict) else None
            raise TransportError(f"{method} not ok: {desc or data!r}")
        return data.get("result")

    async def get_updates(self, offset: int | None, timeout_seconds: int) -> list[Update]:
        payload: dict[str, Any] = {
            "timeout": max(0, int(timeout_seconds)),
            "allowed_updates": ["message"],
        }
        if offset is not None:
            payload["offset"] = int(offset)

        result = await self._call(
            "getUpdates",
            payload,
            read_timeout=max(0, int(timeout_seconds)) + _READ_SLACK_SECONDS,
        )
        if not isinstance(result, list):
            raise TransportError("getUpdates result is not a list")
        return [u for u in result if isinstance(u, dict)]

    async def send_message(self, chat_id: str, text: str) -> None:
        await self._call("sendMessage", {"chat_id": chat_id, "text": text})


class Notifier:
    """
    OutboundMessenger over any UpdatesTransport.

    Best-effort: a missing transport or recipient is a no-op and transport
    failures are logged, never raised, so notifications cannot stall a run.
    """

    def __init__(self, transport: Any | None, default_chat_id: str | None) -> None:
        self._transport = transport
        self._default_chat_id = default_chat_id

    async def send_text(self, text: str, *, chat_id: str | None = None) -> None:
        target = chat_id or self._default_chat_id
        if self._transport is None or not target:
            first_line = text.splitlines()[0] if text else ""
            logger.info("notification not sent (no transport/recipient): %s", first_line)
            return
        try:
            await self._transport.send_message(str(target), text)
        except Exception as e:
            logger.warning("sendMessage failed chat_id=%s: %r", target, e)
