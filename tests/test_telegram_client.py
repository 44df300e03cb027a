# tests/test_telegram_client.py

from __future__ import annotations

import json

import httpx
import pytest

from release_grid.connectors.telegram_client import Notifier, TelegramTransport
from release_grid.core.errors import TransportError

from .fakes import FakeTransport


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_updates_posts_offset_and_returns_result() -> None:
    seen: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(
            200, json={"ok": True, "result": [{"update_id": 9, "message": {"text": "YES"}}, "junk"]}
        )

    async with _client(handler) as client:
        transport = TelegramTransport("abc", api_base="https://api.telegram.test/", client=client)
        updates = await transport.get_updates(1234, 25)

    assert updates == [{"update_id": 9, "message": {"text": "YES"}}]
    path, payload = seen[0]
    assert path == "/botabc/getUpdates"
    assert payload == {"timeout": 25, "allowed_updates": ["message"], "offset": 1234}


@pytest.mark.asyncio
async def test_first_poll_omits_offset() -> None:
    payloads: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True, "result": []})

    async with _client(handler) as client:
        await TelegramTransport("abc", client=client).get_updates(None, 0)

    assert "offset" not in payloads[0]


@pytest.mark.asyncio
async def test_send_message_payload() -> None:
    payloads: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/sendMessage")
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

    async with _client(handler) as client:
        await TelegramTransport("abc", client=client).send_message("42", "hi")

    assert payloads == [{"chat_id": "42", "text": "hi"}]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(502, text="bad gateway"),
        httpx.Response(200, text="<html>"),
        httpx.Response(200, json={"ok": False, "description": "Unauthorized"}),
        httpx.Response(200, json={"ok": True, "result": {"not": "a list"}}),
    ],
)
@pytest.mark.asyncio
async def test_get_updates_failures_raise_transport_error(response: httpx.Response) -> None:
    async with _client(lambda request: response) as client:
        with pytest.raises(TransportError):
            await TelegramTransport("abc", client=client).get_updates(None, 0)


@pytest.mark.asyncio
async def test_network_error_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(TransportError):
            await TelegramTransport("abc", client=client).send_message("42", "hi")


def test_token_is_required() -> None:
    with pytest.raises(ValueError):
        TelegramTransport("")


@pytest.mark.asyncio
async def test_notifier_defaults_to_operator_chat() -> None:
    transport = FakeTransport()
    notifier = Notifier(transport, "42")

    await notifier.send_text("row complete")
    await notifier.send_text("reply", chat_id="7")

    assert transport.sent == [("42", "row complete"), ("7", "reply")]


@pytest.mark.asyncio
async def test_notifier_swallows_failures_and_missing_config() -> None:
    transport = FakeTransport()
    transport.fail_send = True

    await Notifier(transport, "42").send_text("lost")
    await Notifier(None, "42").send_text("nowhere")
    await Notifier(FakeTransport(), None).send_text("nobody")
