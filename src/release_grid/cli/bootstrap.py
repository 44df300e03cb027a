# src/release_grid/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the table store, executor, runner, scheduler, transport and command
  channel into one Runtime.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..config import get_settings
from ..connectors.command_channel import CommandChannel, OffsetStore
from ..connectors.telegram_client import Notifier, TelegramTransport
from ..core.state import AppState
from ..daemon.scheduler import Scheduler
from ..grid.executor import TaskExecutor
from ..grid.runner import PipelineRunner
from ..grid.table_store import TableStore
from .commands import build_registry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Runtime:
    state: AppState
    store: TableStore
    runner: PipelineRunner
    scheduler: Scheduler
    notifier: Notifier
    transport: Any | None
    channel: CommandChannel | None


def ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.table_path.parent.mkdir(parents=True, exist_ok=True)
    settings.pid_path.parent.mkdir(parents=True, exist_ok=True)
    settings.log_path.parent.mkdir(parents=True, exist_ok=True)
    settings.offset_path.parent.mkdir(parents=True, exist_ok=True)


def missing_required_settings(settings) -> list[str]:
    missing = []
    if not getattr(settings, "telegram_bot_token", None):
        missing.append("RELEASE_GRID_TELEGRAM_BOT_TOKEN")
    if not getattr(settings, "telegram_chat_id", None):
        missing.append("RELEASE_GRID_TELEGRAM_CHAT_ID")
    return missing


def build_runtime(*, settings=None, transport: Any | None = None) -> Runtime:
    """
    Wire a Runtime from settings.

    `transport` may be injected (tests); otherwise a TelegramTransport is built
    when a bot token is configured. Without a transport the daemon still runs
    timer-driven passes and notifications become log lines.
    """
    if settings is None:
        settings = get_settings()

    ensure_local_dirs(settings)

    if transport is None and settings.telegram_bot_token:
        transport = TelegramTransport(
            settings.telegram_bot_token,
            api_base=settings.telegram_api_base,
        )

    if not settings.executor_command:
        logger.warning("RELEASE_GRID_EXECUTOR is not set; every task will be BLOCKED")

    store = TableStore(settings.table_path)
    notifier = Notifier(transport, settings.telegram_chat_id)
    executor = TaskExecutor(
        settings.executor_command,
        table_path=settings.table_path,
        timeout_seconds=settings.executor_timeout_seconds,
    )
    runner = PipelineRunner(store, executor, notifier, settings.task_columns)
    scheduler = Scheduler(
        runner,
        store,
        timer_interval_seconds=settings.timer_interval_seconds,
    )

    state = AppState(
        settings=settings,
        store=store,
        scheduler=scheduler,
        notifier=notifier,
        task_columns=list(settings.task_columns),
    )

    channel = None
    if transport is not None:
        channel = CommandChannel(
            state,
            transport,
            notifier,
            OffsetStore(settings.offset_path),
            build_registry(extended=settings.extended_commands),
            allowed_chat_id=settings.telegram_chat_id,
            long_poll_seconds=settings.long_poll_seconds,
            retry_delay_seconds=settings.poll_retry_delay_seconds,
        )

    return Runtime(
        state=state,
        store=store,
        runner=runner,
        scheduler=scheduler,
        notifier=notifier,
        transport=transport,
        channel=channel,
    )
