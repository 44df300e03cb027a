# src/release_grid/daemon/service.py

"""
Daemon lifecycle.

lock -> settings check -> wire runtime -> timer + poll loops -> shutdown

Shutdown happens on SIGINT/SIGTERM/SIGHUP or on the first uncaught error: the
loops stop, the lock is released, the process exits. A run in flight is not
cancelled: the process leaves it detached (the executor keeps its own session)
and exits without tearing the event loop down under it. The row stays RUNNING
and the next promotion + run resumes it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal

from ..cli.bootstrap import Runtime, build_runtime, missing_required_settings
from ..connectors.command_channel import close_transport
from .lock import PidLock

logger = logging.getLogger(__name__)

_STOP_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP")


def _install_signal_handlers(runtime: Runtime) -> None:
    loop = asyncio.get_running_loop()
    for name in _STOP_SIGNALS:
        sig = getattr(signal, name, None)
        if sig is None:
            continue
        try:
            loop.add_signal_handler(sig, runtime.scheduler.stop, name)
        except (NotImplementedError, RuntimeError):
            # Some platforms (Windows event loops) cannot install these.
            pass


async def serve(runtime: Runtime) -> None:
    _install_signal_handlers(runtime)
    scheduler = runtime.scheduler

    loops = []
    if runtime.channel is not None:
        loops.append(runtime.channel.poll_loop(lambda: scheduler.stopping))

    try:
        await scheduler.serve(*loops)
    finally:
        await close_transport(runtime.transport)


def _detach(lock: PidLock, code: int) -> None:
    """Exit now, leaving the in-flight run to its executor process."""
    logger.warning("run still in flight at shutdown; leaving it detached (row stays RUNNING)")
    with contextlib.suppress(Exception):
        lock.release()
    logger.info("daemon stopped")
    logging.shutdown()
    os._exit(code)


def run_daemon(settings) -> int:
    """
    Foreground daemon entrypoint. Returns the process exit code.

    A held lock is not a failure: the second instance exits 0 without starting
    any loop.
    """
    lock = PidLock(settings.pid_path)
    if not lock.acquire():
        return 0

    logger.info("daemon started pid=%s", os.getpid())
    try:
        missing = missing_required_settings(settings)
        if missing:
            logger.error("missing required settings: %s; exiting", ", ".join(missing))
            return 1

        runtime = build_runtime(settings=settings)
        with asyncio.Runner() as loop_runner:
            loop_runner.run(serve(runtime))
            code = 1 if runtime.scheduler.fatal_error is not None else 0
            if runtime.scheduler.in_flight:
                _detach(lock, code)
        return code
    except Exception:
        logger.exception("daemon fatal error")
        return 1
    finally:
        with contextlib.suppress(Exception):
            lock.release()
        logger.info("daemon stopped")
