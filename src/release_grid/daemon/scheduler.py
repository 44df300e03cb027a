# src/release_grid/daemon/scheduler.py

from __future__ import annotations

"""
Run scheduler.

Triggers (the timer below, approvals from the command channel) only *request*
a pipeline run. The scheduler turns those requests into at most one active
run:

- busy   : a run is in flight
- queued : at least one request arrived while busy

When a run finishes and `queued` is set, exactly one follow-up run starts and
the flag is cleared. Any number of requests during a run collapse into that
single follow-up.

Any exception escaping a run, the timer or a supervised loop is treated as
fatal: it is logged and the scheduler stops, so the process can shut down
instead of continuing in an unknown state.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from ..core.ports import TaskRunner
from ..grid.lifecycle import has_runnable
from ..grid.table_store import TableStore

logger = logging.getLogger(__name__)


class Scheduler:
    def __init__(
        self,
        runner: TaskRunner,
        store: TableStore,
        *,
        timer_interval_seconds: float = 30.0,
    ) -> None:
        self._runner = runner
        self._store = store
        self._interval = max(0.01, float(timer_interval_seconds))

        self.busy = False
        self.queued = False
        self.runs_started = 0
        self.fatal_error: BaseException | None = None

        self._stop = asyncio.Event()
        self._run_tasks: set[asyncio.Task[None]] = set()

    # ---- state ----

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    @property
    def in_flight(self) -> bool:
        return bool(self._run_tasks)

    def stop(self, reason: str = "") -> None:
        if self._stop.is_set():
            return
        logger.info("shutdown requested: %s", reason or "stop")
        self._stop.set()

    def fail(self, exc: BaseException) -> None:
        if self.fatal_error is None:
            self.fatal_error = exc
        self.stop(f"fatal error: {exc!r}")

    # ---- run serialization ----

    def request_run(self, reason: str) -> bool:
        """
        Ask for a pipeline run.

        Returns True if a run was started now, False if the request was folded
        into the queued flag (or ignored because the scheduler is stopping).
        """
        if self.stopping:
            logger.debug("run request ignored during shutdown (%s)", reason)
            return False

        if self.busy:
            if not self.queued:
                logger.info("run requested while busy (%s); queued one follow-up", reason)
            self.queued = True
            return False

        self.busy = True
        task = asyncio.get_running_loop().create_task(self._drain(reason))
        self._run_tasks.add(task)
        task.add_done_callback(self._run_tasks.discard)
        return True

    async def _drain(self, reason: str) -> None:
        try:
            while True:
                self.runs_started += 1
                logger.info("runner start (%s)", reason)
                report = await self._runner.run_once()
                logger.info("runner finished (%s): %s", reason, report)

                if not self.queued or self.stopping:
                    break
                self.queued = False
                reason = "queued"
        except Exception as e:
            logger.exception("runner crashed (%s)", reason)
            self.fail(e)
        finally:
            self.busy = False

    async def wait_idle(self) -> None:
        """Wait until no run task is pending (tests, orderly shutdown)."""
        while self._run_tasks:
            await asyncio.gather(*list(self._run_tasks), return_exceptions=True)

    # ---- loops ----

    async def timer_loop(self) -> None:
        logger.info("timer loop started (%ss)", self._interval)
        while not self.stopping:
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
                break
            except asyncio.TimeoutError:
                pass

            if has_runnable(self._store.load()):
                self.request_run("timer")

    async def serve(self, *loops: Coroutine[Any, Any, None]) -> None:
        """
        Run the timer plus the given loops until stop() or the first failure.

        Loops are cancelled on the way out; in-flight runs are left alone
        (see `in_flight`).
        """
        workers = [asyncio.create_task(self.timer_loop(), name="timer")]
        workers += [asyncio.create_task(loop) for loop in loops]
        stop_waiter = asyncio.create_task(self._stop.wait(), name="stop")

        try:
            done, _ = await asyncio.wait(
                [*workers, stop_waiter],
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in done:
                if task is stop_waiter or task.cancelled():
                    continue
                exc = task.exception()
                if exc is not None:
                    logger.error("%s loop failed", task.get_name(), exc_info=exc)
                    self.fail(exc)
                else:
                    self.stop(f"{task.get_name()} loop exited")
        finally:
            for task in [*workers, stop_waiter]:
                task.cancel()
            await asyncio.gather(*workers, stop_waiter, return_exceptions=True)
            logger.info("timer and poll loops stopped")
