# src/release_grid/daemon/lock.py

from __future__ import annotations

import contextlib
import logging
import os
import time
from pathlib import Path

from ..core.errors import LockError

logger = logging.getLogger(__name__)

# A lock file younger than this with no readable pid is assumed to be mid-write.
FRESH_LOCK_SECONDS = 5.0


def read_pid(path: str | Path) -> int | None:
    try:
        raw = Path(path).read_text("utf-8").strip()
    except OSError:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def is_pid_running(pid: int | None) -> bool:
    """Signal-0 liveness check (POSIX)."""
    if not pid or pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by someone else.
        return True
    except OSError:
        return False
    return True


class PidLock:
    """
    Single-instance guard backed by an exclusively created PID file.

    acquire() returns False (not an error) when another live instance holds the
    lock, or when a concurrent starter wins the race to replace a stale file.
    """

    def __init__(self, path: str | Path, *, pid: int | None = None) -> None:
        self._path = Path(path)
        self._pid = pid if pid is not None else os.getpid()
        self._held = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def held(self) -> bool:
        return self._held

    def _create(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(f"{self._pid}\n")

    def _age_seconds(self) -> float | None:
        try:
            return max(0.0, time.time() - self._path.stat().st_mtime)
        except OSError:
            return None

    def acquire(self) -> bool:
        try:
            self._create()
            self._held = True
            return True
        except FileExistsError:
            pass
        except OSError as e:
            raise LockError(f"Failed to create lock file {self._path}: {e}") from e

        existing = read_pid(self._path)
        if existing and is_pid_running(existing):
            logger.info("daemon already running (pid=%s); exiting cleanly", existing)
            return False

        if existing is None:
            age = self._age_seconds()
            if age is not None and age < FRESH_LOCK_SECONDS:
                logger.info(
                    "lock file exists but owner pid is not readable yet; "
                    "exiting to avoid duplicate pollers"
                )
                return False
            logger.warning("lock file appears stale without owner pid; attempting recovery")
        else:
            logger.warning("lock has stale pid=%s; attempting recovery", existing)

        with contextlib.suppress(FileNotFoundError):
            self._path.unlink()

        try:
            self._create()
        except FileExistsError:
            logger.info("lock lost to another process (pid=%s); exiting", read_pid(self._path))
            return False
        except OSError as e:
            raise LockError(f"Failed to create lock file {self._path}: {e}") from e

        self._held = True
        return True

    def release(self) -> None:
        """Remove the PID file, but only if it still names this process."""
        if read_pid(self._path) == self._pid:
            with contextlib.suppress(FileNotFoundError):
                self._path.unlink()
        self._held = False
