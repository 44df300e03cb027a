# src/release_grid/cli/control.py

"""
Process control for the background daemon: up / down / status / logs.

Each function prints its own report and returns True on success.
"""

from __future__ import annotations

import contextlib
import os
import signal
import subprocess
import sys
import time
from collections import deque
from pathlib import Path

import click

from ..daemon.lock import is_pid_running, read_pid

START_WAIT_SECONDS = 0.5
STOP_POLL_SECONDS = 0.25


def _remove(path: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        path.unlink()


def daemon_command() -> list[str]:
    return [sys.executable, "-m", "release_grid", "daemon"]


def up(settings) -> bool:
    existing = read_pid(settings.pid_path)
    if existing and is_pid_running(existing):
        click.echo(f"release-grid daemon is already running (pid {existing})")
        return True

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    subprocess.Popen(
        daemon_command(),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
        close_fds=True,
    )

    time.sleep(START_WAIT_SECONDS)
    pid = read_pid(settings.pid_path)
    if pid and is_pid_running(pid):
        click.echo(f"release-grid daemon started (pid {pid})")
        return True

    click.echo(f"release-grid daemon failed to start; check {settings.log_path}")
    return False


def down(settings) -> bool:
    pid = read_pid(settings.pid_path)
    if not pid or not is_pid_running(pid):
        click.echo("release-grid daemon is not running")
        _remove(settings.pid_path)
        return True

    os.kill(pid, signal.SIGTERM)

    polls = max(1, int(settings.stop_grace_seconds / STOP_POLL_SECONDS))
    for _ in range(polls):
        time.sleep(STOP_POLL_SECONDS)
        if not is_pid_running(pid):
            click.echo(f"release-grid daemon stopped (pid {pid})")
            _remove(settings.pid_path)
            return True

    with contextlib.suppress(ProcessLookupError):
        os.kill(pid, signal.SIGKILL)
    click.echo(f"release-grid daemon force-killed (pid {pid})")
    _remove(settings.pid_path)
    return True


def status(settings) -> bool:
    pid = read_pid(settings.pid_path)
    if pid and is_pid_running(pid):
        click.echo(f"release-grid daemon running (pid {pid})")
        return True
    click.echo("release-grid daemon not running")
    return True


def tail_lines(path: Path, limit: int) -> list[str]:
    with open(path, encoding="utf-8", errors="replace") as fh:
        return [line.rstrip("\n") for line in deque(fh, maxlen=max(0, limit))]


def logs(settings, limit: int = 200) -> bool:
    path = Path(settings.log_path)
    if not path.exists():
        click.echo(f"{path} does not exist yet")
        return True
    for line in tail_lines(path, limit):
        click.echo(line)
    return True
