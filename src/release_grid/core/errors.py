# src/release_grid/core/errors.py

from __future__ import annotations


class GridError(Exception):
    """Base class for release-grid errors."""


class TableError(GridError):
    """The project table could not be read or written."""


class TransportError(GridError):
    """The command channel transport failed (network, HTTP status, bad envelope)."""


class LockError(GridError):
    """The PID lock file could not be created or inspected."""
