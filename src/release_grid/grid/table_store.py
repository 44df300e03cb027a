# src/release_grid/grid/table_store.py

from __future__ import annotations

import csv
import io
import logging
import os
from pathlib import Path

from ..core.errors import TableError
from .models import ProjectRow, Table

logger = logging.getLogger(__name__)


class TableStore:
    """
    CSV-backed project table.

    The file is the only source of truth. Every mutation is a full
    read-modify-write: callers load(), change rows in memory, then save().
    There is no locking; the daemon serializes its own writers and anything
    editing the file out-of-band wins or loses by write order.

    Parsing is lenient:
    - blank lines are skipped
    - short rows are padded with "" for the missing columns
    - cells beyond the header are dropped
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Table:
        try:
            with open(self._path, encoding="utf-8", newline="") as fh:
                text = fh.read()
        except FileNotFoundError:
            logger.warning("Project table not found: %s", self._path)
            return Table()
        except OSError as e:
            raise TableError(f"Failed to read {self._path}: {e}") from e

        return parse_table(text)

    def save(self, table: Table) -> None:
        data = render_table(table)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8", newline="") as fh:
                fh.write(data)
            os.replace(tmp, self._path)
        except OSError as e:
            raise TableError(f"Failed to write {self._path}: {e}") from e
        logger.debug("Saved table %s (%d rows)", self._path, len(table.rows))


def parse_table(text: str) -> Table:
    reader = csv.reader(io.StringIO(text, newline=""))
    records = [rec for rec in reader if rec]
    if not records:
        return Table()

    columns = records[0]
    rows: list[ProjectRow] = []
    for rec in records[1:]:
        values = {col: (rec[i] if i < len(rec) else "") for i, col in enumerate(columns)}
        rows.append(ProjectRow(values=values))
    return Table(columns=list(columns), rows=rows)


def render_table(table: Table) -> str:
    buf = io.StringIO(newline="")
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(table.columns)
    for row in table.rows:
        writer.writerow([row.values.get(col, "") for col in table.columns])
    return buf.getvalue()
