# tests/test_table_store.py

from __future__ import annotations

from pathlib import Path

from release_grid.grid.models import ProjectRow, Table
from release_grid.grid.table_store import TableStore, parse_table, render_table


def test_round_trip_preserves_tricky_cells(tmp_path: Path) -> None:
    columns = ["project", "row_overall_status", "notes"]
    table = Table(
        columns=columns,
        rows=[
            ProjectRow(values={"project": "alpha", "row_overall_status": "DONE", "notes": 'said "hi", twice'}),
            ProjectRow(values={"project": "beta", "row_overall_status": "", "notes": "line one\nline two"}),
            ProjectRow(values={"project": "gamma, inc", "row_overall_status": "READY", "notes": ""}),
        ],
    )
    store = TableStore(tmp_path / "projects.csv")
    store.save(table)

    loaded = store.load()
    assert loaded.columns == columns
    assert [r.values for r in loaded.rows] == [r.values for r in table.rows]

    # save(load(file)) reproduces the file byte for byte.
    before = (tmp_path / "projects.csv").read_bytes()
    store.save(loaded)
    assert (tmp_path / "projects.csv").read_bytes() == before


def test_quoting_rules() -> None:
    table = Table(
        columns=["a", "b", "c"],
        rows=[ProjectRow(values={"a": "x,y", "b": 'q"q', "c": "plain"})],
    )
    text = render_table(table)
    assert text == 'a,b,c\n"x,y","q""q",plain\n'


def test_short_rows_are_padded_and_blank_lines_skipped() -> None:
    table = parse_table("project,row_overall_status,build_status\n\nalpha\nbeta,DONE,DONE,extra\n")
    assert [r.values for r in table.rows] == [
        {"project": "alpha", "row_overall_status": "", "build_status": ""},
        {"project": "beta", "row_overall_status": "DONE", "build_status": "DONE"},
    ]


def test_missing_file_loads_empty_table(tmp_path: Path) -> None:
    table = TableStore(tmp_path / "nope.csv").load()
    assert table.columns == []
    assert table.rows == []


def test_crlf_input_is_accepted(tmp_path: Path) -> None:
    path = tmp_path / "projects.csv"
    path.write_bytes(b"project,build_status\r\nalpha,DONE\r\n")
    table = TableStore(path).load()
    assert table.rows[0].values == {"project": "alpha", "build_status": "DONE"}
