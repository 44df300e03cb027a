# src/release_grid/cli/commands.py

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from ..core.state import AppState
from ..grid.lifecycle import force_ready_go, is_row_complete, promote_next_row
from ..grid.models import (
    PERMISSION_COLUMN,
    PROJECT_COLUMN,
    STATUS_COLUMN,
    Permission,
    RowStatus,
    TaskState,
)

CommandHandler = Callable[[AppState, list[str], str | None], str | None]

logger = logging.getLogger(__name__)

_LEADING_WORD = re.compile(r"^\s*([A-Za-z]+)\b(.*)$", re.DOTALL)

METADATA_FIELDS = [
    "repo_path",
    "ipa_path",
    "aab_path",
    "asc_app_id",
    "asc_build_number",
    "asc_submission_evidence",
    "gplay_package_name",
    "gplay_version_code",
    "gplay_submission_evidence",
    "audit_repo_hygiene_notes",
]


class CommandRegistry:
    """
    Keyword command registry for the chat channel.

    The leading word of a message picks the handler (case-insensitive); the
    remaining words are passed as args. Messages whose leading word is not
    registered return None, meaning "not for us": the channel stays silent.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def handle(self, state: AppState, text: str, chat_id: str | None = None) -> str | None:
        m = _LEADING_WORD.match(text or "")
        if not m:
            return None

        name = m.group(1).lower()
        handler = self._handlers.get(name)
        if handler is None:
            return None

        args = m.group(2).split()
        logger.info("command %s args=%s chat_id=%s", name.upper(), args, chat_id)
        return handler(state, args, chat_id)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  {name.upper()} - {help_text}")
        return "\n".join(lines)


# ---- approval grammar ----


def cmd_yes(state: AppState, args: list[str], chat_id: str | None) -> str:
    promotion = promote_next_row(state.store)
    if not promotion.found:
        logger.info("YES -> no eligible row to promote")
        return "No eligible project found to start."

    if promotion.changed:
        logger.info("YES -> promoted %s to READY+GO", promotion.project)
    else:
        logger.info("YES -> using existing READY+GO row %s", promotion.project)

    state.scheduler.request_run("approval")
    return f"YES received: starting {promotion.project} now."


def cmd_no(state: AppState, args: list[str], chat_id: str | None) -> str:
    logger.info("NO -> paused")
    return "Paused: no new project started."


# ---- operator commands ----


def _format_line(key: str, value: str) -> str:
    return f"- {key}: {value.strip() or '(blank)'}"


def cmd_show(state: AppState, args: list[str], chat_id: str | None) -> str:
    """SHOW <project> -> status fields, completion stamps and known metadata."""
    if not args:
        return "Usage: SHOW <project>"

    name = " ".join(args)
    table = state.store.load()
    row = table.find_ci(name)
    if row is None:
        return f"Project not found: {name}"

    status_fields = [c for c in table.columns if c.endswith("_status") or c in state.task_columns]
    status_fields = [c for c in status_fields if c != STATUS_COLUMN]
    completed = [c for c in table.columns if c.endswith("_completed_at") and row.get(c).strip()]

    lines = [
        row.project,
        f"{STATUS_COLUMN}: {row.get(STATUS_COLUMN).strip() or '(blank)'}",
        f"{PERMISSION_COLUMN}: {row.get(PERMISSION_COLUMN).strip() or '(blank)'}",
        "",
        "Status fields:",
        *[_format_line(c, row.get(c)) for c in status_fields],
    ]

    if completed:
        lines += ["", "Completed timestamps:", *[_format_line(c, row.get(c)) for c in completed]]

    meta = []
    for c in METADATA_FIELDS:
        value = row.get(c).strip()
        if c in table.columns and value:
            meta.append(_format_line(c, value[:240] if c == "audit_repo_hygiene_notes" else value))
    if meta:
        lines += ["", "Metadata:", *meta]

    return "\n".join(lines)


def _unquote(raw: str) -> str:
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
        return raw[1:-1]
    return raw


def cmd_set(state: AppState, args: list[str], chat_id: str | None) -> str:
    """
    SET <project> <field> <value>

    Status-like fields are upper-cased. A task set to BLOCKED blocks and pauses
    the row; READY re-opens a DONE/BLOCKED row; the last task going DONE
    completes the row.
    """
    if len(args) < 3:
        return "Usage: SET <project> <field> <value>"

    project, field_in = args[0], args[1]
    value = _unquote(" ".join(args[2:]))

    table = state.store.load()
    row = table.find_ci(project)
    if row is None:
        return f"Project not found: {project}"

    column = table.resolve_column(field_in)
    if column is None:
        return f"Unknown field: {field_in}"
    if column == PROJECT_COLUMN:
        return "Field 'project' is immutable."

    is_task = column.endswith("_status") or column in state.task_columns
    if column in (STATUS_COLUMN, PERMISSION_COLUMN) or is_task:
        value = value.strip().upper()
    row.values[column] = value

    if is_task and column != STATUS_COLUMN:
        new_state = TaskState.parse(value)
        if new_state == TaskState.BLOCKED:
            row.status = RowStatus.BLOCKED
            row.permission = Permission.PAUSE
        elif new_state == TaskState.READY:
            if row.status in (RowStatus.DONE, RowStatus.BLOCKED):
                row.status = RowStatus.READY
        elif new_state == TaskState.DONE and is_row_complete(row, state.task_columns):
            row.status = RowStatus.DONE
            row.permission = Permission.PAUSE

    state.store.save(table)
    logger.info("SET -> %s %s=%s", row.project, column, row.values[column])
    return f"SET applied: {row.project} {column}={row.values[column]}"


def cmd_run(state: AppState, args: list[str], chat_id: str | None) -> str:
    """RUN <project> -> force the row to READY+GO and request a run."""
    if not args:
        return "Usage: RUN <project>"

    forced = force_ready_go(state.store, " ".join(args))
    if not forced.ok:
        logger.info("RUN -> rejected (%s)", forced.reason)
        return forced.reason

    state.scheduler.request_run(f"run-{forced.project}")
    return f"RUN received: starting {forced.project} now."


def build_registry(*, extended: bool = False) -> CommandRegistry:
    """
    YES/NO is the whole default grammar. SHOW/SET/RUN/HELP are added only
    with extended=True.
    """
    reg = CommandRegistry()
    reg.register("yes", cmd_yes, help_text="Start the next eligible project.")
    reg.register("no", cmd_no, help_text="Acknowledge and stay paused.")

    if extended:
        reg.register("show", cmd_show, help_text="SHOW <project>: row summary.")
        reg.register("set", cmd_set, help_text="SET <project> <field> <value>: edit one field.")
        reg.register("run", cmd_run, help_text="RUN <project>: start a specific project now.")
        reg.register("help", lambda state, args, chat_id: reg.build_help(), help_text="List commands.")

    return reg
