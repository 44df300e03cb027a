# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets: keep the bot token in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "RELEASE_GRID_APP_NAME": "App display name (default: release-grid).",
    "RELEASE_GRID_LOG_LEVEL": "Console logging level for the foreground daemon (default: INFO).",
    # Paths (gitignored)
    "RELEASE_GRID_DATA_DIR": "Local data directory (default: .local/release-grid).",
    "RELEASE_GRID_TABLE_PATH": "Project table CSV (default: <data_dir>/projects.csv).",
    "RELEASE_GRID_PID_PATH": "Daemon PID lock file (default: <data_dir>/daemon.pid).",
    "RELEASE_GRID_LOG_PATH": "Daemon log file (default: <data_dir>/daemon.log).",
    "RELEASE_GRID_OFFSET_PATH": "Persisted update offset (default: <data_dir>/telegram-offset).",
    # Pipeline
    "RELEASE_GRID_TASK_COLUMNS": (
        "Comma/space separated task status columns, in execution order "
        "(default: build_ios_ipa_status ... release_ready_status)."
    ),
    "RELEASE_GRID_EXECUTOR": (
        "Shell command run once per task. Without it every task is BLOCKED. "
        "Try `python -m release_grid.grid.dry_run_executor`."
    ),
    "RELEASE_GRID_EXECUTOR_TIMEOUT_SECONDS": "Per-task timeout, 0 disables (default: 3600).",
    # Scheduling
    "RELEASE_GRID_TIMER_INTERVAL_SECONDS": "Timer trigger period (default: 30).",
    "RELEASE_GRID_LONG_POLL_SECONDS": "getUpdates long-poll wait (default: 25).",
    "RELEASE_GRID_POLL_RETRY_DELAY_SECONDS": "Delay after an empty or failed poll (default: 1).",
    "RELEASE_GRID_STOP_GRACE_SECONDS": "`down` waits this long before SIGKILL (default: 5).",
    # Telegram
    "RELEASE_GRID_TELEGRAM_BOT_TOKEN": "Bot token (required by the daemon; TELEGRAM_BOT_TOKEN also works).",
    "RELEASE_GRID_TELEGRAM_CHAT_ID": "Operator chat id (required by the daemon; TELEGRAM_CHAT_ID also works).",
    "RELEASE_GRID_TELEGRAM_API_BASE": "Bot API base URL (default: https://api.telegram.org).",
    # Commands
    "RELEASE_GRID_EXTENDED_COMMANDS": "Enable SHOW/SET/RUN/HELP besides YES/NO (true/false).",
}
