"""Command logging for fspec invocations."""

import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# Log file location (outside .fspec/ so re-running init keeps it)
FSPEC_LOGS_DIR = ".fspec-logs"
COMMAND_LOG_FILE = "commands.log"
MAX_LOG_SIZE_MB = 10

# Commands made of two words ("config set")
GROUP_COMMANDS = {"config"}


def get_logs_path(base_path: Optional[Path] = None) -> Path:
    """Get the .fspec-logs directory path.

    Args:
        base_path: Base path for logs. Defaults to cwd.

    Returns:
        Path to .fspec-logs directory.
    """
    if base_path is None:
        base_path = Path.cwd()
    return base_path / FSPEC_LOGS_DIR


def is_logging_enabled(base_path: Optional[Path] = None) -> bool:
    """Check if command logging is enabled via config.

    A missing or unreadable config counts as enabled.
    """
    from .config import load_config

    try:
        return load_config(base_path).command_logging
    except (OSError, ValueError):
        return True


def log_command(command: str, args: list[str], base_path: Optional[Path] = None) -> None:
    """Log a command invocation.

    Args:
        command: The command name (e.g., "config set").
        args: Command arguments.
        base_path: Base path. Defaults to cwd.
    """
    if not is_logging_enabled(base_path):
        return

    logs_path = get_logs_path(base_path)
    log_file = logs_path / COMMAND_LOG_FILE

    logs_path.mkdir(parents=True, exist_ok=True)

    # Size-based rotation, one backup
    if log_file.exists():
        size_mb = log_file.stat().st_size / (1024 * 1024)
        if size_mb > MAX_LOG_SIZE_MB:
            backup = logs_path / f"{COMMAND_LOG_FILE}.1"
            if backup.exists():
                backup.unlink()
            log_file.rename(backup)

    timestamp = datetime.now().isoformat()
    args_str = " ".join(f'"{a}"' if " " in a else a for a in args)
    entry = f"{timestamp} | {command} | {args_str}\n"

    with log_file.open("a", encoding="utf-8") as f:
        f.write(entry)


def split_command(argv: list[str]) -> tuple[str, list[str]]:
    """Split CLI arguments into the command name and its arguments."""
    command_parts: list[str] = []
    remaining: list[str] = []

    for i, arg in enumerate(argv):
        if arg.startswith("-") or command_parts and command_parts[0] not in GROUP_COMMANDS:
            remaining = argv[i:]
            break
        command_parts.append(arg)
        if len(command_parts) == 2:
            remaining = argv[i + 1:]
            break

    command = " ".join(command_parts) if command_parts else "unknown"
    return command, remaining


def log_from_cli() -> None:
    """Log the current CLI invocation.

    Called from the CLI callback. Logging problems never fail the command.
    """
    if len(sys.argv) < 2:
        return

    command, args = split_command(sys.argv[1:])
    try:
        log_command(command, args)
    except OSError:
        pass


def parse_log_file(base_path: Optional[Path] = None) -> list[dict]:
    """Parse the command log file into structured entries.

    Args:
        base_path: Base path. Defaults to cwd.

    Returns:
        List of log entries as dicts with keys: timestamp, command, args.
    """
    log_file = get_logs_path(base_path) / COMMAND_LOG_FILE

    if not log_file.exists():
        return []

    entries = []
    with log_file.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\n")
            if not line.strip():
                continue

            parts = line.split(" | ", 2)
            if len(parts) >= 2:
                entries.append({
                    "timestamp": parts[0],
                    "command": parts[1],
                    "args": parts[2] if len(parts) > 2 else "",
                })

    return entries
