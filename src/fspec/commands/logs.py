"""Command log viewing for fspec."""

import typer
from rich.console import Console
from rich.markup import escape

from ..logging import COMMAND_LOG_FILE, get_logs_path, parse_log_file

console = Console()


def logs(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of recent entries to show"),
    clear: bool = typer.Option(False, "--clear", help="Delete the command log"),
) -> None:
    """Show recent fspec command invocations.

    Example:
        fspec logs
        fspec logs --limit 50
        fspec logs --clear
    """
    if clear:
        log_file = get_logs_path() / COMMAND_LOG_FILE
        if not log_file.exists():
            console.print("[yellow]No log file to clear.[/yellow]")
            return
        log_file.unlink()
        console.print("[green]Log file cleared.[/green]")
        return

    entries = parse_log_file()

    if not entries:
        console.print("[yellow]No log entries found.[/yellow]")
        return

    for entry in entries[-limit:]:
        ts = entry["timestamp"][:19]  # Trim microseconds
        args = entry["args"][:60] + "..." if len(entry["args"]) > 60 else entry["args"]
        console.print(f"[dim]{ts}[/] [green]{escape(entry['command'])}[/] {escape(args)}")
