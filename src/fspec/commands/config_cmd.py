"""Configuration management commands for fspec."""
import typer
from pathlib import Path
from pydantic import ValidationError
from ..config import get_fspec_path, CONFIG_FILE
from ..errors import ExitCode
from ..storage import write_json, read_json
from ..models import FspecConfig

app = typer.Typer(help="Show and change .fspec/config.json settings.")

LIST_KEYS = {"source_extensions", "exclude_patterns"}


def _require_config(base: Path) -> Path:
    config_file = get_fspec_path(base) / CONFIG_FILE
    if not config_file.exists():
        typer.echo("Error: fspec not initialized. Run 'fspec init' first.", err=True)
        raise typer.Exit(ExitCode.CONFIG_ERROR)
    return config_file


@app.command("show")
def config_show(
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
    plain: bool = typer.Option(False, "--plain", "-p", help="Plain text output"),
) -> None:
    """Show current configuration.

    Displays all configuration values and marks which are defaults vs custom.

    Example:
        fspec config show
    """
    from rich.console import Console
    from rich.table import Table
    from rich import box

    config_file = _require_config(base)
    console = Console(force_terminal=not plain, no_color=plain)

    config = read_json(config_file)
    defaults = FspecConfig()

    console.print(f"[dim]Config file: {config_file}[/dim]")
    console.print()

    table = Table(box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_column("Status", justify="center")

    for name, default in defaults.model_dump().items():
        if name in LIST_KEYS:
            continue
        value = config.get(name)
        value_str = str(value) if value is not None else str(default)
        if value == default or value is None:
            status = "[dim]default[/dim]"
        else:
            status = "[green]custom[/green]"
        table.add_row(name, value_str, status)

    console.print(table)

    for name in sorted(LIST_KEYS):
        values = config.get(name, getattr(defaults, name))
        console.print()
        console.print(f"[bold]{name}[/bold] ({len(values)}):")
        for item in values[:8]:
            console.print(f"  [dim]-[/dim] {item}")
        if len(values) > 8:
            console.print(f"  [dim]... and {len(values) - 8} more[/dim]")


@app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key to set"),
    value: str = typer.Argument(..., help="Value to set (comma-separated for lists)"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Set a configuration value.

    Examples:
        fspec config set include_tests false
        fspec config set specs_dir docs/specs
        fspec config set source_extensions .js,.ts
    """
    config_file = _require_config(base)
    config = read_json(config_file)

    # Parse value
    if key in LIST_KEYS:
        parsed_value = [v.strip() for v in value.split(",") if v.strip()]
    elif value.lower() == "true":
        parsed_value = True
    elif value.lower() == "false":
        parsed_value = False
    else:
        parsed_value = value

    if key not in FspecConfig.model_fields:
        typer.echo(f"Warning: '{key}' is not a standard config key.", err=True)

    config[key] = parsed_value
    try:
        FspecConfig.model_validate(config)
    except ValidationError as e:
        typer.echo(f"Error: Invalid value for {key}: {e.errors()[0]['msg']}", err=True)
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    write_json(config_file, config)

    typer.echo(f"Set {key} = {parsed_value}")
