"""Initialize fspec in a repository."""

import typer
from pathlib import Path
from ..config import get_fspec_path, CONFIG_FILE
from ..errors import ExitCode
from ..logging import FSPEC_LOGS_DIR
from ..models import FspecConfig
from ..storage import write_json


def _ensure_gitignore(base_path: Path) -> bool:
    """Add .fspec-logs/ to .gitignore if not already present.

    .fspec/config.json is project configuration and stays committed.

    Returns True if the file was modified.
    """
    gitignore = base_path / ".gitignore"
    entry = f"{FSPEC_LOGS_DIR}/"

    existing_lines = []
    if gitignore.exists():
        existing_lines = gitignore.read_text().splitlines()

    if entry in existing_lines:
        return False

    with open(gitignore, "a") as f:
        # Add a newline separator if file doesn't end with one
        if existing_lines and existing_lines[-1].strip():
            f.write("\n")
        if not existing_lines:
            f.write("# fspec command log (local, not committed)\n")
        f.write(f"{entry}\n")

    return True


def init(
    path: Path = typer.Argument(
        Path("."),
        help="Path to initialize fspec in"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration"
    ),
) -> None:
    """Initialize fspec in a project.

    Creates .fspec/config.json with default settings and adds
    .fspec-logs/ to .gitignore.

    Example:
        fspec init              # Initialize in the current directory
        fspec init --force      # Reset configuration to defaults
    """
    if not path.is_dir():
        typer.echo(f"Error: {path} is not a directory", err=True)
        raise typer.Exit(ExitCode.NOT_FOUND)

    fspec_path = get_fspec_path(path)
    config_file = fspec_path / CONFIG_FILE

    if config_file.exists() and not force:
        typer.echo(f"fspec already initialized at {fspec_path}")
        typer.echo("Use --force to reinitialize")
        raise typer.Exit(1)

    config = FspecConfig()
    write_json(config_file, config)

    typer.echo(f"Initialized fspec in {fspec_path}")
    typer.echo(f"  Specs directory: {config.specs_dir}/")

    if _ensure_gitignore(path):
        typer.echo(f"  Added {FSPEC_LOGS_DIR}/ to .gitignore")

    typer.echo("")
    typer.echo("Next steps:")
    typer.echo("  fspec extract lib/ --write    # Synthesize specs from source")
    typer.echo("  fspec enrich specs/           # Merge tests and doc comments into specs")
