"""Synthesize spec documents from JavaScript/TypeScript source."""

import json
import typer
from pathlib import Path
from typing import Optional

from ..config import load_config
from ..discovery import expand_inputs, find_source_files
from ..errors import ExitCode, FspecError, InputNotFound
from ..models import BatchReport, FspecConfig
from ..storage import write_jsonl


def load_config_or_exit(base: Path) -> FspecConfig:
    """Project configuration, or exit 3 when .fspec/config.json is invalid."""
    try:
        return load_config(base)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: Invalid configuration in {base}: {e}", err=True)
        raise typer.Exit(ExitCode.CONFIG_ERROR)


def print_batch_report(report: BatchReport, title: str, show_quality: bool = True) -> None:
    """Per-file table followed by counts and failures."""
    from rich.console import Console
    from rich.table import Table
    from rich import box

    console = Console()
    table = Table(title=title, box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    if show_quality:
        table.add_column("Quality")
    table.add_column("Output", style="dim")

    styles = {"success": "green", "partial": "yellow", "failed": "red"}
    for outcome in report.outcomes:
        status = outcome.status.value
        row = [outcome.path, f"[{styles[status]}]{status}[/{styles[status]}]"]
        if show_quality:
            row.append(outcome.quality.value if outcome.quality else "-")
        row.append(outcome.output_path or outcome.reason or "")
        table.add_row(*row)

    console.print(table)
    console.print(
        f"[bold]{report.total}[/bold] files: "
        f"[green]{report.succeeded} succeeded[/green], "
        f"[yellow]{report.partial} partial[/yellow], "
        f"[red]{report.failed} failed[/red]"
    )
    if show_quality:
        counts = report.quality_counts()
        console.print("Quality: " + ", ".join(f"{k} {v}" for k, v in counts.items()))
    for path, reason in report.failures():
        console.print(f"  [red]x[/red] {path}: {reason}")


def finish_batch(report: BatchReport, title: str, json_output: bool, report_file: Optional[Path], show_quality: bool = True) -> None:
    """Print a batch report, optionally save it, and exit with its code."""
    if report_file is not None:
        write_jsonl(report_file, report.outcomes)

    if json_output:
        data = report.summary()
        data["outcomes"] = [o.model_dump(mode="json") for o in report.outcomes]
        typer.echo(json.dumps(data, indent=2))
    else:
        print_batch_report(report, title, show_quality=show_quality)

    code = report.exit_code()
    if code != ExitCode.SUCCESS:
        raise typer.Exit(code)


def extract(
    target: Path = typer.Argument(..., help="Source file or directory"),
    write: bool = typer.Option(False, "--write", "-w", help="Write documents to the specs directory"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace existing documents"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Specs directory (default from config)"),
    no_tests: bool = typer.Option(False, "--no-tests", help="Ignore paired test files"),
    heuristic: bool = typer.Option(False, "--heuristic", help="Skip the precise parser"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    report_file: Optional[Path] = typer.Option(None, "--report", help="Write per-file outcomes as JSONL"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Synthesize spec documents from source files.

    A single file without --write prints its document. Directories are
    processed as a batch; one file's failure never stops the others.

    Example:
        fspec extract lib/add.js
        fspec extract lib/ --write
        fspec extract lib/ --write --overwrite --heuristic
    """
    from ..spec.synthesis import synthesize_file, synthesize_files

    config = load_config_or_exit(base)

    if not target.exists():
        typer.echo(f"Error: {target} not found", err=True)
        raise typer.Exit(ExitCode.NOT_FOUND)

    options = dict(
        include_tests=config.include_tests and not no_tests,
        prefer_precise=not heuristic,
        doc_window=config.doc_window,
        specs_dir=output if output is not None else base / config.specs_dir,
        base_path=base,
    )

    if target.is_file() and not write and not json_output and report_file is None:
        try:
            result = synthesize_file(target, **options)
        except InputNotFound as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(ExitCode.NOT_FOUND)
        except FspecError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(ExitCode.SYSTEM_ERROR)
        typer.echo(result.content)
        return

    paths = expand_inputs(
        target,
        find_source_files,
        exclude_patterns=config.exclude_patterns,
        extensions=config.source_extensions,
    )
    if not paths:
        typer.echo(f"No source files found in {target}")
        raise typer.Exit(ExitCode.NOT_FOUND)

    report = synthesize_files(paths, write=write, overwrite=overwrite, **options)
    finish_batch(report, "Extraction", json_output, report_file)
