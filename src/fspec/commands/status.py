"""Spec document status and acceptance-criteria checkoff."""

import json
import typer
from pathlib import Path

from ..errors import ExitCode, FspecError, InputNotFound
from ..models import SpecDocument


def _load(doc_path: Path) -> tuple[str, SpecDocument]:
    """Document text and its parsed view, exiting on failure."""
    from ..spec.parser import parse_spec
    from ..storage import read_text

    try:
        text = read_text(doc_path)
        return text, parse_spec(text, str(doc_path))
    except InputNotFound as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(ExitCode.NOT_FOUND)
    except FspecError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(ExitCode.SYSTEM_ERROR)


def status(
    document: Path = typer.Argument(..., help="Spec document"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    plain: bool = typer.Option(False, "--plain", "-p", help="Plain text output"),
) -> None:
    """Show validation results and completion rate of a document.

    Example:
        fspec status specs/add.fspec.md
    """
    from ..spec.parser import get_completion_rate, validate_spec

    _, doc = _load(document)
    report = validate_spec(doc)
    rate = get_completion_rate(doc)

    if json_output:
        typer.echo(json.dumps({
            "path": str(document),
            "title": doc.title,
            "status": doc.status,
            "version": doc.version,
            "quality": doc.quality.value if doc.quality else None,
            "enriched": doc.is_enriched,
            "completion": rate.model_dump(),
            "validation": report.model_dump(),
        }, indent=2))
        return

    from rich.console import Console
    from rich.table import Table
    from rich import box

    console = Console(force_terminal=not plain, no_color=plain)
    table = Table(title=doc.title, box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Status", doc.status or "-")
    table.add_row("Version", doc.version or "-")
    table.add_row("Quality", doc.quality.value if doc.quality else "-")
    table.add_row("Enriched", "yes" if doc.is_enriched else "no")
    table.add_row("Requirements", str(len(doc.requirements)))
    table.add_row("Completion", f"{rate.completed}/{rate.total} ({rate.percentage}%)")
    console.print(table)

    if report.valid:
        console.print("[green]Valid[/green]")
    for issue in report.issues:
        console.print(f"  [red]x[/red] {issue}")
    for warning in report.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")

    if not report.valid:
        raise typer.Exit(ExitCode.PARTIAL)


def check(
    document: Path = typer.Argument(..., help="Spec document"),
    ref: str = typer.Argument(..., help="Criterion id (AC-001) or part of its text"),
    undo: bool = typer.Option(False, "--undo", "-u", help="Mark the criterion incomplete"),
) -> None:
    """Mark an acceptance criterion complete (or incomplete with --undo).

    Only the checkbox character changes; the rest of the document is
    written back byte-for-byte.

    Example:
        fspec check specs/add.fspec.md AC-001
        fspec check specs/add.fspec.md "adds two numbers" --undo
    """
    from ..spec.parser import find_criterion, get_completion_rate, parse_spec, update_ac_status
    from ..storage import write_document

    text, doc = _load(document)
    criterion = find_criterion(doc, ref)
    if criterion is None:
        typer.echo(f"Error: No acceptance criterion matches '{ref}'", err=True)
        raise typer.Exit(ExitCode.NOT_FOUND)

    completed = not undo
    label = criterion.id or criterion.description
    if criterion.completed == completed:
        typer.echo(f"{label} already {'complete' if completed else 'incomplete'}")
        return

    updated = update_ac_status(text, ref, completed)
    try:
        write_document(document, updated)
    except FspecError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(ExitCode.SYSTEM_ERROR)

    rate = get_completion_rate(parse_spec(updated, str(document)))
    state = "complete" if completed else "incomplete"
    typer.echo(f"Marked {label} {state} ({rate.completed}/{rate.total}, {rate.percentage}%)")
