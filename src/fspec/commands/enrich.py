"""Enrich existing spec documents from their code and tests."""

import typer
from pathlib import Path
from typing import Optional

from ..discovery import expand_inputs, find_spec_files
from ..errors import ExitCode
from ..models import EnrichOptions
from .extract import finish_batch, load_config_or_exit


def enrich(
    target: Path = typer.Argument(..., help="Spec document or directory of documents"),
    no_tests: bool = typer.Option(False, "--no-tests", help="Skip test-derived acceptance criteria"),
    no_docs: bool = typer.Option(False, "--no-docs", help="Skip doc comment parameter descriptions"),
    generate: bool = typer.Option(False, "--generate", help="Request generated requirement prose"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report changes without writing"),
    heuristic: bool = typer.Option(False, "--heuristic", help="Skip the precise parser"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    report_file: Optional[Path] = typer.Option(None, "--report", help="Write per-file outcomes as JSONL"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Base path"),
) -> None:
    """Merge test criteria and doc comments into spec documents.

    Enrichment only adds: existing criteria and descriptions are kept and
    a second run with the same inputs changes nothing.

    No requirement generator ships with fspec, so --generate marks each
    document as partial for manual follow-up.

    Example:
        fspec enrich specs/add.fspec.md
        fspec enrich specs/ --dry-run
        fspec enrich specs/ --no-docs
    """
    from ..spec.enrich import enrich_files

    config = load_config_or_exit(base)

    if not target.exists():
        typer.echo(f"Error: {target} not found", err=True)
        raise typer.Exit(ExitCode.NOT_FOUND)

    paths = expand_inputs(target, find_spec_files)
    if not paths:
        typer.echo(f"No spec documents found in {target}")
        raise typer.Exit(ExitCode.NOT_FOUND)

    options = EnrichOptions.from_config(
        config,
        extract_tests=False if no_tests else None,
        extract_doc_comments=False if no_docs else None,
        generate_requirements=True if generate else None,
        prefer_precise=not heuristic,
    )

    report = enrich_files(paths, options=options, dry_run=dry_run, base_path=base)
    title = "Enrichment (dry run)" if dry_run else "Enrichment"
    finish_batch(report, title, json_output, report_file, show_quality=False)
