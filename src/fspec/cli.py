"""fspec CLI - Specifications synthesized from JavaScript/TypeScript code."""

import typer

app = typer.Typer(
    name="fspec",
    help="Synthesize and enrich Markdown feature specs from JavaScript/TypeScript code and tests",
    no_args_is_help=True,
)


@app.callback()
def main(ctx: typer.Context) -> None:
    """fspec - Specs from code, kept in step with tests."""
    from .config import load_env
    load_env()

    # Log command invocation for development tracking
    from .logging import log_from_cli
    try:
        log_from_cli()
    except Exception:
        # Don't let logging failures break the CLI
        pass


# Import and register command modules
from .commands import init as init_cmd
from .commands import extract as extract_cmd
from .commands import enrich as enrich_cmd
from .commands import status as status_cmd
from .commands import config_cmd
from .commands import logs as logs_cmd

# Register init as a direct command (not a subcommand)
app.command(name="init")(init_cmd.init)

# Register document commands at top level
app.command(name="extract")(extract_cmd.extract)
app.command(name="enrich")(enrich_cmd.enrich)
app.command(name="status")(status_cmd.status)
app.command(name="check")(status_cmd.check)
app.command(name="logs")(logs_cmd.logs)

# Register config commands as a subcommand group
app.add_typer(config_cmd.app, name="config")


if __name__ == "__main__":
    app()
