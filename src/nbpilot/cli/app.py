"""Unified CLI entry point for nbpilot.

Config precedence: settings.default.toml -> settings.local.toml -> env vars (NBPILOT_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

import typer

from nbpilot.cli.playbook_cmd import playbook_app
from nbpilot.cli.run_cmd import listen, run
from nbpilot.cli.settings_cmd import settings_app

try:
    from importlib.metadata import version

    VERSION = version("nbpilot")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "nbpilot — drive NotebookLM to turn a web page into an Audio Overview. "
    "Config precedence: settings.default.toml -> settings.local.toml -> env vars (NBPILOT_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.command("run")(run)
app.command("listen")(listen)
app.add_typer(playbook_app, name="playbook")
app.add_typer(settings_app, name="settings")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context, version: bool = typer.Option(False, "--version", help="Show version and exit.")) -> None:
    """Show help when no subcommand is provided."""
    if version:
        typer.echo(f"nbpilot {VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


if __name__ == "__main__":
    app()
