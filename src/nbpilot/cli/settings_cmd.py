"""CLI commands for inspecting and validating nbpilot settings."""

from __future__ import annotations

import json

import typer
from rich.console import Console

settings_app = typer.Typer(help="Inspect and validate nbpilot configuration.")
console = Console()


@settings_app.command("show")
def show_settings() -> None:
    """Display the currently resolved settings."""
    from nbpilot.settings import get_settings

    settings = get_settings()
    console.print_json(json.dumps(settings.model_dump(mode="json"), indent=2, default=str, ensure_ascii=False))


@settings_app.command("validate")
def validate_settings() -> None:
    """Validate settings and report any issues."""
    from nbpilot.settings import get_settings

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]✗[/red] Settings validation failed: {e}")
        raise typer.Exit(code=1) from None
    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Target:      {settings.target.url}")
    console.print(f"  Profile dir: {settings.browser.user_data_dir}")
    console.print(f"  Hotkey:      {settings.trigger.hotkey}")
