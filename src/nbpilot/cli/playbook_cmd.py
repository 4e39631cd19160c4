"""CLI commands for inspecting and validating playbooks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

playbook_app = typer.Typer(help="Inspect and validate playbooks.")
console = Console()


def _configured_matcher(path: Optional[Path]):
    """Registry of the playbooks from *path*, or from the configured location."""
    from nbpilot.playbook.loader import load_configured_playbooks
    from nbpilot.playbook.matcher import PlaybookMatcher
    from nbpilot.settings import get_settings

    source = str(path) if path else get_settings().automation.playbook_path
    return PlaybookMatcher(load_configured_playbooks(source))


# ---------------------------------------------------------------------------
# nbpilot playbook list
# ---------------------------------------------------------------------------


@playbook_app.command("list")
def playbook_list(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Playbook file or directory (default: configured)."),
) -> None:
    """List the playbooks nbpilot would choose from."""
    playbooks = _configured_matcher(path).playbooks
    if not playbooks:
        console.print("No playbooks found.")
        return

    table = Table(title="Playbooks")
    table.add_column("ID", style="cyan")
    table.add_column("Pattern", style="dim", max_width=40)
    table.add_column("Steps", justify="right")
    table.add_column("Enabled", justify="center")
    table.add_column("Description", max_width=40)
    for pb in playbooks:
        table.add_row(
            pb.playbook_id,
            escape(pb.url_pattern),
            str(len(pb.steps)),
            "[green]✓[/green]" if pb.enabled else "[red]✗[/red]",
            escape(pb.description[:40]),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# nbpilot playbook show <id>
# ---------------------------------------------------------------------------


@playbook_app.command("show")
def playbook_show(
    playbook_id: str = typer.Argument("notebooklm_audio_overview", help="Playbook ID to display."),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Playbook file or directory (default: configured)."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Display the steps of a single playbook."""
    matcher = _configured_matcher(path)
    match = matcher.get(playbook_id)

    if not match:
        console.print(f"[red]Playbook not found:[/red] {escape(playbook_id)}")
        available = [pb.playbook_id for pb in matcher.playbooks]
        if available:
            console.print(f"  Available: {', '.join(available)}")
        raise typer.Exit(code=1)

    if json_output:
        console.print_json(match.model_dump_json(indent=2))
        return

    console.print(f"[bold cyan]{match.playbook_id}[/bold cyan]  v{match.version}")
    console.print(f"  Pattern:     {escape(match.url_pattern)}")
    console.print(f"  Description: {escape(match.description or '(none)')}")

    console.print(f"\n[bold]Steps ({len(match.steps)}):[/bold]")
    for i, step in enumerate(match.steps, 1):
        flags = " [dim](optional)[/dim]" if step.optional else ""
        console.print(f"  {i:2d}. [yellow]{step.action.value:7s}[/yellow] {escape(step.label(i - 1))}{flags}")
        for n, locator in enumerate(step.locators):
            prefix = "primary " if n == 0 else "fallback"
            console.print(f"        [dim]{prefix}[/dim] {escape(locator.describe())}")
        if step.skip_if is not None:
            console.print(f"        [dim]skip if[/dim]  {escape(step.skip_if.describe())}")
        if step.value:
            console.print(f"        [dim]value[/dim]    {escape(step.value)}")


# ---------------------------------------------------------------------------
# nbpilot playbook validate
# ---------------------------------------------------------------------------


@playbook_app.command("validate")
def playbook_validate(
    path: Path = typer.Argument(..., help="Path to a playbook JSON file."),
) -> None:
    """Validate a playbook JSON file against the schema."""
    from pydantic import ValidationError

    from nbpilot.playbook.loader import load_playbook_from_file

    if not path.exists():
        console.print(f"[red]File not found:[/red] {escape(str(path))}")
        raise typer.Exit(code=1)

    try:
        pb = load_playbook_from_file(path)
    except json.JSONDecodeError as e:
        console.print(f"[red]✗ Invalid JSON:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from None
    except ValidationError as e:
        console.print("[red]✗ Validation errors:[/red]")
        for err in e.errors():
            loc = " → ".join(str(x) for x in err["loc"])
            console.print(f"  {escape(loc)}: {escape(err['msg'])}")
        raise typer.Exit(code=1) from None
    console.print(f"[green]✓[/green] Valid playbook: {pb.playbook_id} ({len(pb.steps)} steps)")
