"""
Rendering functions for ccws output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .services.workspace_service import RepositoryOutcome, WorkspaceResult

console = Console(stderr=True)


def render_discovered_table(
    repos: List[dict],
    title: Optional[str] = "Discovered Repositories",
    target: Optional[Console] = None,
) -> None:
    """
    Render discovered repositories as a numbered table.

    Args:
        repos: Dicts with 'name', 'path' and 'branch'
        title: Optional table title
        target: Console to print on (default: stderr console)
    """
    out = target or console
    if not repos:
        out.print("[yellow]No repositories found.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Repository", style="cyan")
    table.add_column("Branch", style="green")
    table.add_column("Path", style="dim")

    for index, repo in enumerate(repos, 1):
        table.add_row(str(index), repo['name'], repo.get('branch', ''), repo['path'])

    out.print(table)


def _priming_cell(outcome: RepositoryOutcome) -> str:
    priming = outcome.priming
    if priming is None:
        return "-"
    if priming.degraded:
        return "[yellow]skipped (failed)[/yellow]"
    return priming.method.value


def render_workspace_summary(result: WorkspaceResult, target: Optional[Console] = None) -> None:
    """
    Render the per-repository outcome of workspace creation.

    Args:
        result: Result returned by WorkspaceService
        target: Console to print on (default: stderr console)
    """
    out = target or console

    table = Table(
        title=f"Workspace {result.root_path}",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Alias", style="cyan")
    table.add_column("Branch", style="green")
    table.add_column("Status")
    table.add_column("Package Manager", style="magenta")
    table.add_column("Dependencies")
    table.add_column("Env Files", justify="right")

    for outcome in result.outcomes:
        selection = outcome.selection
        if outcome.mounted is not None:
            status = "[green]mounted[/green]"
            pm = outcome.mounted.package_manager.value
        else:
            status = f"[red]failed[/red] [dim]{outcome.error or ''}[/dim]"
            pm = "-"
        env_count = str(len(outcome.env_files.copied)) if outcome.env_files else "-"
        table.add_row(selection.alias, selection.branch, status, pm, _priming_cell(outcome), env_count)

    out.print(table)
    out.print(
        f"[bold]{result.mounted_count}[/bold] mounted, "
        f"[bold]{result.failed_count}[/bold] failed"
    )
