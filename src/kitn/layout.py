"""
layout:
    Shared console and report rendering for kitn
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from kitn.installer import InstallReport

console = Console()


def plural(count: int, word: str, suffix: str = "s") -> str:
    return f"{count} {word}{suffix if count != 1 else ''}"


def print_install_summary(report: InstallReport, verbose: bool = False) -> None:
    """Print what an install run wrote, skipped and installed."""
    if report.created:
        console.print(f"[green]Created {plural(len(report.created), 'file')}:[/green]")
        for path in report.created:
            console.print(f"  [green]+[/green] {escape(path)}")
    if report.updated:
        console.print(f"[green]Updated {plural(len(report.updated), 'file')}:[/green]")
        for path in report.updated:
            console.print(f"  [yellow]~[/yellow] {escape(path)}")
    if report.unchanged:
        console.print(f"[dim]Unchanged {plural(len(report.unchanged), 'file')}[/dim]")
        if verbose:
            for path in report.unchanged:
                console.print(f"  [dim]-[/dim] {escape(path)}")
    if report.excluded and verbose:
        console.print(f"[dim]Excluded {plural(len(report.excluded), 'file')}[/dim]")

    if report.conflicts:
        console.print(
            f"[yellow]Skipped {plural(len(report.conflicts), 'file')} due to conflict:[/yellow]"
        )
        for conflict in report.conflicts:
            owner = f" [dim](owned by {escape(conflict.owner)})[/dim]" if conflict.owner else ""
            console.print(f"  [yellow]![/yellow] {escape(conflict.path)}{owner}")
        if any(not conflict.owner for conflict in report.conflicts):
            console.print("  Re-run with --overwrite to replace local changes.")
    if report.failed:
        console.print(f"[red]Failed to write {plural(len(report.failed), 'file')}:[/red]")
        for failure in report.failed:
            console.print(f"  [red]x[/red] {escape(failure.path)} [dim]({failure.reason})[/dim]")

    if report.barrel:
        console.print(f"[green]{report.barrel.capitalize()} barrel file[/green]")
    if report.tsconfig_paths:
        console.print(
            f"[green]Patched tsconfig.json paths:[/green] {escape(', '.join(report.tsconfig_paths))}"
        )
    if report.env_example_added:
        console.print(
            f"[green]Added to .env.example:[/green] {', '.join(report.env_example_added)}"
        )
    if report.env_missing:
        console.print("[yellow]Missing environment variables:[/yellow]")
        for name in report.env_missing:
            env_var = report.env_vars.get(name)
            marker = "*" if env_var is None or env_var.required else ""
            description = escape(env_var.description) if env_var else ""
            console.print(f"  {name}{marker} [dim]{description}[/dim]")

    if report.dependencies_installed:
        count = len(report.dependencies_installed)
        noun = "dependency" if count == 1 else "dependencies"
        console.print(
            f"[green]Installed {count} {noun}[/green] "
            f"[dim]({', '.join(report.dependencies_installed)})[/dim]"
        )
    if report.dependencies_pending:
        console.print("[yellow]No package manager lockfile found. Install manually:[/yellow]")
        console.print(f"  {' '.join(report.dependencies_pending)}")


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]{escape(message)}[/red]")
    raise SystemExit(1)
