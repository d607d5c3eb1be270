"""
cli.remove:
    Remove installed components from a project
"""

from pathlib import Path

import click

from kitn.cli.add import expand_aliases
from kitn.exceptions import KitnError
from kitn.layout import console, fail
from kitn.models import ProjectConfig
from kitn.project import RemoveReport, find_orphans, remove_component, require_config, save_config
from kitn.refs import parse_component_ref


def print_removal(report: RemoveReport) -> None:
    for path in report.deleted:
        console.print(f'  [red]-[/red] {path}')
    console.print(f'[green]Removed {report.key}[/green]')


def remove_keys(project_dir: Path, config: ProjectConfig, keys: list[str]) -> list[str]:
    """Remove components and return the registry dependencies they declared."""
    removed_dependencies: list[str] = []
    for key in keys:
        report = remove_component(project_dir, config, key)
        print_removal(report)
        removed_dependencies.extend(report.registry_dependencies)
    return removed_dependencies


@click.command(name='remove')
@click.argument('components', nargs=-1, required=True)
@click.option(
    '-y', '--yes',
    is_flag=True,
    help='Skip confirmation and also remove orphaned dependencies'
)
def remove_command(components: tuple[str, ...], yes: bool):
    """
    Remove components and delete the files they installed.

    Only files recorded in kitn.json are deleted. Registry dependencies that
    nothing else needs are offered for removal afterwards.

    \b
    Examples:
        kitn remove weather-agent
        kitn remove @acme/search-tool --yes
    """
    project_dir = Path.cwd()

    try:
        config = require_config(project_dir)
        refs = [parse_component_ref(name) for name in expand_aliases(components, config)]
    except KitnError as e:
        fail(str(e))

    keys = []
    for ref in refs:
        if ref.key not in config.installed:
            fail(f"Component '{ref.key}' is not installed.")
        if ref.key not in keys:
            keys.append(ref.key)

    file_count = sum(len(config.installed[key].files) for key in keys)
    if not yes:
        console.print(f"Remove {', '.join(keys)}? This will delete {file_count} file(s).")
        if not click.confirm('Continue?'):
            console.print('[yellow]Cancelled[/yellow]')
            return

    removed_dependencies = remove_keys(project_dir, config, keys)

    orphans = find_orphans(config, removed_dependencies)
    if orphans:
        console.print(
            f"[yellow]No longer needed by other components:[/yellow] {', '.join(orphans)}"
        )
        if yes or click.confirm('Remove them too?'):
            remove_keys(project_dir, config, orphans)

    save_config(project_dir, config)
