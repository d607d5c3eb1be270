"""
cli.add:
    Add and update components in a project
"""

from pathlib import Path

import click

from kitn.exceptions import KitnError
from kitn.installer import InstallReport
from kitn.layout import console, fail, print_install_summary
from kitn.models import ProjectConfig
from kitn.pipeline import add_components
from kitn.project import require_config
from kitn.registry.resolver import ResolvedComponent

ROUTES_ALIAS = 'routes'


def expand_aliases(names, config: ProjectConfig) -> list[str]:
    """Replace the `routes` shorthand with the project's framework adapter."""
    return [config.framework if name == ROUTES_ALIAS else name for name in names]


def run_install(names: list[str], overwrite: bool, verbose: bool) -> InstallReport:
    """Resolve and install components into the current project, printing progress."""
    project_dir = Path.cwd()

    try:
        config = require_config(project_dir)
        names = expand_aliases(names, config)
        console.print(f"[dim]Resolving {', '.join(names)}...[/dim]")
        resolved, report = add_components(project_dir, config, names, overwrite=overwrite)
    except KitnError as e:
        fail(str(e))

    print_components(resolved)
    print_install_summary(report, verbose=verbose)

    if report.ok:
        console.print(f'[green]Done.[/green] {len(report.components)} component(s) installed')
    else:
        console.print('[yellow]Finished with warnings[/yellow]')
    return report


def print_components(resolved: list[ResolvedComponent]) -> None:
    console.print('[bold]Components:[/bold]')
    for component in resolved:
        version = component.item.version or component.ref.version
        version_text = f' [dim]v{version}[/dim]' if version else ''
        marker = '' if component.requested else ' [dim](dependency)[/dim]'
        console.print(f'  [cyan]{component.key}[/cyan]{version_text}{marker}')


@click.command(name='add')
@click.argument('components', nargs=-1, required=True)
@click.option(
    '-o', '--overwrite',
    is_flag=True,
    help='Replace local changes to installed files'
)
@click.option(
    '-v', '--verbose',
    is_flag=True,
    help='List unchanged and excluded files'
)
def add_command(components: tuple[str, ...], overwrite: bool, verbose: bool):
    """
    Add components to the project.

    COMPONENTS are references of the form [@namespace/]name[@version].
    Registry dependencies are installed first; npm dependencies are installed
    with the package manager whose lockfile is found.

    \b
    Examples:
        kitn add weather-agent
        kitn add core routes
        kitn add @acme/search-tool@2.0.0
    """
    run_install(list(components), overwrite, verbose)


@click.command(name='update')
@click.argument('components', nargs=-1)
@click.option(
    '-v', '--verbose',
    is_flag=True,
    help='List unchanged and excluded files'
)
def update_command(components: tuple[str, ...], verbose: bool):
    """
    Re-install components with the latest registry content.

    With no arguments, every installed component is updated. Local changes
    to tracked files are replaced.

    \b
    Examples:
        kitn update
        kitn update weather-agent
    """
    names = list(components)
    if not names:
        try:
            config = require_config(Path.cwd())
        except KitnError as e:
            fail(str(e))
        names = list(config.installed)
        if not names:
            console.print('[yellow]No components installed[/yellow]')
            return

    run_install(names, overwrite=True, verbose=verbose)
