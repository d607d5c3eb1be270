"""
cli.init:
    Create kitn.json for a project
"""

from pathlib import Path, PurePosixPath

import click
from rich.markup import escape

from kitn.config import CONFIG_FILE, DEFAULT_ALIASES, FRAMEWORKS, load_settings
from kitn.exceptions import KitnError
from kitn.layout import console, fail
from kitn.models import ProjectConfig
from kitn.project import load_config, save_config
from kitn.wiring import patch_project_tsconfig


def aliases_for_base(base: str) -> dict[str, str]:
    """Install directories rooted at a custom base directory."""
    root = PurePosixPath(base)
    aliases = {'base': str(root)}
    for key in DEFAULT_ALIASES:
        if key != 'base':
            aliases[key] = str(root / key)
    return aliases


@click.command(name='init')
@click.option(
    '-f', '--framework',
    type=click.Choice(FRAMEWORKS),
    default=None,
    help='HTTP framework the project uses'
)
@click.option(
    '-b', '--base',
    default=None,
    help='Base directory for components (default: src/ai)'
)
@click.option(
    '-y', '--yes',
    is_flag=True,
    help='Overwrite an existing kitn.json without asking'
)
def init_command(framework: str | None, base: str | None, yes: bool):
    """
    Initialize kitn in the current project.

    Writes kitn.json with the chosen framework, install directories and the
    default registry. Defaults come from ~/.kitn/settings.yml when present.

    \b
    Examples:
        kitn init
        kitn init -f elysia
        kitn init -b lib/ai --yes
    """
    project_dir = Path.cwd()

    try:
        settings = load_settings()
        existing = load_config(project_dir)
    except KitnError as e:
        fail(str(e))

    if existing is not None:
        if yes:
            console.print(f'[yellow]{CONFIG_FILE} already exists, overwriting[/yellow]')
        elif not click.confirm(f'{CONFIG_FILE} already exists. Overwrite it?'):
            console.print('[yellow]Cancelled[/yellow]')
            return

    config = ProjectConfig(
        framework=framework or settings.framework,
        registries=settings.default_registries(),
        aliases=aliases_for_base(base) if base else dict(DEFAULT_ALIASES),
    )
    if existing is not None:
        # Files written by earlier installs stay tracked
        config.installed = existing.installed

    save_config(project_dir, config)

    try:
        patch_project_tsconfig(
            project_dir,
            {'@kitn/*': [f"./{config.aliases['base']}/*"]},
            remove_prefixes=['@kitn', '@kitnai'],
        )
        console.print('[green]Patched tsconfig.json[/green] [dim](@kitn/* path alias)[/dim]')
    except KitnError as e:
        console.print(f'[yellow]Skipped tsconfig.json: {escape(str(e))}[/yellow]')
    except OSError as e:
        console.print(f'[yellow]Could not update tsconfig.json: {e.strerror or e}[/yellow]')

    console.print(f'[green]Created {CONFIG_FILE}[/green]')
    console.print(f'  Framework: {config.framework}')
    console.print(f"  Components: {config.aliases['base']}")
    console.print()
    console.print('[bold]Next steps:[/bold]')
    console.print('  kitn add core')
    console.print('  kitn add routes')
