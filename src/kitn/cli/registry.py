"""
cli.registry:
    Manage the component registries configured for a project
"""

from pathlib import Path

import click

from kitn.config import DEFAULT_NAMESPACE, validate_registry
from kitn.exceptions import KitnError
from kitn.layout import console, fail
from kitn.project import require_config, save_config


@click.group(name='registry')
def registry():
    """
    Manage component registries.

    Each registry maps a namespace such as @acme to a URL template that
    contains {type} and {name} placeholders.
    """
    pass


@registry.command(name='add')
@click.argument('namespace')
@click.argument('url')
@click.option(
    '-o', '--overwrite',
    is_flag=True,
    help='Replace an existing registry with the same namespace'
)
def add_registry(namespace: str, url: str, overwrite: bool):
    """
    Add a registry for a namespace.

    \b
    Examples:
        kitn registry add @acme https://acme.dev/r/{type}/{name}.json
    """
    project_dir = Path.cwd()
    try:
        config = require_config(project_dir)
        validate_registry(namespace, url)
    except KitnError as e:
        fail(str(e))

    if namespace in config.registries and not overwrite:
        fail(f"Registry '{namespace}' already exists. Use --overwrite to replace it.")

    config.registries[namespace] = url
    save_config(project_dir, config)
    console.print(f'[green]Added registry {namespace}[/green]')
    console.print(f'  [dim]{url}[/dim]')


@registry.command(name='remove')
@click.argument('namespace')
@click.option(
    '-f', '--force',
    is_flag=True,
    help='Allow removing the default @kitn registry'
)
def remove_registry(namespace: str, force: bool):
    """
    Remove the registry for a namespace.

    Components installed from it stay on disk but can no longer be updated.
    """
    project_dir = Path.cwd()
    try:
        config = require_config(project_dir)
    except KitnError as e:
        fail(str(e))

    if namespace not in config.registries:
        fail(f"Registry '{namespace}' is not configured.")
    if namespace == DEFAULT_NAMESPACE and not force:
        fail(f'Cannot remove the default {DEFAULT_NAMESPACE} registry. Use --force to override.')

    affected = [
        key for key, installed in config.installed.items() if installed.registry == namespace
    ]
    del config.registries[namespace]
    save_config(project_dir, config)

    console.print(f'[green]Removed registry {namespace}[/green]')
    if affected:
        console.print(
            f"[yellow]{len(affected)} installed component(s) came from it:[/yellow] "
            f"{', '.join(affected)}"
        )


@registry.command(name='list')
def list_registries():
    """List configured registries."""
    try:
        config = require_config(Path.cwd())
    except KitnError as e:
        fail(str(e))

    if not config.registries:
        console.print('[yellow]No registries configured[/yellow]')
        return

    console.print(f'[bold]Registries ({len(config.registries)}):[/bold]')
    console.print()
    for namespace, url in config.registries.items():
        console.print(f'  [cyan]{namespace}[/cyan]')
        console.print(f'    [dim]{url}[/dim]')
