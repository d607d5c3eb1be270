"""
cli.browse:
    Inspect registry components and compare them with installed copies
"""

import asyncio
import difflib
from pathlib import Path

import click
from rich.markup import escape

from kitn.cli.add import expand_aliases
from kitn.config import COMPONENT_TYPES, DEFAULT_NAMESPACE
from kitn.exceptions import KitnError
from kitn.installer import Installer, matches_exclude
from kitn.layout import console, fail
from kitn.models import InstalledComponent, RegistryItem
from kitn.pipeline import make_fetcher
from kitn.project import require_config
from kitn.refs import ComponentRef, parse_component_ref


def update_available(installed: InstalledComponent, latest: str | None) -> bool:
    return bool(latest) and installed.version != latest


@click.command(name='list')
@click.option(
    '-i', '--installed',
    'installed_only',
    is_flag=True,
    help='Only show installed components'
)
@click.option(
    '-t', '--type',
    'component_type',
    type=click.Choice(COMPONENT_TYPES),
    default=None,
    help='Only show components of this type'
)
@click.option(
    '-r', '--registry',
    'namespace',
    default=DEFAULT_NAMESPACE,
    show_default=True,
    help='Registry namespace to list'
)
def list_command(installed_only: bool, component_type: str | None, namespace: str):
    """
    List components available in a registry.

    Installed components are marked with a check and flagged when the
    registry has a newer version.
    """
    try:
        config = require_config(Path.cwd())
        index = asyncio.run(make_fetcher(config).fetch_index(namespace))
    except KitnError as e:
        fail(str(e))

    groups: dict[str, list] = {}
    for entry in index.items:
        if component_type and entry.type != component_type:
            continue
        groups.setdefault(entry.type, []).append(entry)

    installed_count = 0
    update_count = 0
    for group, entries in groups.items():
        console.print(f'\n[bold]{group.capitalize()}s:[/bold]')
        for entry in entries:
            key = ComponentRef(entry.name, namespace).key
            installed = config.installed.get(key)
            if installed_only and installed is None:
                continue

            version = f"[dim]v{entry.version or '1.0.0'}[/dim]"
            description = f'[dim]{entry.description}[/dim]'
            if installed is None:
                console.print(f'  [dim]○[/dim] {entry.name:<20} {version}  {description}')
                continue

            installed_count += 1
            line = f'  [green]✓[/green] {entry.name:<20} {version}  {description}'
            if update_available(installed, entry.version):
                update_count += 1
                line += f' [yellow]v{entry.version} available[/yellow]'
            console.print(line)

    parts = [f'{installed_count} installed', f'{len(index.items) - installed_count} available']
    if update_count:
        parts.append(f"{update_count} update{'s' if update_count != 1 else ''} available")
    console.print()
    console.print(f"[dim]  {', '.join(parts)}[/dim]")


@click.command(name='info')
@click.argument('component')
def info_command(component: str):
    """
    Show details for a registry component.

    \b
    Examples:
        kitn info weather-agent
        kitn info @acme/search-tool@2.0.0
    """
    try:
        config = require_config(Path.cwd())
        ref = parse_component_ref(expand_aliases([component], config)[0])
        item = asyncio.run(make_fetcher(config).fetch_component(ref))
    except KitnError as e:
        fail(str(e))

    installed = config.installed.get(ref.key)

    console.print(f'[bold]{item.name}[/bold] [dim]({item.type})[/dim]')
    console.print(f"  Version: {item.version or '1.0.0'}")
    console.print(f'  Registry: {ref.namespace}')
    if item.description:
        console.print(f'  {item.description}')
    if installed:
        status = f'[green]installed v{installed.version}[/green]'
        if update_available(installed, item.version):
            status += f' [yellow](v{item.version} available)[/yellow]'
        console.print(f'  Status: {status}')
    if item.categories:
        console.print(f"  Categories: {', '.join(item.categories)}")

    for label, values in (
        ('Registry dependencies', item.registry_dependencies),
        ('Dependencies', item.dependencies),
        ('Dev dependencies', item.dev_dependencies),
    ):
        if values:
            console.print(f'\n[bold]{label}:[/bold]')
            for value in values:
                console.print(f'  - {value}')

    if item.env_vars:
        console.print('\n[bold]Environment variables:[/bold]')
        for name, env_var in item.env_vars.items():
            marker = '*' if env_var.required else ''
            console.print(f'  {name}{marker} [dim]{escape(env_var.description)}[/dim]')

    console.print(f'\n[bold]Files ({len(item.files)}):[/bold]')
    installer = Installer(Path.cwd(), config)
    for registry_file in item.files:
        if matches_exclude(registry_file.path, item.exclude):
            continue
        console.print(f'  {installer.target_path(item, registry_file.path, ref.namespace)}')

    if item.docs:
        console.print()
        console.print(item.docs, markup=False)


def diff_files(project_dir: Path, installer: Installer, item: RegistryItem, namespace: str) -> bool:
    """Print unified diffs of local files against registry content. True if any differ."""
    differs = False
    for registry_file in item.files:
        if matches_exclude(registry_file.path, item.exclude):
            continue
        rel_path = installer.target_path(item, registry_file.path, namespace)
        local = project_dir / rel_path
        if not local.is_file():
            console.print(f'[yellow]{rel_path}: file missing locally[/yellow]')
            differs = True
            continue

        local_content = local.read_text(encoding='utf-8')
        registry_content = installer.render_content(item, registry_file, namespace)
        if local_content == registry_content:
            continue
        differs = True
        diff = difflib.unified_diff(
            local_content.splitlines(keepends=True),
            registry_content.splitlines(keepends=True),
            fromfile=f'{rel_path} (local)',
            tofile=f'{rel_path} (registry)',
        )
        console.print(''.join(diff), markup=False, highlight=False, end='')
    return differs


@click.command(name='diff')
@click.argument('component')
def diff_command(component: str):
    """
    Show how installed files differ from the registry version.

    \b
    Examples:
        kitn diff weather-agent
        kitn diff routes
    """
    project_dir = Path.cwd()
    try:
        config = require_config(project_dir)
        ref = parse_component_ref(expand_aliases([component], config)[0])
    except KitnError as e:
        fail(str(e))

    if ref.key not in config.installed:
        fail(f"Component '{ref.key}' is not installed.")

    try:
        item = asyncio.run(make_fetcher(config).fetch_component(ref))
    except KitnError as e:
        fail(str(e))

    if not diff_files(project_dir, Installer(project_dir, config), item, ref.namespace):
        console.print(f'[green]{ref.key} is up to date.[/green]')
