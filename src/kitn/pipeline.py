"""
pipeline:
    Reference parsing, resolution and installation wired together
"""

import asyncio
import subprocess
from pathlib import Path
from typing import Callable, Iterable, Optional

from kitn.config import Settings, load_settings
from kitn.installer import Installer, InstallReport
from kitn.models import ProjectConfig
from kitn.refs import parse_component_ref
from kitn.registry.fetcher import RegistryFetcher
from kitn.registry.resolver import ResolvedComponent, resolve_dependencies


def make_fetcher(config: ProjectConfig, settings: Optional[Settings] = None) -> RegistryFetcher:
    """A fresh fetcher (and cache) for one command invocation."""
    settings = settings or load_settings()
    return RegistryFetcher(config.registries, timeout=settings.timeout)


async def resolve_components(
    fetcher: RegistryFetcher, names: Iterable[str]
) -> list[ResolvedComponent]:
    """Parse references and resolve them with their registry dependencies."""
    refs = [parse_component_ref(name) for name in names]
    return await resolve_dependencies(refs, fetcher.fetch_component)


def add_components(
    project_dir: Path,
    config: ProjectConfig,
    names: Iterable[str],
    overwrite: bool = False,
    fetcher: Optional[RegistryFetcher] = None,
    run_command: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> tuple[list[ResolvedComponent], InstallReport]:
    """
    Resolve and install components into a project.

    Resolution finishes before anything is written, so an unresolvable graph
    leaves the project untouched.
    """
    fetcher = fetcher or make_fetcher(config)
    resolved = asyncio.run(resolve_components(fetcher, names))
    report = Installer(project_dir, config, run_command).install(resolved, overwrite=overwrite)
    return resolved, report
