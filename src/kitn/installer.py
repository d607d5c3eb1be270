"""
installer:
    Write resolved components into a project and record what was installed
"""

from __future__ import annotations

import fnmatch
import subprocess
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, Optional

from kitn.config import DEFAULT_NAMESPACE
from kitn.detect import PackageManager, detect_package_manager, get_install_command
from kitn.exceptions import ConflictError, ExternalCommandError, FileSystemError, KitnError
from kitn.hashing import aggregate_hash, content_hash
from kitn.layout import console
from kitn.models import EnvVar, InstalledComponent, ProjectConfig, RegistryFile, RegistryItem
from kitn.project import save_config
from kitn.refs import parse_component_ref
from kitn.registry.resolver import ResolvedComponent
from kitn.wiring import (
    BARREL_FILE,
    BARREL_TYPES,
    collect_env_vars,
    missing_env_vars,
    patch_project_tsconfig,
    rewrite_kitn_imports,
    update_barrel,
    write_env_example,
)

DEFAULT_VERSION = "1.0.0"


@dataclass
class InstallReport:
    """What an install run did, for the presentation layer."""
    components: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)
    conflicts: list[ConflictError] = field(default_factory=list)
    failed: list[FileSystemError] = field(default_factory=list)
    dependencies_installed: list[str] = field(default_factory=list)
    dependencies_pending: list[str] = field(default_factory=list)
    package_manager: Optional[PackageManager] = None
    barrel: Optional[str] = None
    tsconfig_paths: list[str] = field(default_factory=list)
    env_vars: dict[str, EnvVar] = field(default_factory=dict)
    env_example_added: list[str] = field(default_factory=list)
    env_missing: list[str] = field(default_factory=list)

    @property
    def written(self) -> list[str]:
        return self.created + self.updated

    @property
    def ok(self) -> bool:
        return not self.conflicts and not self.failed


def matches_exclude(path: str, patterns: Iterable[str]) -> bool:
    """True if a component file path is covered by an exclude entry."""
    for pattern in patterns:
        pattern = pattern.rstrip("/")
        if path == pattern or path.startswith(pattern + "/"):
            return True
        if fnmatch.fnmatchcase(path, pattern):
            return True
    return False


def unique(values: Iterable[str]) -> list[str]:
    """De-duplicate, keeping first occurrences in order."""
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


class Installer:
    """
    Materializes resolved components on disk.

    Components are processed strictly in the order given, file by file. The
    project config is saved after each component so an interrupted run only
    records components that were fully processed.
    """

    def __init__(
        self,
        project_dir: Path,
        config: ProjectConfig,
        run_command: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.project_dir = Path(project_dir)
        self.config = config
        self.run_command = run_command

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def base_dir(self, item: RegistryItem, namespace: str = DEFAULT_NAMESPACE) -> PurePosixPath:
        """Project-relative directory a component's files go into."""
        if item.is_package:
            return PurePosixPath(item.install_dir or self.config.aliases["base"])

        base = PurePosixPath(
            self.config.aliases.get(item.type_dir)
            or PurePosixPath(self.config.aliases["base"]) / item.type_dir
        )
        if namespace != DEFAULT_NAMESPACE:
            base = base / namespace.lstrip("@")
        return base

    def target_path(self, item: RegistryItem, file_path: str, namespace: str) -> str:
        """Project-relative POSIX path for one component file."""
        base = self.base_dir(item, namespace)
        if item.is_package:
            return str(base / file_path)
        return str(base / PurePosixPath(file_path).name)

    def render_content(self, item: RegistryItem, registry_file: RegistryFile, namespace: str) -> str:
        """Content as it is written to disk, with `@kitn/...` imports made relative."""
        if item.is_package:
            return registry_file.content
        source_dir = str(PurePosixPath(self.target_path(item, registry_file.path, namespace)).parent)
        return rewrite_kitn_imports(registry_file.content, source_dir, self.config.aliases)

    def file_owners(self, exclude: str) -> dict[str, str]:
        """Map of tracked file path to the installed key that owns it."""
        owners: dict[str, str] = {}
        for key, installed in self.config.installed.items():
            if key == exclude:
                continue
            for path in installed.files:
                owners.setdefault(path, key)
        return owners

    # -------------------------------------------------------------------------
    # Install
    # -------------------------------------------------------------------------

    def install(
        self,
        components: Iterable[ResolvedComponent],
        overwrite: bool = False,
    ) -> InstallReport:
        """
        Install resolved components, then their external dependencies.

        File errors and conflicts are collected in the report and never stop
        the run.

        Raises:
            ExternalCommandError: If the package manager fails. Files written
                before that point stay on disk.
        """
        report = InstallReport()
        items: list[RegistryItem] = []
        barrel_files: list[str] = []
        dependencies: list[str] = []
        dev_dependencies: list[str] = []

        for component in components:
            installed = self.install_component(component, overwrite, report)
            items.append(component.item)
            if component.item.type in BARREL_TYPES:
                barrel_files.extend(installed.files)
            dependencies.extend(component.item.dependencies)
            dev_dependencies.extend(component.item.dev_dependencies)

        self.wire_project(items, barrel_files, report)

        deps = unique(dependencies)
        dev_deps = [d for d in unique(dev_dependencies) if d not in deps]
        self.install_dependencies(deps, dev_deps, report)
        return report

    def install_component(
        self,
        component: ResolvedComponent,
        overwrite: bool,
        report: InstallReport,
    ) -> InstalledComponent:
        """Write one component's files and save its installed record."""
        item = component.item
        ref = component.ref
        previous = self.config.installed.get(ref.key)
        prior_files = set(previous.files) if previous else set()
        prior_hashes = previous.file_hashes if previous else {}
        fallback_hash = previous.content_hash if previous else ""
        owners = self.file_owners(exclude=ref.key)

        files: list[str] = []
        hashes: dict[str, str] = {}
        contents: list[str] = []
        conflicted = False

        for registry_file in item.files:
            if matches_exclude(registry_file.path, item.exclude):
                report.excluded.append(registry_file.path)
                continue

            rel_path = self.target_path(item, registry_file.path, ref.namespace)
            owner = owners.get(rel_path)
            if owner is not None:
                console.print(f"  [yellow]Conflict:[/yellow] {rel_path} [dim](owned by {owner})[/dim]")
                report.conflicts.append(ConflictError(rel_path, owner=owner))
                conflicted = True
                continue

            content = self.render_content(item, registry_file, ref.namespace)
            tracked = rel_path in prior_files

            try:
                outcome = self._write_file(rel_path, content, tracked and not overwrite)
            except ConflictError as e:
                console.print(f"  [yellow]Conflict:[/yellow] {rel_path} [dim](kept local version)[/dim]")
                report.conflicts.append(e)
                conflicted = True
                files.append(rel_path)
                hashes[rel_path] = prior_hashes.get(rel_path, fallback_hash)
                contents.append(content)
                continue
            except FileSystemError as e:
                console.print(f"  [red]Failed to write {rel_path}: {e.reason}[/red]")
                report.failed.append(e)
                if rel_path in prior_files:
                    files.append(rel_path)
                    hashes[rel_path] = prior_hashes.get(rel_path, fallback_hash)
                continue

            getattr(report, outcome).append(rel_path)
            files.append(rel_path)
            hashes[rel_path] = content_hash(content)
            contents.append(content)

        version = item.version or ref.version or DEFAULT_VERSION
        aggregate = aggregate_hash(contents)
        if conflicted and previous is not None:
            # Local edits were kept, so the component is still at its old version
            version = previous.version
            aggregate = previous.content_hash

        installed = InstalledComponent(
            files=files,
            version=version,
            content_hash=aggregate,
            file_hashes=hashes,
            registry=ref.namespace,
            type=item.type,
            registry_dependencies=[
                parse_component_ref(dep).key for dep in item.registry_dependencies
            ],
        )
        self.config.record(ref.key, installed)
        save_config(self.project_dir, self.config)
        report.components.append(ref.key)
        return installed

    def _write_file(self, rel_path: str, content: str, guarded: bool) -> str:
        """
        Write a file unless that would clobber a differing tracked file.

        Args:
            guarded: Refuse to replace existing content that differs

        Returns:
            Name of the report list the file belongs in
        """
        target = self.project_dir / rel_path
        try:
            if target.is_file():
                existing = target.read_text(encoding="utf-8")
                if existing == content:
                    return "unchanged"
                if guarded:
                    raise ConflictError(rel_path)
                outcome = "updated"
            else:
                outcome = "created"

            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FileSystemError(rel_path, getattr(e, "strerror", None) or str(e)) from e
        return outcome

    # -------------------------------------------------------------------------
    # Project wiring
    # -------------------------------------------------------------------------

    def wire_project(
        self,
        items: list[RegistryItem],
        barrel_files: list[str],
        report: InstallReport,
    ) -> None:
        """Update the barrel, tsconfig.json paths and .env.example for a run."""
        base = self.config.aliases["base"]
        try:
            report.barrel = update_barrel(self.project_dir, base, add=barrel_files)
        except OSError as e:
            report.failed.append(FileSystemError(f"{base}/{BARREL_FILE}", e.strerror or str(e)))

        paths: dict[str, tuple[str, ...]] = {}
        for item in items:
            if item.is_package:
                paths.update(item.tsconfig)
        if paths:
            try:
                patch_project_tsconfig(self.project_dir, paths)
                report.tsconfig_paths = list(paths)
            except OSError as e:
                report.failed.append(FileSystemError("tsconfig.json", e.strerror or str(e)))
            except KitnError as e:
                console.print(f"  [yellow]Skipped tsconfig.json:[/yellow] {e}")

        env_vars = collect_env_vars(items)
        if env_vars:
            report.env_vars = env_vars
            try:
                report.env_example_added = write_env_example(self.project_dir, env_vars)
            except OSError as e:
                report.failed.append(FileSystemError(".env.example", e.strerror or str(e)))
            report.env_missing = missing_env_vars(self.project_dir, env_vars)

    # -------------------------------------------------------------------------
    # External dependencies
    # -------------------------------------------------------------------------

    def install_dependencies(
        self,
        dependencies: list[str],
        dev_dependencies: list[str],
        report: InstallReport,
    ) -> None:
        """Install external packages once for the whole run."""
        if not dependencies and not dev_dependencies:
            return

        manager = detect_package_manager(self.project_dir)
        report.package_manager = manager
        if manager is None:
            report.dependencies_pending.extend(dependencies + dev_dependencies)
            return

        for packages, dev in ((dependencies, False), (dev_dependencies, True)):
            if not packages:
                continue
            command = get_install_command(manager, packages, dev=dev)
            try:
                result = self.run_command(
                    command,
                    cwd=str(self.project_dir),
                    capture_output=True,
                    text=True,
                )
            except OSError as e:
                raise ExternalCommandError(command, -1, str(e)) from e
            if result.returncode != 0:
                raise ExternalCommandError(command, result.returncode, result.stderr or "")
            report.dependencies_installed.extend(packages)
