"""
project:
    Project config I/O (kitn.json) and removal of installed components
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from kitn.config import CONFIG_FILE, PROTECTED_COMPONENTS
from kitn.exceptions import ConfigurationError, NotInitializedError
from kitn.layout import console
from kitn.models import ProjectConfig
from kitn.wiring import BARREL_FILE, update_barrel


def config_path(project_dir: Path) -> Path:
    return Path(project_dir) / CONFIG_FILE


def load_config(project_dir: Path) -> Optional[ProjectConfig]:
    """
    Load kitn.json from the project directory.

    Returns None if the file doesn't exist.

    Raises:
        ConfigurationError: If the file exists but cannot be parsed.
    """
    path = config_path(project_dir)
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid {CONFIG_FILE}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid {CONFIG_FILE}: expected a JSON object")
    return ProjectConfig.from_dict(data)


def require_config(project_dir: Path) -> ProjectConfig:
    """Load kitn.json, raising NotInitializedError if it is absent."""
    config = load_config(project_dir)
    if config is None:
        raise NotInitializedError(project_dir)
    return config


def save_config(project_dir: Path, config: ProjectConfig) -> Path:
    """
    Atomically rewrite kitn.json.

    The content goes to a temporary file in the same directory which then
    replaces the config, so readers never see a half-written file.
    """
    path = config_path(project_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(config.to_dict(), indent=2, ensure_ascii=False) + "\n"

    fd, tmp_name = tempfile.mkstemp(prefix=".kitn-", suffix=".json", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


@dataclass
class RemoveReport:
    """Outcome of removing one installed component."""
    key: str
    deleted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    registry_dependencies: list[str] = field(default_factory=list)


def remove_component(project_dir: Path, config: ProjectConfig, key: str) -> RemoveReport:
    """
    Delete the files tracked for a component and drop its record.

    Only paths listed in the component's record are touched. A file that is
    already gone or cannot be deleted is reported and skipped.

    Raises:
        KeyError: If the component is not installed.
    """
    installed = config.installed.get(key)
    if installed is None:
        raise KeyError(key)

    report = RemoveReport(
        key=key,
        registry_dependencies=list(installed.registry_dependencies),
    )
    root = Path(project_dir)
    for rel_path in installed.files:
        try:
            (root / rel_path).unlink()
            report.deleted.append(rel_path)
        except OSError as e:
            console.print(
                f"[yellow]Could not delete {rel_path} "
                f"(may have been moved or renamed): {e.strerror or e}[/yellow]"
            )
            report.skipped.append(rel_path)

    if report.deleted:
        base = config.aliases["base"]
        try:
            update_barrel(root, base, remove=report.deleted)
        except OSError as e:
            console.print(f"[yellow]Could not update {base}/{BARREL_FILE}: {e.strerror or e}[/yellow]")

    config.forget(key)
    return report


def find_orphans(config: ProjectConfig, removed_dependencies: Iterable[str]) -> list[str]:
    """
    Registry dependencies no remaining component needs.

    Args:
        config: Config after the removals were applied
        removed_dependencies: registryDependencies of the removed components

    Returns:
        Installed keys that are safe to offer for removal, in first-seen order
    """
    needed: set[str] = set()
    for installed in config.installed.values():
        needed.update(installed.registry_dependencies)

    orphans: list[str] = []
    for dep in removed_dependencies:
        if dep in PROTECTED_COMPONENTS or dep in needed or dep in orphans:
            continue
        if dep in config.installed:
            orphans.append(dep)
    return orphans
