"""
config:
    Constants and user-level settings for kitn
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from kitn.exceptions import ConfigurationError

CONFIG_FILE = "kitn.json"
CONFIG_SCHEMA_URL = "https://kitn.dev/schema/config.json"

DEFAULT_NAMESPACE = "@kitn"
DEFAULT_REGISTRY_URL = "https://kitn-ai.github.io/kitn/r/{type}/{name}.json"
INDEX_SUFFIX = "{type}/{name}.json"
INDEX_FILE = "registry.json"

COMPONENT_TYPES = ("agent", "tool", "skill", "storage", "package")

# Registry URL segment for each component type
TYPE_DIRS = {
    "agent": "agents",
    "tool": "tools",
    "skill": "skills",
    "storage": "storage",
    "package": "package",
}

DEFAULT_ALIASES = {
    "base": "src/ai",
    "agents": "src/ai/agents",
    "tools": "src/ai/tools",
    "skills": "src/ai/skills",
    "storage": "src/ai/storage",
}

FRAMEWORKS = ("hono", "hono-openapi", "elysia")
DEFAULT_FRAMEWORK = "hono"

# Packages that must never be offered for orphan removal
PROTECTED_COMPONENTS = ("core",)

REQUEST_TIMEOUT = 30.0

KITN_HOME = Path(os.environ.get("KITN_HOME", Path.home() / ".kitn"))
SETTINGS_FILE = KITN_HOME / "settings.yml"


@dataclass
class Settings:
    """User-level defaults read from settings.yml."""
    framework: str = DEFAULT_FRAMEWORK
    registries: dict[str, str] = field(default_factory=dict)
    timeout: float = REQUEST_TIMEOUT

    def default_registries(self) -> dict[str, str]:
        """Registries a new project starts with."""
        return {DEFAULT_NAMESPACE: DEFAULT_REGISTRY_URL, **self.registries}


def load_settings(path: Path | None = None) -> Settings:
    """
    Load user settings.

    Args:
        path: Settings file; defaults to KITN_HOME/settings.yml

    Returns:
        Settings, with defaults for anything not present

    Raises:
        ConfigurationError: If the file exists but is not a valid mapping.
    """
    settings_path = path or SETTINGS_FILE
    if not settings_path.exists():
        return Settings()

    try:
        with open(settings_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid settings file {settings_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid settings file {settings_path}: expected a mapping")

    framework = data.get("framework", DEFAULT_FRAMEWORK)
    if framework not in FRAMEWORKS:
        raise ConfigurationError(
            f"Invalid framework in {settings_path}: {framework}. "
            f"Must be one of: {', '.join(FRAMEWORKS)}"
        )

    registries = data.get("registries") or {}
    for namespace, url in registries.items():
        validate_registry(namespace, url)

    return Settings(
        framework=framework,
        registries=dict(registries),
        timeout=float(data.get("timeout", REQUEST_TIMEOUT)),
    )


def validate_registry(namespace: str, url: str) -> None:
    """Check a namespace / URL template pair before it is stored."""
    if not namespace.startswith("@"):
        raise ConfigurationError("Namespace must start with @ (e.g. @myteam)")
    if "{type}" not in url:
        raise ConfigurationError("URL template must include {type} placeholder")
    if "{name}" not in url:
        raise ConfigurationError("URL template must include {name} placeholder")
