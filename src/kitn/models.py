"""
models:
    Data models for registry components and installed state
"""

from dataclasses import dataclass, field
from typing import Optional

from kitn.config import (
    COMPONENT_TYPES,
    CONFIG_SCHEMA_URL,
    DEFAULT_ALIASES,
    DEFAULT_FRAMEWORK,
    DEFAULT_NAMESPACE,
    DEFAULT_REGISTRY_URL,
    TYPE_DIRS,
)
from kitn.exceptions import InvalidRegistryDataError


def normalize_type(raw: str) -> str:
    """Strip the legacy `kitn:` prefix from a component type."""
    if raw.startswith('kitn:'):
        return raw[len('kitn:'):]
    return raw


def _str_tuple(value) -> tuple[str, ...]:
    return tuple(str(v) for v in (value or []))


@dataclass(frozen=True)
class RegistryFile:
    """A single file shipped by a component."""
    path: str
    content: str


@dataclass(frozen=True)
class EnvVar:
    """An environment variable a component reads at runtime."""
    description: str = ''
    url: Optional[str] = None
    required: bool = True
    secret: bool = True

    @classmethod
    def from_value(cls, value) -> 'EnvVar':
        """Accept either a bare description or a {description, url, required, secret} object."""
        if isinstance(value, dict):
            return cls(
                description=str(value.get('description', '')),
                url=value.get('url'),
                required=value.get('required', True) is not False,
                secret=value.get('secret', True) is not False,
            )
        return cls(description=str(value))


@dataclass(frozen=True)
class RegistryItem:
    """A component descriptor as served by a registry."""
    name: str
    type: str
    description: str = ''
    version: Optional[str] = None
    dependencies: tuple[str, ...] = ()
    dev_dependencies: tuple[str, ...] = ()
    registry_dependencies: tuple[str, ...] = ()
    files: tuple[RegistryFile, ...] = ()
    install_dir: Optional[str] = None
    tsconfig: dict[str, tuple[str, ...]] = field(default_factory=dict)
    exclude: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    env_vars: dict[str, EnvVar] = field(default_factory=dict)
    docs: Optional[str] = None

    @property
    def type_dir(self) -> str:
        return TYPE_DIRS[self.type]

    @property
    def is_package(self) -> bool:
        return self.type == 'package'

    @classmethod
    def from_dict(cls, data: dict, source: str = '<registry>') -> 'RegistryItem':
        """
        Build an item from registry JSON.

        Raises:
            InvalidRegistryDataError: If required fields are missing or invalid.
        """
        errors = validate_item_dict(data)
        if errors:
            raise InvalidRegistryDataError(source, errors)

        return cls(
            name=data['name'],
            type=normalize_type(data['type']),
            description=data.get('description', ''),
            version=data.get('version'),
            dependencies=_str_tuple(data.get('dependencies')),
            dev_dependencies=_str_tuple(data.get('devDependencies')),
            registry_dependencies=_str_tuple(data.get('registryDependencies')),
            files=tuple(
                RegistryFile(path=f['path'], content=f.get('content', ''))
                for f in data.get('files', [])
            ),
            install_dir=data.get('installDir'),
            tsconfig={
                key: _str_tuple(value) for key, value in (data.get('tsconfig') or {}).items()
            },
            exclude=_str_tuple(data.get('exclude')),
            categories=_str_tuple(data.get('categories')),
            env_vars={
                name: EnvVar.from_value(value)
                for name, value in (data.get('envVars') or {}).items()
            },
            docs=data.get('docs'),
        )


def validate_item_dict(data) -> list[str]:
    """
    Validate raw registry item JSON.

    Returns:
        List of error messages (empty if valid)
    """
    if not isinstance(data, dict):
        return ['Expected a JSON object']

    errors = []
    if not data.get('name'):
        errors.append("Missing required field: 'name'")
    raw_type = data.get('type')
    if not raw_type:
        errors.append("Missing required field: 'type'")
    elif normalize_type(str(raw_type)) not in COMPONENT_TYPES:
        errors.append(f"Unknown component type: '{raw_type}'")

    files = data.get('files', [])
    if not isinstance(files, list):
        errors.append("'files' must be a list")
    else:
        for i, f in enumerate(files):
            if not isinstance(f, dict) or not f.get('path'):
                errors.append(f"files[{i}]: missing 'path'")

    for key in ('dependencies', 'devDependencies', 'registryDependencies', 'exclude'):
        if key in data and not isinstance(data[key], list):
            errors.append(f"'{key}' must be a list")

    return errors


@dataclass(frozen=True)
class IndexEntry:
    """A component summary listed in a registry index."""
    name: str
    type: str
    description: str = ''
    version: Optional[str] = None
    versions: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    registry_dependencies: tuple[str, ...] = ()

    @property
    def type_dir(self) -> str:
        return TYPE_DIRS[self.type]


@dataclass(frozen=True)
class RegistryIndex:
    """The registry.json listing of available components."""
    version: str
    items: tuple[IndexEntry, ...] = ()

    @classmethod
    def from_dict(cls, data: dict, source: str = '<registry>') -> 'RegistryIndex':
        if not isinstance(data, dict) or not isinstance(data.get('items', []), list):
            raise InvalidRegistryDataError(source, ["Expected an object with an 'items' list"])

        items = []
        for i, raw in enumerate(data.get('items', [])):
            if not isinstance(raw, dict) or not raw.get('name') or not raw.get('type'):
                raise InvalidRegistryDataError(source, [f"items[{i}]: missing 'name' or 'type'"])
            item_type = normalize_type(raw['type'])
            if item_type not in COMPONENT_TYPES:
                raise InvalidRegistryDataError(source, [f"items[{i}]: unknown type '{raw['type']}'"])
            items.append(IndexEntry(
                name=raw['name'],
                type=item_type,
                description=raw.get('description', ''),
                version=raw.get('version'),
                versions=_str_tuple(raw.get('versions')),
                categories=_str_tuple(raw.get('categories')),
                registry_dependencies=_str_tuple(raw.get('registryDependencies')),
            ))

        return cls(version=str(data.get('version', '1')), items=tuple(items))

    def find(self, name: str) -> Optional[IndexEntry]:
        for item in self.items:
            if item.name == name:
                return item
        return None


@dataclass
class InstalledComponent:
    """Represents an installed component in kitn.json."""
    files: list[str]
    version: str
    content_hash: str
    file_hashes: dict[str, str] = field(default_factory=dict)
    registry: str = DEFAULT_NAMESPACE
    type: Optional[str] = None
    registry_dependencies: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            'files': list(self.files),
            'version': self.version,
            'contentHash': self.content_hash,
        }
        if self.file_hashes:
            result['fileHashes'] = dict(self.file_hashes)
        if self.registry != DEFAULT_NAMESPACE:
            result['registry'] = self.registry
        if self.type:
            result['type'] = self.type
        if self.registry_dependencies:
            result['registryDependencies'] = list(self.registry_dependencies)
        return result

    @classmethod
    def from_dict(cls, data: dict) -> 'InstalledComponent':
        """Create from dictionary."""
        return cls(
            files=list(data.get('files', [])),
            version=data.get('version', ''),
            content_hash=data.get('contentHash', data.get('hash', '')),
            file_hashes=dict(data.get('fileHashes', {})),
            registry=data.get('registry', DEFAULT_NAMESPACE),
            type=data.get('type'),
            registry_dependencies=list(data.get('registryDependencies', [])),
        )


@dataclass
class ProjectConfig:
    """The project's kitn.json."""
    framework: str = DEFAULT_FRAMEWORK
    registries: dict[str, str] = field(
        default_factory=lambda: {DEFAULT_NAMESPACE: DEFAULT_REGISTRY_URL}
    )
    aliases: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))
    installed: dict[str, InstalledComponent] = field(default_factory=dict)

    def to_dict(self) -> dict:
        result = {
            '$schema': CONFIG_SCHEMA_URL,
            'framework': self.framework,
            'aliases': dict(self.aliases),
            'registries': dict(self.registries),
        }
        # An empty mapping is dropped so a stripped config matches a fresh one
        if self.installed:
            result['_installed'] = {
                key: inst.to_dict() for key, inst in self.installed.items()
            }
        return result

    @classmethod
    def from_dict(cls, data: dict) -> 'ProjectConfig':
        aliases = dict(DEFAULT_ALIASES)
        aliases.update(data.get('aliases') or {})
        registries = {}
        for namespace, entry in (data.get('registries') or {}).items():
            # Registries may be a plain template or an object with a url
            registries[namespace] = entry['url'] if isinstance(entry, dict) else entry
        return cls(
            framework=data.get('framework', DEFAULT_FRAMEWORK),
            registries=registries or {DEFAULT_NAMESPACE: DEFAULT_REGISTRY_URL},
            aliases=aliases,
            installed={
                key: InstalledComponent.from_dict(inst)
                for key, inst in (data.get('_installed') or {}).items()
            },
        )

    def record(self, key: str, component: InstalledComponent) -> None:
        """Add or replace an installed component record."""
        self.installed[key] = component

    def forget(self, key: str) -> Optional[InstalledComponent]:
        """Drop an installed component record, returning it if present."""
        return self.installed.pop(key, None)
