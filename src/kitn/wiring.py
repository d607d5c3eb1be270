"""
wiring:
    Project files kitn keeps in sync around installed components:
    import paths, the barrel file, tsconfig.json paths and .env.example
"""

import json
import os
import posixpath
import re
from pathlib import Path
from typing import Iterable, Mapping, Optional

from kitn.exceptions import ConfigurationError
from kitn.models import EnvVar, RegistryItem

# Component types whose `@kitn/<dir>/...` imports are rewritten
IMPORT_ALIAS_KEYS = ('agents', 'tools', 'skills', 'storage')

_KITN_IMPORT = re.compile(
    r"""((?:import|export)\s+.*?\s+from\s+["'])@kitn/([\w-]+)/([^"']+)(["'])"""
)


def rewrite_kitn_imports(content: str, source_dir: str, aliases: Mapping[str, str]) -> str:
    """
    Rewrite `@kitn/<type>/<path>` imports to paths relative to source_dir.

    Only agent, tool, skill and storage imports are rewritten. Anything else
    under `@kitn/` (e.g. `@kitn/core`) is left alone.

    Args:
        content: File content as served by the registry
        source_dir: Project-relative directory the file is installed into
        aliases: Project aliases mapping type directories to install directories
    """

    def replace(match: re.Match) -> str:
        prefix, type_dir, target, quote = match.groups()
        target_dir = aliases.get(type_dir) if type_dir in IMPORT_ALIAS_KEYS else None
        if not target_dir:
            return match.group(0)
        rel = posixpath.relpath(posixpath.join(target_dir, target), source_dir)
        if not rel.startswith('.'):
            rel = f'./{rel}'
        return f'{prefix}{rel}{quote}'

    return _KITN_IMPORT.sub(replace, content)


# -----------------------------------------------------------------------------
# Barrel file
# -----------------------------------------------------------------------------

BARREL_FILE = 'index.ts'
BARREL_TYPES = ('agent', 'tool', 'skill')
BARREL_HEADER = '// Managed by kitn CLI, components auto-imported below'
BARREL_EXPORT = 'export { registerWithPlugin } from "@kitnai/core";'

_BARREL_IMPORT = re.compile(r"""^import\s+["'](.+)["'];?\s*$""")


def create_barrel() -> str:
    return f'{BARREL_HEADER}\n{BARREL_EXPORT}\n'


def add_barrel_import(content: str, import_path: str) -> str:
    """Insert a side-effect import before the export line. No-op if present."""
    line = f'import "{import_path}";'
    if line in content.splitlines():
        return content

    index = content.find(BARREL_EXPORT)
    if index == -1:
        return f'{content.rstrip()}\n{line}\n{BARREL_EXPORT}\n'
    return f'{content[:index]}{line}\n{content[index:]}'


def remove_barrel_import(content: str, import_path: str) -> str:
    line = f'import "{import_path}";'
    return '\n'.join(l for l in content.split('\n') if l.strip() != line)


def parse_barrel(content: str) -> list[str]:
    """Import paths listed in a barrel file, in order."""
    imports = []
    for line in content.splitlines():
        match = _BARREL_IMPORT.match(line)
        if match:
            imports.append(match.group(1))
    return imports


def barrel_import_path(base_dir: str, rel_path: str) -> str:
    """Import specifier for a project file, relative to the barrel's directory."""
    return './' + posixpath.relpath(rel_path, base_dir)


def update_barrel(
    project_dir: Path,
    base_dir: str,
    add: Iterable[str] = (),
    remove: Iterable[str] = (),
) -> Optional[str]:
    """
    Add and remove barrel imports for project-relative file paths.

    The barrel is only created when there is something to add.

    Returns:
        "created" or "updated" when the barrel was written, else None

    Raises:
        OSError: If the barrel cannot be read or written.
    """
    add = list(add)
    remove = list(remove)
    path = Path(project_dir) / base_dir / BARREL_FILE

    if path.exists():
        original = path.read_text(encoding='utf-8')
        outcome = 'updated'
    elif add:
        original = None
        outcome = 'created'
    else:
        return None

    content = original if original is not None else create_barrel()
    for rel_path in remove:
        content = remove_barrel_import(content, barrel_import_path(base_dir, rel_path))
    for rel_path in add:
        content = add_barrel_import(content, barrel_import_path(base_dir, rel_path))

    if content == original:
        return None
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')
    return outcome


# -----------------------------------------------------------------------------
# tsconfig.json
# -----------------------------------------------------------------------------

TSCONFIG_FILE = 'tsconfig.json'

# Targets too old for the iteration features components rely on
_OLD_TARGETS = (
    'es3', 'es5', 'es6', 'es2015', 'es2016', 'es2017',
    'es2018', 'es2019', 'es2020', 'es2021',
)

_JSONC_NOISE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA = re.compile(r',(\s*[}\]])')


def strip_jsonc(text: str) -> str:
    """Drop comments and trailing commas so tsconfig text parses as JSON."""
    text = _JSONC_NOISE.sub(lambda m: m.group(1) or '', text)
    return _TRAILING_COMMA.sub(r'\1', text)


def patch_tsconfig(
    text: str,
    paths: Mapping[str, Iterable[str]],
    remove_prefixes: Iterable[str] = (),
) -> str:
    """
    Merge path mappings into tsconfig text and return the new JSON.

    Path keys starting with any of remove_prefixes are dropped first. Missing
    compiler options kitn components need (ES2022 target, bundler module
    resolution, ESNext modules, skipLibCheck) are filled in.

    Raises:
        ConfigurationError: If the existing text is not valid JSON(C).
    """
    try:
        config = json.loads(strip_jsonc(text).strip() or '{}')
    except json.JSONDecodeError as e:
        raise ConfigurationError(f'Invalid {TSCONFIG_FILE}: {e}')
    if not isinstance(config, dict):
        raise ConfigurationError(f'Invalid {TSCONFIG_FILE}: expected a JSON object')

    options = config.setdefault('compilerOptions', {})
    current_paths = options.setdefault('paths', {})

    prefixes = tuple(remove_prefixes)
    if prefixes:
        for key in [k for k in current_paths if k.startswith(prefixes)]:
            del current_paths[key]
    for key, value in paths.items():
        current_paths[key] = list(value)

    if str(options.get('target', '')).lower() in ('',) + _OLD_TARGETS:
        options['target'] = 'ES2022'
    options.setdefault('moduleResolution', 'bundler')
    options.setdefault('module', 'ESNext')
    options.setdefault('skipLibCheck', True)

    return json.dumps(config, indent=2) + '\n'


def patch_project_tsconfig(
    project_dir: Path,
    paths: Mapping[str, Iterable[str]],
    remove_prefixes: Iterable[str] = (),
) -> Path:
    """Patch (or create) the project's tsconfig.json."""
    path = Path(project_dir) / TSCONFIG_FILE
    text = path.read_text(encoding='utf-8') if path.exists() else '{}'
    path.write_text(patch_tsconfig(text, paths, remove_prefixes), encoding='utf-8')
    return path


# -----------------------------------------------------------------------------
# Environment variables
# -----------------------------------------------------------------------------

ENV_FILE = '.env'
ENV_EXAMPLE_FILE = '.env.example'


def parse_env_keys(content: str) -> set[str]:
    keys = set()
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        name, sep, _ = line.partition('=')
        if sep and name.strip():
            keys.add(name.strip())
    return keys


def collect_env_vars(items: Iterable[RegistryItem]) -> dict[str, EnvVar]:
    """Env vars across items; a later item wins for a repeated name."""
    merged: dict[str, EnvVar] = {}
    for item in items:
        merged.update(item.env_vars)
    return merged


def _read(path: Path) -> str:
    return path.read_text(encoding='utf-8') if path.exists() else ''


def _append_lines(path: Path, existing: str, lines: list[str]) -> None:
    if existing and not existing.endswith('\n'):
        lines = [''] + lines
    path.write_text(existing + '\n'.join(lines) + '\n', encoding='utf-8')


def write_env_example(project_dir: Path, env_vars: Mapping[str, EnvVar]) -> list[str]:
    """
    Append variables missing from .env.example, each with a description comment.

    Returns:
        Names that were added
    """
    path = Path(project_dir) / ENV_EXAMPLE_FILE
    existing = _read(path)
    present = parse_env_keys(existing)
    missing = [name for name in env_vars if name not in present]
    if not missing:
        return []

    lines = []
    for name in missing:
        env_var = env_vars[name]
        comment = env_var.description
        if env_var.url:
            comment += f' ({env_var.url})'
        lines.append(f'# {comment}')
        lines.append(f'{name}=')
    _append_lines(path, existing, lines)
    return missing


def missing_env_vars(
    project_dir: Path,
    env_vars: Mapping[str, EnvVar],
    environ: Mapping[str, str] = os.environ,
) -> list[str]:
    """Names set neither in .env nor in the process environment."""
    defined = parse_env_keys(_read(Path(project_dir) / ENV_FILE))
    return [name for name in env_vars if name not in defined and name not in environ]
