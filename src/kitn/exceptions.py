"""
exceptions:
    Error types raised by the kitn installation pipeline
"""

from typing import Optional


class KitnError(Exception):
    """Base class for all kitn errors."""


class ConfigurationError(KitnError):
    """A registry namespace or project setting is missing or invalid."""


class NotInitializedError(ConfigurationError):
    """The project has no kitn.json."""

    def __init__(self, project_dir):
        self.project_dir = project_dir
        super().__init__("No kitn.json found. Run `kitn init` first.")


class InvalidComponentRefError(KitnError, ValueError):
    """A component reference string could not be parsed."""


class NetworkError(KitnError):
    """A registry request failed."""

    def __init__(self, url: str, status: int | None = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"{status} {reason}".strip() if status is not None else reason
        super().__init__(f"Failed to fetch {url}: {detail}")


class ComponentNotFoundError(KitnError):
    """A component name is not listed in its registry index."""

    def __init__(self, name: str, namespace: str):
        self.name = name
        self.namespace = namespace
        super().__init__(f"Component '{name}' not found in {namespace} registry")


class CycleError(KitnError):
    """The registry dependency graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Circular dependency detected: {' -> '.join(cycle)}")


class ConflictError(KitnError):
    """A tracked file differs locally from the incoming registry content."""

    def __init__(self, path: str, owner: Optional[str] = None):
        self.path = path
        self.owner = owner
        if owner:
            message = f"{path} is already installed by {owner}"
        else:
            message = f"{path} differs from the registry version. Use --overwrite to replace it"
        super().__init__(message)


class FileSystemError(KitnError):
    """A file could not be written or deleted."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ExternalCommandError(KitnError):
    """The package manager exited with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"`{' '.join(command)}` failed (exit={returncode})"
        if stderr.strip():
            message += f": {stderr.strip()}"
        super().__init__(message)


class InvalidRegistryDataError(KitnError):
    """A registry document did not match the expected shape."""

    def __init__(self, source: str, errors: list[str]):
        self.source = source
        self.errors = errors
        super().__init__(f"Invalid registry data from {source}: {'; '.join(errors)}")
