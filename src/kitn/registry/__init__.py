"""Registry access: fetching descriptors and resolving dependencies."""

from kitn.registry.fetcher import RegistryFetcher, fetch_json
from kitn.registry.resolver import ResolvedComponent, resolve_dependencies

__all__ = [
    "RegistryFetcher",
    "ResolvedComponent",
    "fetch_json",
    "resolve_dependencies",
]
