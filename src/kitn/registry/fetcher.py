"""
registry.fetcher:
    Resolve component URLs from namespace templates and fetch descriptors
"""

from __future__ import annotations

import asyncio
import functools
import json
import urllib.error
import urllib.request
from typing import Any, Awaitable, Callable, Mapping, Optional

from kitn.config import DEFAULT_NAMESPACE, INDEX_FILE, INDEX_SUFFIX, REQUEST_TIMEOUT
from kitn.exceptions import (
    ComponentNotFoundError,
    ConfigurationError,
    InvalidRegistryDataError,
    NetworkError,
)
from kitn.models import IndexEntry, RegistryIndex, RegistryItem
from kitn.refs import ComponentRef

FetchFn = Callable[[str], Awaitable[Any]]


def _get_json(url: str, timeout: float) -> Any:
    try:
        with urllib.request.urlopen(url, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise NetworkError(url, status, getattr(response, "reason", ""))
            payload = response.read()
    except urllib.error.HTTPError as e:
        raise NetworkError(url, e.code, str(e.reason)) from e
    except urllib.error.URLError as e:
        raise NetworkError(url, reason=str(e.reason)) from e
    except OSError as e:
        raise NetworkError(url, reason=str(e)) from e

    try:
        return json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidRegistryDataError(url, [f"Invalid JSON: {e}"]) from e


async def fetch_json(url: str, timeout: float = REQUEST_TIMEOUT) -> Any:
    """GET a URL and decode its JSON body without blocking the event loop."""
    return await asyncio.to_thread(_get_json, url, timeout)


class RegistryFetcher:
    """
    Fetches component descriptors and registry indexes.

    Results are cached per instance, keyed by resolved URL, for the lifetime
    of the fetcher. Concurrent requests for one URL share a single in-flight
    fetch. A failed fetch is dropped from the cache and never retried here.
    """

    def __init__(
        self,
        registries: Mapping[str, str],
        fetch_fn: Optional[FetchFn] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.registries = dict(registries)
        self._fetch_fn = fetch_fn or functools.partial(fetch_json, timeout=timeout)
        self._cache: dict[str, asyncio.Future] = {}

    def _template(self, namespace: str) -> str:
        template = self.registries.get(namespace)
        if not template:
            raise ConfigurationError(f"No registry configured for {namespace}")
        return template

    def resolve_url(
        self,
        name: str,
        type_dir: str,
        namespace: str = DEFAULT_NAMESPACE,
        version: Optional[str] = None,
    ) -> str:
        """Substitute name and type into the namespace's URL template."""
        template = self._template(namespace)
        segment = f"{name}@{version}" if version else name
        return template.replace("{name}", segment).replace("{type}", type_dir)

    def index_url(self, namespace: str = DEFAULT_NAMESPACE) -> str:
        """URL of the namespace's registry.json."""
        template = self._template(namespace)
        if INDEX_SUFFIX in template:
            return template.replace(INDEX_SUFFIX, INDEX_FILE)
        return template.split("{type}", 1)[0] + INDEX_FILE

    async def fetch_item(
        self,
        name: str,
        type_dir: str,
        namespace: str = DEFAULT_NAMESPACE,
        version: Optional[str] = None,
    ) -> RegistryItem:
        """Fetch and parse a component descriptor."""
        url = self.resolve_url(name, type_dir, namespace, version)
        return await self._get(url, RegistryItem.from_dict)

    async def fetch_index(self, namespace: str = DEFAULT_NAMESPACE) -> RegistryIndex:
        """Fetch and parse the namespace's registry index."""
        url = self.index_url(namespace)
        return await self._get(url, RegistryIndex.from_dict)

    async def find_index_item(self, ref: ComponentRef) -> IndexEntry:
        """
        Look a component up in its namespace's index.

        Raises:
            ComponentNotFoundError: If the index does not list the name.
        """
        index = await self.fetch_index(ref.namespace)
        entry = index.find(ref.name)
        if entry is None:
            raise ComponentNotFoundError(ref.name, ref.namespace)
        return entry

    async def fetch_component(self, ref: ComponentRef) -> RegistryItem:
        """Fetch a component by reference, using the index to find its type."""
        entry = await self.find_index_item(ref)
        return await self.fetch_item(ref.name, entry.type_dir, ref.namespace, ref.version)

    async def _get(self, url: str, parse: Callable[[Any, str], Any]) -> Any:
        future = self._cache.get(url)
        if future is None:
            future = asyncio.ensure_future(self._load(url, parse))
            self._cache[url] = future
        return await future

    async def _load(self, url: str, parse: Callable[[Any, str], Any]) -> Any:
        try:
            data = await self._fetch_fn(url)
            return parse(data, url)
        except BaseException:
            self._cache.pop(url, None)
            raise

    def clear(self) -> None:
        """Forget every cached response."""
        self._cache.clear()
