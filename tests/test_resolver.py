"""Tests for dependency resolution."""

import asyncio

import pytest

from kitn.config import DEFAULT_REGISTRY_URL
from kitn.exceptions import ComponentNotFoundError, CycleError
from kitn.models import RegistryItem
from kitn.pipeline import add_components
from kitn.refs import ComponentRef
from kitn.registry.fetcher import RegistryFetcher
from kitn.registry.resolver import resolve_dependencies


def graph_fetcher(graph: dict[str, list[str]], calls: list[str] | None = None):
    """A fetch_item coroutine serving items from a name -> dependencies map."""

    async def fetch_item(ref: ComponentRef) -> RegistryItem:
        if calls is not None:
            calls.append(ref.key)
        if ref.key not in graph:
            raise ComponentNotFoundError(ref.name, ref.namespace)
        return RegistryItem(name=ref.name, type="tool", registry_dependencies=tuple(graph[ref.key]))

    return fetch_item


def resolve(roots, graph, calls=None):
    return asyncio.run(resolve_dependencies(roots, graph_fetcher(graph, calls)))


class TestResolveOrder:
    """Tests for dependency-first ordering."""

    def test_single_component(self):
        result = resolve(["a"], {"a": []})
        assert [c.key for c in result] == ["a"]
        assert result[0].requested is True

    def test_dependency_before_dependent(self):
        result = resolve(["a"], {"a": ["b"], "b": []})
        assert [c.key for c in result] == ["b", "a"]

    def test_shared_dependency_once(self):
        """A -> B, A -> C, C -> B puts B first and only once."""
        graph = {"a": ["b", "c"], "b": [], "c": ["b"]}
        result = resolve(["a"], graph)
        keys = [c.key for c in result]
        assert keys == ["b", "c", "a"]
        assert keys.count("b") == 1

    def test_each_component_fetched_once(self):
        calls = []
        graph = {"a": ["b", "c"], "b": [], "c": ["b"]}
        resolve(["a"], graph, calls)
        assert sorted(calls) == ["a", "b", "c"]

    def test_document_order_of_dependencies(self):
        graph = {"a": ["c", "b"], "b": [], "c": []}
        assert [c.key for c in resolve(["a"], graph)] == ["c", "b", "a"]

    def test_multiple_roots(self):
        """Roots are walked left to right; shared dependencies appear once."""
        graph = {"a": ["core"], "b": ["core"], "core": []}
        result = resolve(["a", "b"], graph)
        assert [c.key for c in result] == ["core", "a", "b"]

    def test_requested_flag(self):
        graph = {"a": ["b"], "b": []}
        result = {c.key: c.requested for c in resolve(["a"], graph)}
        assert result == {"a": True, "b": False}

    def test_root_that_is_also_dependency(self):
        graph = {"a": ["b"], "b": []}
        result = resolve(["a", "b"], graph)
        assert [c.key for c in result] == ["b", "a"]
        assert all(c.requested for c in result)

    def test_deep_chain(self):
        """Long chains resolve without recursion limits."""
        depth = 2000
        graph = {f"n{i}": [f"n{i + 1}"] for i in range(depth)}
        graph[f"n{depth}"] = []
        result = resolve(["n0"], graph)
        assert result[0].key == f"n{depth}"
        assert result[-1].key == "n0"
        assert len(result) == depth + 1

    def test_namespaced_dependencies(self):
        graph = {"a": ["@acme/b"], "@acme/b": []}
        result = resolve(["a"], graph)
        assert [c.key for c in result] == ["@acme/b", "a"]
        assert result[0].ref.namespace == "@acme"


class TestResolveErrors:
    """Tests for cycles and missing components."""

    def test_direct_cycle(self):
        with pytest.raises(CycleError) as exc:
            resolve(["a"], {"a": ["b"], "b": ["a"]})
        assert exc.value.cycle == ["a", "b", "a"]
        assert "a -> b -> a" in str(exc.value)

    def test_self_dependency(self):
        with pytest.raises(CycleError) as exc:
            resolve(["a"], {"a": ["a"]})
        assert exc.value.cycle == ["a", "a"]

    def test_cycle_path_excludes_entry_chain(self):
        graph = {"root": ["a"], "a": ["b"], "b": ["c"], "c": ["a"]}
        with pytest.raises(CycleError) as exc:
            resolve(["root"], graph)
        assert exc.value.cycle == ["a", "b", "c", "a"]

    def test_missing_dependency(self):
        with pytest.raises(ComponentNotFoundError):
            resolve(["a"], {"a": ["ghost"]})


class TestCycleWritesNothing:
    """A cyclic graph fails before any file is written."""

    def test_no_files_written(self, fake_registry, project_dir, project_config):
        fake_registry.add("a", registryDependencies=["b"])
        fake_registry.add("b", registryDependencies=["a"])
        fetcher = RegistryFetcher({"@kitn": DEFAULT_REGISTRY_URL})
        config_before = (project_dir / "kitn.json").read_text()

        with pytest.raises(CycleError):
            add_components(project_dir, project_config, ["a"], fetcher=fetcher)

        assert not (project_dir / "src").exists()
        assert (project_dir / "kitn.json").read_text() == config_before
