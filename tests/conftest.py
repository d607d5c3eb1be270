"""Shared pytest fixtures for kitn tests."""

import asyncio
import copy
import json
import subprocess
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from kitn.config import TYPE_DIRS
from kitn.exceptions import NetworkError
from kitn.models import ProjectConfig
from kitn.project import save_config

REGISTRY_BASE = "https://kitn-ai.github.io/kitn/r"


class FakeRegistry:
    """In-memory registry serving items and an index by URL."""

    def __init__(self, base: str = REGISTRY_BASE):
        self.base = base
        self.items: dict[str, dict] = {}
        self.calls: list[str] = []
        self.peers: list["FakeRegistry"] = []

    def add(self, name, type="tool", files=None, version="1.0.0", **fields):
        """Publish a component. Extra keyword arguments are raw JSON fields."""
        if files is None:
            files = {f"{TYPE_DIRS[type]}/{name}.ts": f"// {name} v{version}\n"}
        data = {
            "name": name,
            "type": f"kitn:{type}",
            "description": f"The {name} component",
            "version": version,
            "files": [{"path": path, "content": content} for path, content in files.items()],
        }
        data.update(fields)
        self.items[name] = data
        return data

    def item_url(self, name: str, version: str | None = None) -> str:
        data = self.items[name]
        type_dir = TYPE_DIRS[data["type"].replace("kitn:", "")]
        segment = f"{name}@{version}" if version else name
        return f"{self.base}/{type_dir}/{segment}.json"

    @property
    def index_url(self) -> str:
        return f"{self.base}/registry.json"

    def index(self) -> dict:
        return {
            "version": "1",
            "items": [
                {
                    "name": data["name"],
                    "type": data["type"],
                    "description": data["description"],
                    "version": data["version"],
                    "registryDependencies": data.get("registryDependencies", []),
                }
                for data in self.items.values()
            ],
        }

    def payloads(self) -> dict[str, dict]:
        payloads = {self.index_url: self.index()}
        for name, data in self.items.items():
            payloads[self.item_url(name)] = data
            payloads[self.item_url(name, data["version"])] = data
        return payloads

    async def fetch(self, url: str, timeout=None):
        for peer in self.peers:
            if url.startswith(peer.base + "/"):
                return await peer.fetch(url)
        self.calls.append(url)
        await asyncio.sleep(0)
        payloads = self.payloads()
        if url not in payloads:
            raise NetworkError(url, 404, "Not Found")
        return copy.deepcopy(payloads[url])

    def item_calls(self) -> list[str]:
        return [url for url in self.calls if url != self.index_url]


@pytest.fixture(autouse=True)
def mock_kitn_home(tmp_path):
    """Point KITN_HOME at an empty temp directory."""
    kitn_home = tmp_path / ".kitn"
    kitn_home.mkdir()

    with (
        patch("kitn.config.KITN_HOME", kitn_home),
        patch("kitn.config.SETTINGS_FILE", kitn_home / "settings.yml"),
    ):
        yield kitn_home


@pytest.fixture
def cli_runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_registry():
    """A fake @kitn registry wired in place of the HTTP fetch."""
    registry = FakeRegistry()
    with patch("kitn.registry.fetcher.fetch_json", registry.fetch):
        yield registry


@pytest.fixture
def acme_registry(fake_registry):
    """A second registry for the @acme namespace, served alongside @kitn."""
    registry = FakeRegistry(base="https://acme.dev/r")
    fake_registry.peers.append(registry)
    return registry


@pytest.fixture
def project_dir(tmp_path):
    """A project directory with a freshly initialized kitn.json."""
    project = tmp_path / "project"
    project.mkdir()
    save_config(project, ProjectConfig())
    return project


@pytest.fixture
def project_config(project_dir):
    """The config object saved into project_dir."""
    return ProjectConfig.from_dict(json.loads((project_dir / "kitn.json").read_text()))


@pytest.fixture
def run_command():
    """A package-manager runner that records calls and succeeds."""
    calls = []

    def runner(command, **kwargs):
        calls.append((command, kwargs))
        return subprocess.CompletedProcess(command, 0, stdout="", stderr="")

    runner.calls = calls
    return runner
