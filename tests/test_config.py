"""Tests for user settings."""

import pytest

from kitn.config import (
    DEFAULT_FRAMEWORK,
    DEFAULT_REGISTRY_URL,
    REQUEST_TIMEOUT,
    load_settings,
    validate_registry,
)
from kitn.exceptions import ConfigurationError


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_defaults_without_file(self, mock_kitn_home):
        settings = load_settings()
        assert settings.framework == DEFAULT_FRAMEWORK
        assert settings.registries == {}
        assert settings.timeout == REQUEST_TIMEOUT

    def test_reads_settings_yml(self, mock_kitn_home):
        (mock_kitn_home / "settings.yml").write_text(
            "framework: elysia\n"
            "timeout: 5\n"
            "registries:\n"
            "  '@acme': https://acme.dev/r/{type}/{name}.json\n"
        )
        settings = load_settings()
        assert settings.framework == "elysia"
        assert settings.timeout == 5.0
        assert settings.default_registries() == {
            "@kitn": DEFAULT_REGISTRY_URL,
            "@acme": "https://acme.dev/r/{type}/{name}.json",
        }

    def test_empty_file(self, mock_kitn_home):
        (mock_kitn_home / "settings.yml").write_text("")
        assert load_settings().framework == DEFAULT_FRAMEWORK

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yml"
        path.write_text("framework: hono-openapi\n")
        assert load_settings(path).framework == "hono-openapi"

    def test_invalid_yaml(self, mock_kitn_home):
        (mock_kitn_home / "settings.yml").write_text("framework: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_settings()

    def test_not_a_mapping(self, mock_kitn_home):
        (mock_kitn_home / "settings.yml").write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_settings()

    def test_unknown_framework(self, mock_kitn_home):
        (mock_kitn_home / "settings.yml").write_text("framework: express\n")
        with pytest.raises(ConfigurationError) as exc:
            load_settings()
        assert "express" in str(exc.value)

    def test_invalid_registry(self, mock_kitn_home):
        (mock_kitn_home / "settings.yml").write_text(
            "registries:\n  acme: https://acme.dev/r/{name}.json\n"
        )
        with pytest.raises(ConfigurationError):
            load_settings()


class TestValidateRegistry:
    """Tests for validate_registry()."""

    def test_valid(self):
        validate_registry("@acme", "https://acme.dev/r/{type}/{name}.json")

    def test_namespace_needs_at(self):
        with pytest.raises(ConfigurationError) as exc:
            validate_registry("acme", "https://acme.dev/r/{type}/{name}.json")
        assert "must start with @" in str(exc.value)

    def test_missing_placeholders(self):
        with pytest.raises(ConfigurationError):
            validate_registry("@acme", "https://acme.dev/r/{name}.json")
        with pytest.raises(ConfigurationError):
            validate_registry("@acme", "https://acme.dev/r/{type}/x.json")
