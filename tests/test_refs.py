"""Tests for component reference parsing."""

import pytest

from kitn.exceptions import InvalidComponentRefError
from kitn.refs import ComponentRef, parse_component_ref


class TestParseComponentRef:
    """Tests for parse_component_ref()."""

    def test_plain_name(self):
        """A bare name belongs to the default namespace."""
        ref = parse_component_ref("weather-agent")
        assert ref == ComponentRef(name="weather-agent", namespace="@kitn", version=None)

    def test_name_with_version(self):
        """The first @ after the name starts the version."""
        ref = parse_component_ref("weather-agent@1.2.0")
        assert ref.name == "weather-agent"
        assert ref.namespace == "@kitn"
        assert ref.version == "1.2.0"

    def test_namespaced(self):
        """A leading @ introduces a namespace that ends at the first slash."""
        ref = parse_component_ref("@acme/search-tool")
        assert ref.namespace == "@acme"
        assert ref.name == "search-tool"
        assert ref.version is None

    def test_namespaced_with_version(self):
        ref = parse_component_ref("@acme/search-tool@2.0.0")
        assert ref == ComponentRef(name="search-tool", namespace="@acme", version="2.0.0")

    def test_version_keeps_later_at_signs(self):
        """Only the first @ in the remainder splits name and version."""
        ref = parse_component_ref("tool@1.0.0@beta")
        assert ref.name == "tool"
        assert ref.version == "1.0.0@beta"

    def test_name_keeps_later_slashes(self):
        ref = parse_component_ref("@acme/nested/tool")
        assert ref.namespace == "@acme"
        assert ref.name == "nested/tool"

    def test_empty_version(self):
        """A trailing @ yields an empty version, not None."""
        ref = parse_component_ref("tool@")
        assert ref.name == "tool"
        assert ref.version == ""

    def test_namespace_without_slash_rejected(self):
        with pytest.raises(InvalidComponentRefError) as exc:
            parse_component_ref("@acme")
        assert "Expected @namespace/name" in str(exc.value)

    def test_invalid_ref_is_value_error(self):
        with pytest.raises(ValueError):
            parse_component_ref("@broken")

    def test_explicit_default_namespace(self):
        """@kitn/name parses the same as name."""
        assert parse_component_ref("@kitn/core") == parse_component_ref("core")


class TestComponentRef:
    """Tests for ComponentRef keys and text form."""

    def test_key_default_namespace(self):
        assert ComponentRef(name="core").key == "core"

    def test_key_other_namespace(self):
        assert ComponentRef(name="search", namespace="@acme").key == "@acme/search"

    def test_str_round_trips(self):
        for raw in ("core", "core@1.0.0", "@acme/search", "@acme/search@2.1.0"):
            assert parse_component_ref(str(parse_component_ref(raw))) == parse_component_ref(raw)
