"""Tests for content hashing."""

import re

from kitn.hashing import aggregate_hash, content_hash


class TestContentHash:
    """Tests for content_hash()."""

    def test_deterministic(self):
        assert content_hash("export const x = 1;\n") == content_hash("export const x = 1;\n")

    def test_format(self):
        """Hashes are eight lowercase hex characters."""
        assert re.fullmatch(r"[0-9a-f]{8}", content_hash("hello"))
        assert re.fullmatch(r"[0-9a-f]{8}", content_hash(""))

    def test_known_value(self):
        """Matches the truncated SHA-256 of the UTF-8 bytes."""
        assert content_hash("hello") == "2cf24dba"

    def test_no_collisions_on_sample(self):
        samples = [f"export const tool{i} = {i};\n" for i in range(200)]
        assert len({content_hash(s) for s in samples}) == len(samples)

    def test_unicode(self):
        assert content_hash("héllo") != content_hash("hello")


class TestAggregateHash:
    """Tests for aggregate_hash()."""

    def test_aggregate_joins_with_newline(self):
        assert aggregate_hash(["a", "b"]) == content_hash("a\nb")

    def test_aggregate_is_order_sensitive(self):
        assert aggregate_hash(["a", "b"]) != aggregate_hash(["b", "a"])
