"""Content hash utilities for change detection."""

import hashlib
from typing import Iterable

HASH_LENGTH = 8


def content_hash(content: str) -> str:
    """Short SHA-256 digest of text content.

    Returns:
        The first 8 lowercase hex characters of the digest. Meant for
        spotting changed files, not for integrity checks.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def aggregate_hash(contents: Iterable[str]) -> str:
    """Digest over several file contents, in order."""
    return content_hash("\n".join(contents))
