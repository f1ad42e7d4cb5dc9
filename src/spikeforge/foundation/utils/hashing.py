"""Content checksums for staged files and rendered output."""

import hashlib


def compute_hash(content: bytes | str) -> str:
    """SHA-256 hex digest of ``content``; text is hashed as UTF-8.

    Example:
        >>> compute_hash("hello") == compute_hash(b"hello")
        True
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()
