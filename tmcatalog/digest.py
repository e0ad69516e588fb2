"""Content digests of Thing Model files."""

from __future__ import annotations

import hashlib

from tmcatalog.jsonedit import set_value


def normalize_line_endings(raw: bytes) -> bytes:
    """Turn CRLF and lone CR line endings into LF."""
    return raw.replace(b"\r\n", b"\n").replace(b"\r", b"\n")


def calculate_file_digest(raw: bytes) -> tuple[str, bytes]:
    """Return the 12-character hash of a TM file and the bytes that were hashed.

    Line endings are normalized and 'id' is set to an empty string first, so that
    the hash does not depend on them. Raises ValueError if the file is not a JSON
    object.
    """
    normalized = normalize_line_endings(raw)
    hashed = set_value(normalized, "id", b'""')
    return hashlib.sha1(hashed).hexdigest()[:12], hashed