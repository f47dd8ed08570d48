"""Meson machine-file rendering and content-addressed writes."""

from __future__ import annotations

import hashlib
import os
from collections.abc import Sequence
from pathlib import Path

from dav1d_sys.errors import FilesystemError

HASH_LENGTH = 16


def quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def array(values: Sequence[str]) -> str:
    return "[" + ", ".join(quote(value) for value in values) + "]"


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def hashed_name(content: str, *, stem: str, suffix: str = ".meson") -> str:
    """Return ``<stem>-<hash><suffix>`` for *content*."""
    return f"{stem}-{content_hash(content)}{suffix}"


def write_if_changed(path: Path, content: str) -> bool:
    """Write *content* to *path* unless the file already holds it byte-for-byte.

    Returns ``True`` when the file was (re)written.
    """
    payload = content.encode("utf-8")
    try:
        if path.is_file() and path.read_bytes() == payload:
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        temp_path.write_bytes(payload)
        os.replace(temp_path, path)
    except OSError as exc:
        raise FilesystemError(
            "Couldn't write meson cross file.",
            hint="Check that the output directory is writable.",
            context={"operation": "write_crossfile", "path": str(path), "error": str(exc)},
        ) from exc
    return True
