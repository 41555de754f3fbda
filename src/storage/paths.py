"""Path helpers for the custody tree. Every lookup goes through resolve_within."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from src.errors import PathTraversalError

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.\-_]")
_EXTENSION_CHARS = re.compile(r"[^a-z0-9]")

DEFAULT_DOCUMENT_NAME = "document.pdf"
# Leaves room for the uuid or order id prefix within filesystem and column limits.
MAX_FILENAME_LENGTH = 120
DEFAULT_PROOF_EXTENSION = "bin"


def sanitize_filename(name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9.-_]`` with an underscore.

    Names longer than MAX_FILENAME_LENGTH are shortened, keeping the extension.
    """
    cleaned = _UNSAFE_CHARS.sub("_", Path(name).name if name else "")
    if not cleaned.strip("."):
        return DEFAULT_DOCUMENT_NAME
    if len(cleaned) > MAX_FILENAME_LENGTH:
        stem, dot, suffix = cleaned.rpartition(".")
        if dot and 0 < len(suffix) <= 10:
            cleaned = f"{stem[: MAX_FILENAME_LENGTH - len(suffix) - 1]}.{suffix}"
        else:
            cleaned = cleaned[:MAX_FILENAME_LENGTH]
    return cleaned


def sanitize_extension(extension: str) -> str:
    """Lowercase alphanumeric extension without the dot; 'bin' when nothing is left."""
    cleaned = _EXTENSION_CHARS.sub("", extension.lower())
    return cleaned or DEFAULT_PROOF_EXTENSION


def date_partition(moment: datetime) -> str:
    """Directory bucket for a timestamp: YYYY-MM-DD."""
    return moment.strftime("%Y-%m-%d")


def resolve_within(root: Path, relative: str | Path) -> Path:
    """Resolve ``relative`` under ``root`` and require it to stay strictly inside.

    Raises:
        PathTraversalError: if the result is ``root`` itself or escapes it.
    """
    base = root.resolve()
    candidate = (base / relative).resolve()
    if candidate == base or not candidate.is_relative_to(base):
        raise PathTraversalError(
            f"Path {str(relative)!r} escapes {base}",
            user_message=f"Akses terlarang ke path: {relative}",
        )
    return candidate


def to_posix_relative(path: Path, root: Path) -> str:
    """Forward-slash path of ``path`` relative to ``root``."""
    return path.resolve().relative_to(root.resolve()).as_posix()
