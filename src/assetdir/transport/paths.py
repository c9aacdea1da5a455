"""
Asset path helpers.
"""

from __future__ import annotations

import re
from urllib.parse import quote

_SEPARATORS = re.compile(r"[/\\]")


def canonicalize_path(path: str | None) -> str:
    """
    Normalize an asset path.

    Backslashes become forward slashes and leading/trailing slashes are
    removed.

    Example:
        >>> canonicalize_path("\\\\releases\\\\1.0\\\\app.zip/")
        'releases/1.0/app.zip'
    """
    if not path:
        return ""
    return _SEPARATORS.sub("/", path).strip("/")


def require_path(path: str | None) -> str:
    """Canonicalize a path that must not be empty."""
    canonical = canonicalize_path(path)
    if not canonical:
        raise ValueError("Asset path is required.")
    return canonical


def quote_path(path: str) -> str:
    """Percent-encode path segments, keeping the separators."""
    return quote(path, safe="/")


def content_url(path: str) -> str:
    """Relative URL of an asset's content."""
    return "content/" + quote_path(path)


def metadata_url(path: str) -> str:
    """Relative URL of an asset's metadata."""
    return "metadata/" + quote_path(path)


__all__ = [
    "canonicalize_path",
    "require_path",
    "quote_path",
    "content_url",
    "metadata_url",
]
