"""Utility helpers for string normalization and path handling."""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import urlparse

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str, fallback: str = "site") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def default_output_root(entry_url: str, base: Path = Path("output")) -> Path:
    """Directory used when no explicit output root is given."""
    return base / slugify(urlparse(entry_url).netloc, fallback="site")
