"""Turn raw references into absolute URLs and deterministic local paths."""

from __future__ import annotations

import logging
import posixpath
from typing import Optional
from urllib.parse import quote, unquote, urldefrag, urljoin, urlparse

from .config import MirrorConfig
from .errors import InvalidReference
from .models import ResolvedAsset

logger = logging.getLogger("site_mirror")

FETCHABLE_SCHEMES = {"http", "https"}


def is_inline_data(raw: str) -> bool:
    return raw.strip().lower().startswith("data:")


def is_safe_filename(filename: str) -> bool:
    """Reject path separators and control characters, NUL included."""
    if "/" in filename or "\\" in filename:
        return False
    return not any(ord(ch) < 32 or ord(ch) == 127 for ch in filename)


def local_filename(absolute_url: str) -> str:
    """Basename of the URL path, without query or fragment, percent-decoded."""
    path = urlparse(absolute_url).path
    return unquote(posixpath.basename(path))


def resolve(raw_ref: str, base_url: str, config: MirrorConfig) -> Optional[ResolvedAsset]:
    """Resolve ``raw_ref`` against ``base_url``.

    Returns ``None`` for empty and inline ``data:`` references, which must be
    left untouched. Raises :class:`InvalidReference` when the reference cannot
    be mapped to a fetchable file.
    """
    ref = (raw_ref or "").strip()
    if not ref or is_inline_data(ref):
        return None

    try:
        absolute_url, _fragment = urldefrag(urljoin(base_url, ref))
        parsed = urlparse(absolute_url)
    except ValueError as exc:
        raise InvalidReference(raw_ref, str(exc)) from exc

    if parsed.scheme not in FETCHABLE_SCHEMES or not parsed.netloc:
        raise InvalidReference(raw_ref, f"unsupported URL {absolute_url!r}")

    filename = local_filename(absolute_url)
    if not filename or filename in (".", ".."):
        raise InvalidReference(raw_ref, "URL has no file name")
    if not is_safe_filename(filename):
        raise InvalidReference(raw_ref, f"unsafe file name {filename!r}")

    segments = [segment for segment in parsed.path.split("/") if segment]
    in_assets = config.assets_dirname in segments[:-1]
    if not in_assets and filename == config.manifest_filename:
        local_path = config.output_root / filename
        rewritten_ref = f"./{quote(filename)}"
    else:
        local_path = config.assets_dir / filename
        rewritten_ref = f"./{config.assets_dirname}/{quote(filename)}"

    logger.debug("Resolved %s -> %s (%s)", raw_ref, absolute_url, rewritten_ref)
    return ResolvedAsset(
        absolute_url=absolute_url,
        local_path=local_path,
        rewritten_ref=rewritten_ref,
    )
