"""Lightweight lexical scanning of stylesheets for ``url()`` references.

This is a regex scan rather than a CSS parse: references hidden behind nested
quotes or unusual escaping are not detected.
"""

from __future__ import annotations

import logging
import os
import re
from collections import deque
from typing import Deque, Iterator, List, Optional, Set, Tuple

from .config import MirrorConfig
from .errors import InvalidReference
from .fetch import AssetCache
from .models import InvalidReferenceRecord, ResolvedAsset
from .resolver import is_inline_data, resolve

logger = logging.getLogger("site_mirror")

CSS_URL_RE = re.compile(r"url\(\s*(['\"]?)(.*?)\1\s*\)", re.IGNORECASE)


def _is_candidate(raw: str) -> bool:
    ref = raw.strip()
    if not ref or is_inline_data(ref):
        return False
    return not ref.lower().startswith(("http:", "https:"))


def extract_references(css_text: str) -> Iterator[str]:
    """Yield relative ``url()`` references in source order."""
    for match in CSS_URL_RE.finditer(css_text):
        raw = match.group(2)
        if _is_candidate(raw):
            yield raw.strip()


def _resolve_or_record(
    raw: str,
    base_url: str,
    config: MirrorConfig,
    invalid: Optional[List[InvalidReferenceRecord]],
) -> Optional[ResolvedAsset]:
    try:
        return resolve(raw, base_url, config)
    except InvalidReference as exc:
        logger.warning("Skipping reference %r in %s: %s", raw, base_url, exc.reason)
        if invalid is not None:
            invalid.append(InvalidReferenceRecord(raw, base_url, exc.reason))
        return None


def fetch_stylesheet_dependencies(
    css_text: str,
    stylesheet_url: str,
    cache: AssetCache,
    config: MirrorConfig,
    invalid: Optional[List[InvalidReferenceRecord]] = None,
) -> List[Tuple[ResolvedAsset, Optional[bytes]]]:
    """Fetch every relative resource a stylesheet points at.

    References are resolved against the stylesheet's own URL, not the
    document's. The stylesheet text itself is left unchanged.
    """
    fetched: List[Tuple[ResolvedAsset, Optional[bytes]]] = []
    for raw in extract_references(css_text):
        asset = _resolve_or_record(raw, stylesheet_url, config, invalid)
        if asset is None:
            continue
        asset.is_stylesheet = asset.local_path.suffix.lower() == ".css"
        fetched.append((asset, cache.fetch_once(asset)))
    return fetched


def rewrite_stylesheet_references(
    css_text: str,
    stylesheet: ResolvedAsset,
    config: MirrorConfig,
) -> str:
    """Point relative ``url()`` references at their local copies."""
    base_dir = stylesheet.local_path.parent

    def _replace(match: re.Match) -> str:
        quote, raw = match.group(1), match.group(2)
        if not _is_candidate(raw):
            return match.group(0)
        try:
            asset = resolve(raw, stylesheet.absolute_url, config)
        except InvalidReference:
            return match.group(0)
        if asset is None:
            return match.group(0)
        relative = os.path.relpath(asset.local_path, base_dir).replace(os.sep, "/")
        return f"url({quote}{relative}{quote})"

    return CSS_URL_RE.sub(_replace, css_text)


def process_stylesheets(
    stylesheets: List[Tuple[ResolvedAsset, bytes]],
    cache: AssetCache,
    config: MirrorConfig,
    invalid: Optional[List[InvalidReferenceRecord]] = None,
) -> int:
    """Scan downloaded stylesheets, following nested stylesheets breadth-first.

    Returns the number of stylesheets scanned.
    """
    queue: Deque[Tuple[ResolvedAsset, bytes]] = deque(stylesheets)
    seen: Set[str] = set()
    scanned = 0
    while queue:
        stylesheet, data = queue.popleft()
        if stylesheet.absolute_url in seen:
            continue
        seen.add(stylesheet.absolute_url)
        scanned += 1

        css_text = data.decode("utf-8", errors="surrogateescape")
        logger.debug("Scanning stylesheet %s", stylesheet.absolute_url)
        for asset, dep_data in fetch_stylesheet_dependencies(
            css_text, stylesheet.absolute_url, cache, config, invalid
        ):
            if asset.is_stylesheet and dep_data is not None:
                queue.append((asset, dep_data))

        if config.rewrite_css:
            rewritten = rewrite_stylesheet_references(css_text, stylesheet, config)
            if rewritten != css_text:
                try:
                    stylesheet.local_path.write_bytes(
                        rewritten.encode("utf-8", errors="surrogateescape")
                    )
                except OSError as exc:
                    logger.warning("Failed to write %s: %s", stylesheet.local_path, exc)
                    continue
                logger.info("Rewrote references in %s", stylesheet.local_path)
    return scanned
