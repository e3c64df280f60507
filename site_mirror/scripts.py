"""Localize remote-storage URLs embedded in downloaded JavaScript bundles."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Tuple

from .config import MirrorConfig
from .errors import InvalidReference
from .fetch import AssetCache
from .models import InvalidReferenceRecord
from .resolver import resolve

logger = logging.getLogger("site_mirror")


def remote_storage_pattern(prefix: str) -> Pattern[str]:
    """Match ``prefix`` followed by a path, up to whitespace or a quote."""
    return re.compile(re.escape(prefix) + r"[^\s'\"`]+")


def rewrite_remote_references(
    js_text: str,
    pattern: Pattern[str],
    cache: AssetCache,
    config: MirrorConfig,
    invalid: Optional[List[InvalidReferenceRecord]] = None,
) -> Tuple[str, int]:
    """Fetch each remote URL matched in ``js_text`` and substitute local paths.

    Every literal occurrence of a matched string is replaced, longest strings
    first so a URL that prefixes another cannot clobber it. Returns the new
    text and the number of matched assets available locally.
    """
    matches = list(dict.fromkeys(m.group(0) for m in pattern.finditer(js_text)))
    replacements: Dict[str, str] = {}
    fetched = 0
    for remote_url in matches:
        try:
            asset = resolve(remote_url, remote_url, config)
        except InvalidReference as exc:
            logger.warning("Failed to process JS asset %s: %s", remote_url, exc.reason)
            if invalid is not None:
                invalid.append(InvalidReferenceRecord(remote_url, remote_url, exc.reason))
            continue
        if asset is None:
            continue
        if cache.fetch_once(asset) is not None:
            fetched += 1
        replacements[remote_url] = asset.rewritten_ref

    for remote_url in sorted(replacements, key=len, reverse=True):
        js_text = js_text.replace(remote_url, replacements[remote_url])
        logger.info(
            "Replaced remote asset in JS: %s -> %s", remote_url, replacements[remote_url]
        )
    return js_text, fetched


def list_script_files(config: MirrorConfig) -> List[Path]:
    if not config.assets_dir.is_dir():
        return []
    suffixes = tuple(s.lower() for s in config.script_suffixes)
    return sorted(
        path
        for path in config.assets_dir.iterdir()
        if path.is_file() and path.suffix.lower() in suffixes
    )


def rewrite_script_files(
    cache: AssetCache,
    config: MirrorConfig,
    invalid: Optional[List[InvalidReferenceRecord]] = None,
) -> Tuple[Dict[Path, str], int]:
    """Run the JS rewriter over every script in the assets directory.

    Returns the final text of each script (for the audit) and the total number
    of localized assets. Without a configured remote-storage prefix the
    scripts are only read.
    """
    pattern = (
        remote_storage_pattern(config.remote_storage_prefix)
        if config.remote_storage_prefix
        else None
    )
    texts: Dict[Path, str] = {}
    total = 0
    for path in list_script_files(config):
        try:
            original = path.read_bytes().decode("utf-8", errors="surrogateescape")
        except OSError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            continue
        text = original
        if pattern is not None:
            text, count = rewrite_remote_references(original, pattern, cache, config, invalid)
            total += count
        if text != original:
            try:
                path.write_bytes(text.encode("utf-8", errors="surrogateescape"))
            except OSError as exc:
                logger.warning("Failed to write %s: %s", path, exc)
            else:
                logger.debug("Updated script %s", path)
        texts[path] = text
    return texts, total
