"""High-level orchestration of a single mirror pass."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .audit import audit
from .config import MirrorConfig
from .document import (
    append_trailing_markup,
    collect_references,
    effective_base_url,
    fill_missing_alt,
    is_stylesheet_link,
    parse_html,
    rewrite_attribute,
    secure_external_links,
    serialize_html,
    set_language,
    strip_badge,
    strip_base,
)
from .errors import InvalidReference
from .fetch import AssetCache, Fetcher, HttpFetcher
from .models import InvalidReferenceRecord, MimeCategory, MirrorResult, ResolvedAsset
from .render import fetch_entry
from .resolver import resolve
from .scripts import rewrite_script_files
from .stylesheets import process_stylesheets

logger = logging.getLogger("site_mirror")


@dataclass
class AssetQueue:
    """Resolved assets in discovery order, one entry per absolute URL."""

    assets: Dict[str, ResolvedAsset] = field(default_factory=dict)

    def add(self, asset: ResolvedAsset) -> ResolvedAsset:
        queued = self.assets.get(asset.absolute_url)
        if queued is None:
            self.assets[asset.absolute_url] = asset
            return asset
        queued.is_stylesheet = queued.is_stylesheet or asset.is_stylesheet
        return queued

    def __iter__(self):
        return iter(self.assets.values())

    def __len__(self) -> int:
        return len(self.assets)


def apply_document_fixes(soup, config: MirrorConfig) -> None:
    if config.document_lang:
        set_language(soup, config.document_lang)
    if config.default_alt:
        fill_missing_alt(soup, config.default_alt)
    if config.secure_external_links:
        own_host = urlparse(config.entry_url).netloc
        trusted = tuple(h for h in (own_host, *config.trusted_hosts) if h)
        secure_external_links(soup, trusted)


def queue_document_references(
    soup,
    base_url: str,
    config: MirrorConfig,
    invalid: List[InvalidReferenceRecord],
) -> AssetQueue:
    """Resolve every asset attribute and rewrite it to its local path at once."""
    queue = AssetQueue()
    for reference in list(collect_references(soup)):
        try:
            asset = resolve(reference.raw, base_url, config)
        except InvalidReference as exc:
            logger.warning("Invalid URL %r: %s", reference.raw, exc.reason)
            invalid.append(InvalidReferenceRecord(reference.raw, base_url, exc.reason))
            continue
        if asset is None:
            continue
        asset.is_stylesheet = is_stylesheet_link(reference.element)
        queue.add(asset)
        rewrite_attribute(reference, asset.rewritten_ref)
    return queue


def fetch_queued(
    queue: AssetQueue, cache: AssetCache
) -> List[Tuple[ResolvedAsset, bytes]]:
    """Fetch queued assets sequentially; return the stylesheets that arrived."""
    stylesheets: List[Tuple[ResolvedAsset, bytes]] = []
    for asset in queue:
        data = cache.fetch_once(asset)
        if data is not None and asset.is_stylesheet:
            stylesheets.append((asset, data))
    return stylesheets


def mirror_assets(
    queue: AssetQueue,
    cache: AssetCache,
    config: MirrorConfig,
    invalid: List[InvalidReferenceRecord],
) -> Tuple[Dict[Path, str], int]:
    """Blocking asset phase: fetch, follow stylesheets, then localize scripts."""
    stylesheets = fetch_queued(queue, cache)
    process_stylesheets(stylesheets, cache, config, invalid)
    return rewrite_script_files(cache, config, invalid)


async def run_mirror(
    config: MirrorConfig,
    fetcher: Optional[Fetcher] = None,
) -> MirrorResult:
    """Mirror ``config.entry_url`` into ``config.output_root``.

    Only a failure to retrieve the entry document propagates (as
    :class:`EntryFetchFailed`); every other problem is logged and collected
    on the returned :class:`MirrorResult`.
    """
    start = time.perf_counter()
    if fetcher is None:
        fetcher = HttpFetcher(timeout=config.timeout, user_agent=config.user_agent)

    html, final_url = await fetch_entry(config, fetcher)
    logger.info("Mirroring %s into %s", final_url, config.output_root)
    config.assets_dir.mkdir(parents=True, exist_ok=True)

    soup = parse_html(html)
    strip_badge(soup, config.badge_pattern)
    apply_document_fixes(soup, config)

    base_url = effective_base_url(soup, final_url)
    strip_base(soup)
    invalid: List[InvalidReferenceRecord] = []
    queue = queue_document_references(soup, base_url, config, invalid)
    logger.info("Queued %d asset(s) from the document", len(queue))

    cache = AssetCache(fetcher, config.script_suffixes)
    scripts, js_rewrites = await asyncio.to_thread(
        mirror_assets, queue, cache, config, invalid
    )

    append_trailing_markup(soup, config.trailing_markup)

    output_html = serialize_html(soup)
    dangling = audit(output_html, scripts.values(), config.output_root, config)

    config.index_path.write_text(output_html, encoding="utf-8")
    logger.info("Saved updated %s", config.index_path)

    result = MirrorResult(
        index_path=config.index_path,
        written=cache.written + 1,
        failed=list(cache.failed),
        invalid=invalid,
        dangling=dangling,
        artifacts=cache.artifacts,
        js_rewrites=js_rewrites,
    )
    logger.info(
        "Mirror finished in %.2fs (%d written, %d failed, %d dangling)",
        time.perf_counter() - start,
        result.written,
        len(result.failed),
        len(result.dangling),
    )
    return result


def count_by_category(result: MirrorResult) -> Dict[MimeCategory, int]:
    counts: Dict[MimeCategory, int] = {}
    for artifact in result.artifacts:
        counts[artifact.mime_category] = counts.get(artifact.mime_category, 0) + 1
    return counts
