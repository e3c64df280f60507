"""Asset downloading and the per-run fetch cache."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional, Protocol, Set

import requests
from filetype import guess

from .config import DEFAULT_SCRIPT_SUFFIXES, DEFAULT_USER_AGENT
from .errors import FetchError
from .models import Artifact, FailedAsset, MimeCategory, ResolvedAsset

logger = logging.getLogger("site_mirror")

RASTER_IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".ico", ".avif"}


class Fetcher(Protocol):
    def fetch(self, url: str) -> bytes:
        ...


class HttpFetcher:
    """Blocking HTTP transport backed by a shared ``requests.Session``."""

    def __init__(self, timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def fetch(self, url: str) -> bytes:
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(url, str(exc)) from exc
        return resp.content


def categorize(path: Path, script_suffixes=DEFAULT_SCRIPT_SUFFIXES) -> MimeCategory:
    """Map a local file to the artifact category that decides how it is scanned."""
    suffix = path.suffix.lower()
    if suffix in (".html", ".htm"):
        return MimeCategory.HTML
    if suffix == ".css":
        return MimeCategory.CSS
    if suffix in script_suffixes:
        return MimeCategory.JS
    return MimeCategory.BINARY


def sniff_content_type(data: bytes) -> Optional[str]:
    """Detect the MIME type from the file signature, if recognisable."""
    if not data:
        return None
    kind = guess(data)
    return kind.mime if kind else None


class AssetCache:
    """Guarantees each absolute URL is fetched at most once per mirror run.

    Files that already exist on disk are treated as hits and their bytes are
    re-read, so dependent scans (CSS inside a previously downloaded
    stylesheet) see the same content a fresh download would produce.
    """

    def __init__(self, fetcher: Fetcher, script_suffixes=DEFAULT_SCRIPT_SUFFIXES) -> None:
        self.fetcher = fetcher
        self.script_suffixes = tuple(script_suffixes)
        self.failed: List[FailedAsset] = []
        self.written = 0
        self._requested: Set[str] = set()
        self._artifacts: Dict[Path, Artifact] = {}
        self._lock = Lock()

    @property
    def artifacts(self) -> List[Artifact]:
        return list(self._artifacts.values())

    def fetch_once(self, asset: ResolvedAsset) -> Optional[bytes]:
        """Return the asset's bytes, downloading them only if needed."""
        with self._lock:
            if asset.absolute_url in self._requested:
                logger.debug("Already requested %s", asset.absolute_url)
                return self._read_existing(asset)
            self._requested.add(asset.absolute_url)

            if asset.local_path.exists():
                logger.debug("Using existing %s for %s", asset.local_path, asset.absolute_url)
                return self._read_existing(asset)

            try:
                data = self.fetcher.fetch(asset.absolute_url)
            except FetchError as exc:
                logger.warning("Failed to fetch %s: %s", asset.absolute_url, exc.reason)
                self.failed.append(
                    FailedAsset(asset.absolute_url, asset.local_path, exc.reason)
                )
                return None

            try:
                asset.local_path.parent.mkdir(parents=True, exist_ok=True)
                asset.local_path.write_bytes(data)
            except (OSError, ValueError) as exc:
                logger.warning("Failed to write %s: %s", asset.local_path, exc)
                self.failed.append(
                    FailedAsset(asset.absolute_url, asset.local_path, str(exc))
                )
                return None

            self.written += 1
            logger.info("Downloaded: %s -> %s", asset.absolute_url, asset.local_path)
            self._record(asset.local_path, data)
            return data

    def _read_existing(self, asset: ResolvedAsset) -> Optional[bytes]:
        if not asset.local_path.exists():
            return None
        try:
            data = asset.local_path.read_bytes()
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read %s: %s", asset.local_path, exc)
            return None
        self._record(asset.local_path, data)
        return data

    def _record(self, path: Path, data: bytes) -> None:
        if path in self._artifacts:
            return
        category = categorize(path, self.script_suffixes)
        content_type = None
        if category is MimeCategory.BINARY:
            content_type = sniff_content_type(data)
            is_image = bool(content_type) and content_type.startswith("image/")
            if path.suffix.lower() in RASTER_IMAGE_SUFFIXES and not is_image:
                logger.warning(
                    "%s does not look like an image (detected %s)",
                    path,
                    content_type or "unknown",
                )
        self._artifacts[path] = Artifact(path, category, content_type)
