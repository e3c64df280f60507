"""Configuration objects and constants for the mirror."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; site-mirror/0.1)"
DEFAULT_SCRIPT_SUFFIXES = (".js", ".mjs")


@dataclass
class MirrorConfig:
    """Top-level settings that control a single mirror pass."""

    entry_url: str
    output_root: Path
    assets_dirname: str = "assets"
    manifest_filename: str = "manifest.json"
    badge_pattern: Optional[str] = "badge.js"
    remote_storage_prefix: Optional[str] = None
    script_suffixes: Tuple[str, ...] = DEFAULT_SCRIPT_SUFFIXES
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    render: bool = False
    wait_after_load: float = 1.0
    navigation_timeout: float = 30.0
    rewrite_css: bool = False
    document_lang: Optional[str] = None
    default_alt: Optional[str] = None
    secure_external_links: bool = False
    trusted_hosts: Tuple[str, ...] = field(default_factory=tuple)
    trailing_markup: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def assets_dir(self) -> Path:
        return self.output_root / self.assets_dirname

    @property
    def index_path(self) -> Path:
        return self.output_root / "index.html"
