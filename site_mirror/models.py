"""Data models used throughout the mirror pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional


class ReferenceContext(str, Enum):
    """Syntax a reference was discovered in."""

    HTML_ATTRIBUTE = "html-attribute"
    CSS_URL = "css-url"
    JS_LITERAL = "js-literal"


class MimeCategory(str, Enum):
    HTML = "html"
    CSS = "css"
    JS = "js"
    BINARY = "binary"


@dataclass
class Reference:
    """Textual occurrence of a resource locator found during a scan pass."""

    raw: str
    context: ReferenceContext
    containing_artifact: str
    element: Any = None
    attribute: Optional[str] = None


@dataclass
class ResolvedAsset:
    """A reference normalized to an absolute source URL and a local destination."""

    absolute_url: str
    local_path: Path
    rewritten_ref: str
    is_stylesheet: bool = False


@dataclass
class Artifact:
    """A file written to, or found in, the mirror."""

    path: Path
    mime_category: MimeCategory
    content_type: Optional[str] = None


@dataclass
class FailedAsset:
    """An asset whose download failed; its references are left dangling."""

    url: str
    local_path: Path
    reason: str


@dataclass
class InvalidReferenceRecord:
    """A reference that could not be resolved and was left untouched."""

    raw: str
    base_url: str
    reason: str


@dataclass
class MirrorResult:
    """Outcome of a completed mirror pass."""

    index_path: Path
    written: int = 0
    failed: List[FailedAsset] = field(default_factory=list)
    invalid: List[InvalidReferenceRecord] = field(default_factory=list)
    dangling: List[str] = field(default_factory=list)
    artifacts: List[Artifact] = field(default_factory=list)
    js_rewrites: int = 0
