"""HTML tree operations used while rewriting the entry document."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional, Sequence, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .models import Reference, ReferenceContext

logger = logging.getLogger("site_mirror")

ASSET_LINK_RELS = {"stylesheet", "icon", "manifest", "apple-touch-icon", "shortcut icon"}
SOCIAL_IMAGE_META = (
    {"property": "og:image"},
    {"name": "twitter:image"},
)


def parse_html(html: Union[str, bytes]) -> BeautifulSoup:
    """Parse markup; raw bytes are decoded according to the document's charset."""
    return BeautifulSoup(html, "html.parser")


def serialize_html(soup: BeautifulSoup) -> str:
    return soup.decode()


def effective_base_url(soup: BeautifulSoup, fallback: str) -> str:
    """Honour a ``<base href>`` element when resolving relative references."""
    base = soup.find("base", href=True)
    if base and base["href"].strip():
        return urljoin(fallback, base["href"].strip())
    return fallback


def strip_base(soup: BeautifulSoup) -> int:
    """Drop ``<base>`` elements so local paths resolve against the mirror itself."""
    removed = 0
    for base in soup.find_all("base"):
        base.decompose()
        removed += 1
    return removed


def _rel_value(tag) -> str:
    rel = tag.get("rel")
    if isinstance(rel, (list, tuple)):
        return " ".join(rel).strip().lower()
    return (rel or "").strip().lower()


def is_stylesheet_link(tag) -> bool:
    return tag.name == "link" and _rel_value(tag) == "stylesheet"


def strip_badge(soup: BeautifulSoup, pattern: Optional[str]) -> int:
    """Remove promotional ``<script>`` tags whose ``src`` contains ``pattern``."""
    if not pattern:
        return 0
    removed = 0
    for tag in soup.find_all("script", src=True):
        if pattern in tag["src"]:
            logger.info("Removed badge script %s", tag["src"])
            tag.decompose()
            removed += 1
    return removed


def collect_references(soup: BeautifulSoup, artifact: str = "index.html") -> Iterator[Reference]:
    """Yield asset-bearing attributes in document order of each tag family."""

    def _ref(tag, attribute: str) -> Reference:
        return Reference(
            raw=tag[attribute],
            context=ReferenceContext.HTML_ATTRIBUTE,
            containing_artifact=artifact,
            element=tag,
            attribute=attribute,
        )

    for tag in soup.find_all("link", href=True):
        if _rel_value(tag) in ASSET_LINK_RELS:
            yield _ref(tag, "href")

    for tag in soup.find_all("script", src=True):
        yield _ref(tag, "src")

    for tag in soup.find_all("img", src=True):
        yield _ref(tag, "src")

    for attrs in SOCIAL_IMAGE_META:
        for tag in soup.find_all("meta", attrs=attrs):
            if tag.get("content"):
                yield _ref(tag, "content")


def set_language(soup: BeautifulSoup, lang: str) -> None:
    html = soup.find("html")
    if html is None:
        return
    html["lang"] = lang
    logger.info("Set language to %s", lang)


def fill_missing_alt(soup: BeautifulSoup, alt_text: str) -> int:
    filled = 0
    for img in soup.find_all("img"):
        if not img.get("alt"):
            img["alt"] = alt_text
            logger.debug("Added missing alt text to image %s", img.get("src"))
            filled += 1
    return filled


def secure_external_links(soup: BeautifulSoup, trusted_hosts: Sequence[str]) -> int:
    """Open untrusted absolute links in a new tab without leaking the opener."""
    secured = 0
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if not href.startswith("http"):
            continue
        if any(host in href for host in trusted_hosts):
            continue
        anchor["target"] = "_blank"
        anchor["rel"] = "noopener noreferrer"
        logger.debug("Secured external link: %s", href)
        secured += 1
    return secured


def append_trailing_markup(soup: BeautifulSoup, fragments: Iterable[str]) -> int:
    """Append opaque markup blocks to the end of ``<body>``."""
    container = soup.body or soup
    appended = 0
    for fragment in fragments:
        if not fragment.strip():
            continue
        fragment_soup = BeautifulSoup(fragment, "html.parser")
        for node in list(fragment_soup.contents):
            container.append(node.extract())
        appended += 1
    if appended:
        logger.info("Appended %d trailing markup block(s)", appended)
    return appended


def rewrite_attribute(reference: Reference, new_value: str) -> None:
    reference.element[reference.attribute] = new_value
