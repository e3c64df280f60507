"""Post-write check for local references that have no file behind them."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, Pattern
from urllib.parse import unquote

from .config import MirrorConfig

logger = logging.getLogger("site_mirror")


def local_reference_pattern(config: MirrorConfig) -> Pattern[str]:
    return re.compile(
        r"\./(?:{assets}/[A-Za-z0-9._~%-]+|{manifest})".format(
            assets=re.escape(config.assets_dirname),
            manifest=re.escape(config.manifest_filename),
        )
    )


def audit(
    html_text: str,
    js_texts: Iterable[str],
    output_root: Path,
    config: MirrorConfig,
) -> List[str]:
    """Return local paths referenced in the final HTML or scripts that are missing."""
    pattern = local_reference_pattern(config)
    found: List[str] = []
    for text in [html_text, *js_texts]:
        found.extend(pattern.findall(text))

    dangling: List[str] = []
    for local_ref in dict.fromkeys(found):
        target = output_root / unquote(local_ref[2:])
        if not target.is_file():
            logger.warning("Referenced asset missing: %s", local_ref)
            dangling.append(local_ref)
    return dangling
