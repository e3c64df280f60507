"""Command-line entry point for the site mirror."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Sequence

from .config import DEFAULT_USER_AGENT, MirrorConfig
from .errors import EntryFetchFailed
from .mirror import count_by_category, run_mirror
from .utils import default_output_root

logger = logging.getLogger("site_mirror.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Mirror a single web page and its assets into a static, self-contained directory."
        ),
    )
    parser.add_argument("url", help="Entry page to mirror")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Mirror root directory (default: output/<host>)",
    )
    parser.add_argument(
        "--render",
        action="store_true",
        help="Render the entry page in headless Chromium before rewriting",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=1.0,
        help="Seconds to wait after network idle before reading rendered HTML",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Network and navigation timeout in seconds",
    )
    parser.add_argument(
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        help="User-Agent header sent with every request",
    )
    parser.add_argument(
        "--storage-prefix",
        default=None,
        help="Remote storage URL prefix whose references inside scripts are localized",
    )
    parser.add_argument(
        "--badge-pattern",
        default="badge.js",
        help="Remove <script> tags whose src contains this text (empty to disable)",
    )
    parser.add_argument(
        "--rewrite-css",
        action="store_true",
        help="Also rewrite url() references inside downloaded stylesheets",
    )
    parser.add_argument("--lang", default=None, help="Set the <html lang> attribute")
    parser.add_argument(
        "--default-alt",
        default=None,
        help="Alt text for images that have none",
    )
    parser.add_argument(
        "--secure-links",
        action="store_true",
        help="Add target=_blank and rel=noopener to external links",
    )
    parser.add_argument(
        "--trusted-host",
        action="append",
        default=[],
        help="Host treated as internal by --secure-links (repeatable)",
    )
    parser.add_argument(
        "--append-markup",
        action="append",
        type=Path,
        default=[],
        help="HTML fragment file appended to <body> (repeatable)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def _read_fragments(paths: List[Path]) -> tuple:
    return tuple(path.read_text(encoding="utf-8") for path in paths)


def build_config(args: argparse.Namespace) -> MirrorConfig:
    output_root = args.output or default_output_root(args.url)
    return MirrorConfig(
        entry_url=args.url,
        output_root=Path(output_root).resolve(),
        badge_pattern=args.badge_pattern or None,
        remote_storage_prefix=args.storage_prefix,
        timeout=args.timeout,
        user_agent=args.user_agent,
        render=args.render,
        wait_after_load=args.wait,
        navigation_timeout=args.timeout,
        rewrite_css=args.rewrite_css,
        document_lang=args.lang,
        default_alt=args.default_alt,
        secure_external_links=args.secure_links,
        trusted_hosts=tuple(args.trusted_host),
        trailing_markup=_read_fragments(args.append_markup),
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = build_config(args)
    try:
        result = asyncio.run(run_mirror(config))
    except EntryFetchFailed as exc:
        logger.error("%s", exc)
        return 1

    if args.verbose:
        for category, count in sorted(count_by_category(result).items()):
            logger.debug("%s artifacts: %d", category.value, count)
    for failure in result.failed:
        logger.warning("Missing asset %s (%s)", failure.url, failure.reason)
    if result.dangling:
        logger.warning("%d dangling local reference(s) in the mirror", len(result.dangling))
    logger.info("Mirror written to %s", result.index_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
