"""Retrieval of the entry document, optionally rendered in a headless browser."""

from __future__ import annotations

import asyncio
import logging
from typing import Tuple, Union

from playwright.async_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import MirrorConfig
from .errors import EntryFetchFailed, FetchError
from .fetch import Fetcher

logger = logging.getLogger("site_mirror")


async def render_page(url: str, config: MirrorConfig) -> Tuple[str, str]:
    """Navigate to a URL using Playwright and return the HTML and final URL."""
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=True)
        page = await browser.new_page(user_agent=config.user_agent)
        page.set_default_navigation_timeout(config.navigation_timeout * 1000)
        try:
            logger.info("Rendering %s", url)
            await page.goto(url, wait_until="networkidle")
            if config.wait_after_load:
                await page.wait_for_timeout(int(config.wait_after_load * 1000))
            html = await page.content()
            final_url = page.url
        finally:
            await browser.close()
    return html, final_url


async def fetch_entry(
    config: MirrorConfig, fetcher: Fetcher
) -> Tuple[Union[str, bytes], str]:
    """Return the entry document and the URL it was served from.

    Plain HTTP responses are returned as bytes so the parser can honour the
    document's declared charset.

    Raises :class:`EntryFetchFailed` when the document cannot be retrieved.
    """
    url = config.entry_url
    if config.render:
        try:
            return await render_page(url, config)
        except PlaywrightTimeoutError as exc:
            raise EntryFetchFailed(url, f"timeout: {exc}") from exc
        except PlaywrightError as exc:
            raise EntryFetchFailed(url, str(exc)) from exc

    logger.info("Fetching %s", url)
    try:
        data = await asyncio.to_thread(fetcher.fetch, url)
    except FetchError as exc:
        raise EntryFetchFailed(url, exc.reason) from exc
    return data, url
