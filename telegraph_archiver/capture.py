"""Render pages with Playwright and capture a screenshot plus raw HTML."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Sequence, Union

from playwright.async_api import (
    Browser,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import ArchiveConfig
from .errors import CaptureFailed
from .models import CaptureResult

logger = logging.getLogger("telegraph_archiver")

CaptureOutcome = Union[CaptureResult, Exception]


async def _launch(playwright: Playwright, config: ArchiveConfig) -> Browser:
    if config.browser_remote:
        logger.debug("Connecting to remote browser %s", config.browser_remote)
        return await playwright.chromium.connect_over_cdp(config.browser_remote)
    return await playwright.chromium.launch(headless=True)


async def render_page(browser: Browser, url: str, config: ArchiveConfig) -> CaptureResult:
    """Navigate to a URL and return its title, HTML and full-page screenshot."""
    context = await browser.new_context(device_scale_factor=config.scale_factor)
    page = await context.new_page()
    page.set_default_navigation_timeout(config.navigation_timeout * 1000)
    try:
        logger.info("Loading %s", url)
        await page.goto(url, wait_until="networkidle")
        if config.wait_after_load:
            await page.wait_for_timeout(int(config.wait_after_load * 1000))
        title = await page.title()
        html = (await page.content()).encode("utf-8") if config.raw_html else None
        if config.quality < 100:
            image = await page.screenshot(full_page=True, type="jpeg", quality=config.quality)
        else:
            image = await page.screenshot(full_page=True, type="png")
        final_url = page.url
    finally:
        await context.close()
    return CaptureResult(url=url, title=title, html=html, image=image, final_url=final_url)


async def _capture_one(browser: Browser, url: str, config: ArchiveConfig) -> CaptureOutcome:
    try:
        return await render_page(browser, url, config)
    except PlaywrightTimeoutError as exc:
        logger.error("Timeout while loading %s: %s", url, exc)
        return CaptureFailed(f"timeout loading {url}")
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Unexpected error loading %s", url)
        return CaptureFailed(f"capture {url}: {exc}")


async def capture(urls: Sequence[str], config: ArchiveConfig) -> List[CaptureOutcome]:
    """Render every URL concurrently in one browser.

    Per-page failures are returned in place of the result; the caller
    applies the overall deadline.
    """
    async with async_playwright() as playwright:
        browser = await _launch(playwright, config)
        try:
            return list(
                await asyncio.gather(*(_capture_one(browser, url, config) for url in urls))
            )
        finally:
            await browser.close()
