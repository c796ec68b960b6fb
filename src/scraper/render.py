"""Dynamic-render escalation policy and the headless-browser renderer.

Static HTML is not enough for client-rendered (SPA) pages. After the static
extraction, :func:`needs_dynamic_render` decides whether the page should be
re-fetched through Chromium; :class:`PlaywrightRenderer` does the fetch.

The renderer is an optional dependency of the orchestrator: when it is
``None`` (disabled, or Chromium failed to launch) escalation is skipped and
the static result stands.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from playwright.async_api import Browser, Page, Playwright, async_playwright

from .errors import RenderError
from .extract import ExtractedPage
from .fetch import random_user_agent

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)

CONTENT_READY_SELECTOR = (
    'main, article, h1, #content, #root, #__next, div[role="main"], [data-reactroot]'
)

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]


def needs_dynamic_render(
    page: ExtractedPage,
    *,
    text_threshold: int = 150,
    body_threshold: int = 350,
) -> bool:
    """Return ``True`` when the static extraction looks like an SPA shell.

    Any one of: short content, short raw body text, no sections, or a
    client-side framework root element in the body.
    """
    return (
        page.content_length < text_threshold
        or page.body_text_length < body_threshold
        or not page.sections
        or page.has_spa_markers
    )


class DynamicRenderer(Protocol):
    """Protocol for headless renderers. ``None`` means nothing was rendered."""

    async def render(self, url: str) -> str | None: ...


class PlaywrightRenderer:
    """Renders pages in headless Chromium, one browser context per render.

    A single browser process is shared; every :meth:`render` call gets its
    own isolated context that is always closed, and a semaphore caps the
    number of contexts open at once.
    """

    def __init__(
        self,
        *,
        navigation_timeout: float = 45.0,
        selector_timeout: float = 10.0,
        wait_timeout: float = 8.0,
        settle_delay: float = 2.0,
        max_concurrent: int = 3,
    ) -> None:
        self._navigation_timeout = navigation_timeout
        self._selector_timeout = selector_timeout
        self._wait_timeout = wait_timeout
        self._settle_delay = settle_delay
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent))
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def available(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def start(self) -> None:
        """Launch Chromium. Raises if Playwright or the browser is missing."""
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=True, args=_LAUNCH_ARGS)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        logger.info("headless renderer started")

    async def close(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception:
                logger.warning("browser close failed", exc_info=True)
            self._browser = None
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception:
                logger.warning("playwright stop failed", exc_info=True)
            self._playwright = None
        logger.info("headless renderer stopped")

    async def render(self, url: str) -> str | None:
        """Return the fully rendered HTML of *url*, or ``None`` on any failure."""
        async with self._semaphore:
            try:
                return await self._render(url)
            except Exception as exc:
                logger.warning(
                    "dynamic render failed",
                    extra={"url": url, "error": f"{type(exc).__name__}: {exc}"},
                )
                return None

    async def _render(self, url: str) -> str:
        if not self.available:
            raise RenderError("browser is not running")

        context = await self._browser.new_context(
            user_agent=random_user_agent(),
            viewport={"width": 1366, "height": 900},
            java_script_enabled=True,
        )
        try:
            page = await context.new_page()
            await page.goto(
                url,
                timeout=self._navigation_timeout * 1000,
                wait_until="domcontentloaded",
            )
            await self._wait_for_content(page, url)
            await asyncio.sleep(self._settle_delay)
            html = await page.content()
        finally:
            await context.close()

        if not html:
            raise RenderError("empty document")
        logger.debug("dynamic render complete", extra={"url": url, "length": len(html)})
        return html

    async def _wait_for_content(self, page: Page, url: str) -> None:
        """Wait until a content element appears or the flat timeout elapses."""
        selector_task = asyncio.create_task(
            page.wait_for_selector(CONTENT_READY_SELECTOR, timeout=self._selector_timeout * 1000)
        )
        timer_task = asyncio.create_task(asyncio.sleep(self._wait_timeout))
        done, pending = await asyncio.wait(
            {selector_task, timer_task}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        if selector_task in done and selector_task.exception() is not None:
            logger.debug(
                "content selector not found",
                extra={"url": url, "error": str(selector_task.exception())},
            )


async def create_renderer(settings: Settings) -> PlaywrightRenderer | None:
    """Build and start the renderer, or ``None`` when it is disabled or fails."""
    if not settings.dynamic_rendering_enabled:
        logger.info("dynamic rendering disabled")
        return None

    renderer = PlaywrightRenderer(
        navigation_timeout=settings.render_navigation_timeout_seconds,
        selector_timeout=settings.render_selector_timeout_seconds,
        wait_timeout=settings.render_wait_seconds,
        settle_delay=settings.render_settle_seconds,
        max_concurrent=settings.max_concurrent_renders,
    )
    try:
        await renderer.start()
    except Exception:
        logger.warning("headless renderer unavailable, continuing without it", exc_info=True)
        return None
    return renderer
