"""Scrape orchestrator — per-URL fetch / extract / escalate / validate loop."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .errors import InsufficientContentError
from .extract import ExtractedPage, extract_page
from .fetch import HttpFetcher, PageFetcher
from .models import ScrapeResult
from .render import DynamicRenderer, needs_dynamic_render

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200


@dataclass(frozen=True)
class ScrapeConfig:
    """Retry, pacing and threshold knobs for the scrape pipeline."""

    max_attempts: int = 3
    retry_delay: float = 2.0
    batch_delay: float = 3.0
    min_content_length: int = 100
    min_dynamic_content_length: int = 40
    escalation_text_threshold: int = 150
    escalation_body_threshold: int = 350
    max_content_length: int = 50_000
    fetch_timeout: float = 30.0
    max_redirects: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> ScrapeConfig:
        return cls(
            max_attempts=settings.max_attempts,
            retry_delay=settings.retry_delay_seconds,
            batch_delay=settings.batch_delay_seconds,
            min_content_length=settings.min_content_length,
            min_dynamic_content_length=settings.min_dynamic_content_length,
            escalation_text_threshold=settings.escalation_text_threshold,
            escalation_body_threshold=settings.escalation_body_threshold,
            max_content_length=settings.max_content_length,
            fetch_timeout=settings.fetch_timeout_seconds,
            max_redirects=settings.max_redirects,
        )


def count_words(text: str) -> int:
    return len(text.split())


def reading_time(word_count: int) -> int:
    return math.ceil(word_count / WORDS_PER_MINUTE)


class Scraper:
    """Runs the retry ladder for one URL at a time.

    Instances hold no per-URL state, so a single scraper can serve many
    concurrent :meth:`scrape_url` calls.
    """

    def __init__(
        self,
        config: ScrapeConfig | None = None,
        *,
        fetcher: PageFetcher | None = None,
        renderer: DynamicRenderer | None = None,
    ) -> None:
        self._config = config or ScrapeConfig()
        self._fetcher = fetcher or HttpFetcher(
            timeout=self._config.fetch_timeout,
            max_redirects=self._config.max_redirects,
        )
        self._renderer = renderer

    @property
    def config(self) -> ScrapeConfig:
        return self._config

    @property
    def dynamic_rendering_available(self) -> bool:
        return self._renderer is not None

    async def aclose(self) -> None:
        """Release the renderer's browser, if it owns one."""
        close = getattr(self._renderer, "close", None)
        if close is not None:
            await close()

    async def scrape_url(self, url: str) -> ScrapeResult:
        """Scrape *url*, returning a success or failure envelope. Never raises
        for per-URL problems (bad page, bot wall, timeout)."""
        cfg = self._config
        escalated = False
        last_error: Exception | None = None
        attempt = 0

        for attempt in range(1, cfg.max_attempts + 1):
            logger.info(
                "scrape attempt started",
                extra={"url": url, "attempt": attempt, "max_attempts": cfg.max_attempts},
            )
            try:
                html = await self._fetcher.fetch(url, attempt)
                page = self._extract(html, url)

                dynamic = False
                if not escalated and self._should_escalate(page):
                    escalated = True
                    rendered = await self._render(url)
                    if rendered is not None:
                        page = rendered
                        dynamic = True

                self._validate(page, dynamic)
                result = self._success(url, page, attempt, dynamic)
                logger.info(
                    "scrape succeeded",
                    extra={
                        "url": url,
                        "attempt": attempt,
                        "word_count": result.word_count,
                        "sections": len(result.structured_content),
                        "dynamic_rendered": dynamic,
                    },
                )
                return result
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.warning(
                    "scrape attempt failed",
                    extra={
                        "url": url,
                        "attempt": attempt,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    },
                )

            if attempt < cfg.max_attempts:
                delay = cfg.retry_delay * attempt
                logger.debug("retry backoff", extra={"url": url, "delay_seconds": delay})
                await asyncio.sleep(delay)

        logger.warning("scrape exhausted", extra={"url": url, "attempts": attempt})
        return ScrapeResult.failure(
            url,
            str(last_error) if last_error else "Unknown error",
            attempts=attempt,
        )

    def _extract(self, html: str, url: str) -> ExtractedPage:
        return extract_page(html, url, max_content_length=self._config.max_content_length)

    def _should_escalate(self, page: ExtractedPage) -> bool:
        if self._renderer is None:
            return False
        escalate = needs_dynamic_render(
            page,
            text_threshold=self._config.escalation_text_threshold,
            body_threshold=self._config.escalation_body_threshold,
        )
        if escalate:
            logger.info(
                "escalating to dynamic render",
                extra={
                    "url": page.source_url,
                    "content_length": page.content_length,
                    "body_text_length": page.body_text_length,
                    "sections": len(page.sections),
                    "spa_markers": page.has_spa_markers,
                },
            )
        return escalate

    async def _render(self, url: str) -> ExtractedPage | None:
        html = await self._renderer.render(url)
        if not html:
            logger.info("dynamic render unavailable, keeping static result", extra={"url": url})
            return None
        return self._extract(html, url)

    def _validate(self, page: ExtractedPage, dynamic: bool) -> None:
        threshold = (
            self._config.min_dynamic_content_length if dynamic else self._config.min_content_length
        )
        if page.content_length < threshold:
            raise InsufficientContentError(page.content_length, threshold)

    def _success(self, url: str, page: ExtractedPage, attempt: int, dynamic: bool) -> ScrapeResult:
        word_count = count_words(page.content)
        return ScrapeResult(
            url=url,
            success=True,
            scraping_attempts=attempt,
            title=page.title,
            content=page.content,
            structured_content=page.sections,
            metadata=replace(page.metadata, reading_time=reading_time(word_count)),
            word_count=word_count,
            dynamic_rendered=dynamic,
        )
