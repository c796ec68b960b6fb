"""Web page scraping pipeline: fetch ladder, extraction, escalation, batching."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .batch import scrape_many
from .errors import FetchError, InsufficientContentError, RenderError, ScrapeError
from .extract import ContentExtractor, ExtractedPage, extract_page
from .fetch import HttpFetcher, PageFetcher
from .models import BatchResult, Metadata, ScrapeResult, Section
from .orchestrator import ScrapeConfig, Scraper
from .render import DynamicRenderer, PlaywrightRenderer, create_renderer, needs_dynamic_render
from .text import generate_plain_text, segment_plain_text

if TYPE_CHECKING:
    from src.config import Settings

__all__ = [
    "BatchResult",
    "ContentExtractor",
    "DynamicRenderer",
    "ExtractedPage",
    "FetchError",
    "HttpFetcher",
    "InsufficientContentError",
    "Metadata",
    "PageFetcher",
    "PlaywrightRenderer",
    "RenderError",
    "ScrapeConfig",
    "ScrapeError",
    "ScrapeResult",
    "Scraper",
    "Section",
    "build_scraper",
    "create_renderer",
    "extract_page",
    "generate_plain_text",
    "needs_dynamic_render",
    "scrape_many",
    "segment_plain_text",
]

logger = logging.getLogger(__name__)


async def build_scraper(settings: Settings) -> Scraper:
    """Build the default scraper, with a headless renderer when one starts."""
    config = ScrapeConfig.from_settings(settings)
    renderer = await create_renderer(settings)
    logger.info(
        "scraper ready",
        extra={
            "dynamic_rendering": renderer is not None,
            "max_attempts": config.max_attempts,
        },
    )
    return Scraper(config, renderer=renderer)
