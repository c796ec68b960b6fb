"""Service layer — runs scrapes and shapes their responses for the API routes."""

from __future__ import annotations

import logging
from typing import Any

from src.api.schemas import PREVIEW_LENGTH, BatchSummary, PreviewStats, ScrapeStats
from src.export.pdf import batch_filename, render_batch_pdf, render_result_pdf, suggest_filename
from src.scraper import BatchResult, ScrapeResult, Scraper, scrape_many
from src.scraper.models import utc_timestamp
from src.scraper.text import generate_plain_text

logger = logging.getLogger(__name__)


async def scrape_single(scraper: Scraper, url: str) -> ScrapeResult:
    logger.info("single scrape requested", extra={"url": url})
    return await scraper.scrape_url(url)


async def scrape_batch(scraper: Scraper, urls: list[str], concurrent: int) -> BatchResult:
    logger.info("batch scrape requested", extra={"url_count": len(urls), "concurrent": concurrent})
    return await scrape_many(urls, scraper, concurrent)


def failure_detail(result: ScrapeResult, message: str = "Scraping failed") -> dict[str, Any]:
    """Body of the 422 response for a URL that could not be scraped."""
    return {
        "success": False,
        "error": message,
        "details": result.error,
        "url": result.url,
        "attempts": result.scraping_attempts,
    }


def scrape_payload(result: ScrapeResult) -> dict[str, Any]:
    stats = ScrapeStats(
        contentLength=len(result.content),
        wordCount=result.word_count,
        sectionCount=len(result.structured_content),
        extractedAt=result.timestamp,
    )
    return {"success": True, "data": result.to_dict(), "stats": stats.model_dump()}


def batch_payload(batch: BatchResult) -> dict[str, Any]:
    return {
        "success": True,
        "summary": BatchSummary(**batch.summary()).model_dump(),
        "results": [r.to_dict() for r in batch.results],
        "processedAt": utc_timestamp(),
    }


def preview_payload(result: ScrapeResult) -> dict[str, Any]:
    content = result.content
    preview = content[:PREVIEW_LENGTH] + ("..." if len(content) > PREVIEW_LENGTH else "")
    stats = PreviewStats(
        fullContentLength=len(content),
        wordCount=result.word_count,
        sectionCount=len(result.structured_content),
        dynamicRendered=result.dynamic_rendered,
    )
    return {
        "success": True,
        "url": result.url,
        "title": result.title,
        "preview": preview,
        "metadata": result.metadata.to_dict(),
        "stats": stats.model_dump(),
        "extractedAt": result.timestamp,
    }


def plain_text(result: ScrapeResult) -> str:
    return generate_plain_text(result.structured_content) or result.content


def result_pdf(result: ScrapeResult) -> tuple[bytes, str]:
    """Return ``(pdf_bytes, filename)`` for a single result."""
    return render_result_pdf(result), suggest_filename(result.title)


def batch_pdf(batch: BatchResult) -> tuple[bytes, str]:
    return render_batch_pdf(batch), batch_filename()
