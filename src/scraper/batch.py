"""Batch controller — fixed-width concurrent batches with inter-batch pacing."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from .models import BatchResult, ScrapeResult
from .orchestrator import Scraper

logger = logging.getLogger(__name__)

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 5


def clamp_concurrency(concurrency: int) -> int:
    return max(MIN_CONCURRENCY, min(int(concurrency), MAX_CONCURRENCY))


def partition(urls: Sequence[str], size: int) -> list[list[str]]:
    """Split *urls* into contiguous chunks of *size*; the last may be shorter."""
    return [list(urls[i : i + size]) for i in range(0, len(urls), size)]


async def scrape_many(
    urls: Sequence[str],
    scraper: Scraper,
    concurrency: int = 2,
    *,
    batch_delay: float | None = None,
) -> BatchResult:
    """Scrape *urls* in batches of *concurrency* and return index-aligned results.

    Every member of a batch settles before the next batch starts. A
    failure in one URL never affects its siblings.
    """
    width = clamp_concurrency(concurrency)
    delay = scraper.config.batch_delay if batch_delay is None else batch_delay
    batches = partition(urls, width)
    results: list[ScrapeResult] = []

    logger.info(
        "batch scrape started",
        extra={"url_count": len(urls), "batches": len(batches), "concurrency": width},
    )

    for index, batch in enumerate(batches):
        logger.debug(
            "processing batch",
            extra={"batch": index + 1, "batches": len(batches), "size": len(batch)},
        )
        settled = await asyncio.gather(
            *(scraper.scrape_url(url) for url in batch),
            return_exceptions=True,
        )
        for url, outcome in zip(batch, settled):
            if isinstance(outcome, ScrapeResult):
                results.append(outcome)
            elif isinstance(outcome, Exception):
                logger.error(
                    "scrape raised unexpectedly",
                    extra={"url": url},
                    exc_info=outcome,
                )
                results.append(ScrapeResult.failure(url, str(outcome) or type(outcome).__name__, attempts=0))
            else:
                raise outcome

        if index < len(batches) - 1 and delay > 0:
            logger.debug("pacing before next batch", extra={"delay_seconds": delay})
            await asyncio.sleep(delay)

    batch_result = BatchResult(results=tuple(results))
    logger.info("batch scrape completed", extra=batch_result.summary())
    return batch_result
