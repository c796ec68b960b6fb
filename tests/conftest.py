"""Fixtures — canned article page and a fast scrape config."""

import pytest

from src.scraper.orchestrator import ScrapeConfig
from tests.helpers import ARTICLE_HTML


@pytest.fixture
def fast_config() -> ScrapeConfig:
    """Default thresholds, no sleeping between attempts or batches."""
    return ScrapeConfig(retry_delay=0.0, batch_delay=0.0)


@pytest.fixture
def article_html() -> str:
    return ARTICLE_HTML
