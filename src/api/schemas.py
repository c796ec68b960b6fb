"""Request/response Pydantic models."""

from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

MAX_BATCH_URLS = 20
PREVIEW_LENGTH = 800


def _check_url(url: str) -> str:
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Invalid URL format: an absolute http(s) URL is required")
    return url


class ScrapeRequest(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _check_url(value)


class BatchScrapeRequest(BaseModel):
    urls: list[str] = Field(min_length=1, max_length=MAX_BATCH_URLS)
    concurrent: int = Field(default=2, ge=1, le=5)

    @field_validator("urls")
    @classmethod
    def _validate_urls(cls, value: list[str]) -> list[str]:
        invalid = []
        for index, url in enumerate(value):
            try:
                _check_url(url)
            except ValueError:
                invalid.append(f"{index}: {url}")
        if invalid:
            raise ValueError(f"Invalid URLs found: {', '.join(invalid)}")
        return [url.strip() for url in value]


ScrapeFormat = Literal["json", "pdf", "text"]
BatchFormat = Literal["json", "pdf"]


class ScrapeStats(BaseModel):
    contentLength: int
    wordCount: int
    sectionCount: int
    extractedAt: str


class BatchSummary(BaseModel):
    total: int
    successful: int
    failed: int
    totalWords: int
    totalContentLength: int


class PreviewStats(BaseModel):
    fullContentLength: int
    wordCount: int
    sectionCount: int
    dynamicRendered: bool
