"""Data models for the scrape pipeline.

Everything here is immutable once built and serializes to the camelCase
JSON envelope returned by the API via ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Union


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Heading:
    type: ClassVar[str] = "heading"

    level: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "level": self.level, "text": self.text}


@dataclass(frozen=True)
class Paragraph:
    type: ClassVar[str] = "paragraph"

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class BulletList:
    type: ClassVar[str] = "bullet_list"

    items: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "items": list(self.items)}


@dataclass(frozen=True)
class NumberedList:
    type: ClassVar[str] = "numbered_list"

    items: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "items": list(self.items)}


@dataclass(frozen=True)
class Quote:
    type: ClassVar[str] = "quote"

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class Code:
    type: ClassVar[str] = "code"

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


Section = Union[Heading, Paragraph, BulletList, NumberedList, Quote, Code]


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Metadata:
    """Page metadata; every field falls back to an empty string."""

    description: str = ""
    keywords: str = ""
    author: str = ""
    publish_date: str = ""
    language: str = "en"
    site_name: str = ""
    image: str = ""
    reading_time: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "keywords": self.keywords,
            "author": self.author,
            "publishDate": self.publish_date,
            "language": self.language,
            "siteName": self.site_name,
            "image": self.image,
            "readingTime": self.reading_time,
        }


# ---------------------------------------------------------------------------
# Result envelopes
# ---------------------------------------------------------------------------


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ScrapeResult:
    """Outcome of scraping a single URL.

    A successful result carries the extracted page; a failed one carries
    only ``error``. ``scraping_attempts`` is set in both cases.
    """

    url: str
    success: bool
    scraping_attempts: int
    timestamp: str = field(default_factory=utc_timestamp)
    title: str = ""
    content: str = ""
    structured_content: tuple[Section, ...] = ()
    metadata: Metadata = field(default_factory=Metadata)
    word_count: int = 0
    dynamic_rendered: bool = False
    error: str | None = None

    @classmethod
    def failure(cls, url: str, error: str, attempts: int) -> ScrapeResult:
        return cls(url=url, success=False, scraping_attempts=attempts, error=error)

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {
                "url": self.url,
                "error": self.error or "Unknown error",
                "success": False,
                "timestamp": self.timestamp,
                "scrapingAttempts": self.scraping_attempts,
            }
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "structuredContent": [s.to_dict() for s in self.structured_content],
            "metadata": self.metadata.to_dict(),
            "timestamp": self.timestamp,
            "success": True,
            "wordCount": self.word_count,
            "scrapingAttempts": self.scraping_attempts,
            "dynamicRendered": self.dynamic_rendered,
        }


@dataclass(frozen=True)
class BatchResult:
    """Results index-aligned with the input URLs, plus aggregate counters."""

    results: tuple[ScrapeResult, ...]

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.successful

    @property
    def total_words(self) -> int:
        return sum(r.word_count for r in self.results if r.success)

    @property
    def total_content_length(self) -> int:
        return sum(len(r.content) for r in self.results if r.success)

    def summary(self) -> dict[str, int]:
        return {
            "total": len(self.results),
            "successful": self.successful,
            "failed": self.failed,
            "totalWords": self.total_words,
            "totalContentLength": self.total_content_length,
        }
