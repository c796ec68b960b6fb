"""Per-URL failure taxonomy for the scrape pipeline."""

from __future__ import annotations


class ScrapeError(Exception):
    """Base class for failures that are captured into a result envelope."""


class FetchError(ScrapeError):
    """Transport failure: timeout, connection error, disallowed status."""

    def __init__(self, url: str, cause: str) -> None:
        super().__init__(f"Failed to fetch {url}: {cause}")
        self.url = url
        self.cause = cause


class InsufficientContentError(ScrapeError):
    """Extraction produced less content than the validation threshold."""

    def __init__(self, length: int, threshold: int) -> None:
        super().__init__(
            "Insufficient content extracted - content too short or empty "
            f"({length} < {threshold} characters)"
        )
        self.length = length
        self.threshold = threshold


class RenderError(ScrapeError):
    """Headless rendering failed. Never leaves the renderer."""
