"""HTTP fetch ladder — escalating request profiles across retry attempts.

Each attempt picks a header profile by ``min(attempt - 1, 2)``:

1. baseline browser-like headers,
2. baseline plus a Google referer and ``Cache-Control: no-cache``,
3. baseline with a mobile user agent.

The desktop user agent is drawn at random on every call.
"""

from __future__ import annotations

import logging
import random
from typing import Protocol

import httpx

from .errors import FetchError

logger = logging.getLogger(__name__)

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_2) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36",
)

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)

GOOGLE_REFERER = "https://www.google.com/"

_BASE_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
}

STRATEGY_COUNT = 3


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def strategy_index(attempt: int) -> int:
    """Map a 1-based attempt number onto a profile index in ``[0, 2]``."""
    return max(0, min(attempt - 1, STRATEGY_COUNT - 1))


def build_headers(attempt: int) -> dict[str, str]:
    """Return the request headers for the given attempt's profile."""
    headers = {"User-Agent": random_user_agent(), **_BASE_HEADERS}
    index = strategy_index(attempt)
    if index == 1:
        headers["Referer"] = GOOGLE_REFERER
        headers["Cache-Control"] = "no-cache"
    elif index == 2:
        headers["User-Agent"] = MOBILE_USER_AGENT
    return headers


class PageFetcher(Protocol):
    """Protocol for raw HTML fetchers."""

    async def fetch(self, url: str, attempt: int) -> str: ...


class HttpFetcher:
    """Fetches raw HTML with httpx using the attempt's header profile."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        max_redirects: int = 5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._max_redirects = max_redirects
        self._transport = transport

    async def fetch(self, url: str, attempt: int) -> str:
        """GET *url* and return the decoded body, or raise ``FetchError``."""
        headers = build_headers(attempt)
        logger.debug(
            "fetching page",
            extra={"url": url, "attempt": attempt, "strategy": strategy_index(attempt) + 1},
        )
        try:
            async with httpx.AsyncClient(
                headers=headers,
                timeout=self._timeout,
                follow_redirects=True,
                max_redirects=self._max_redirects,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException as exc:
            raise FetchError(url, f"timeout after {self._timeout:g}s") from exc
        except httpx.TooManyRedirects as exc:
            raise FetchError(url, f"more than {self._max_redirects} redirects") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

        if not 200 <= response.status_code < 400:
            raise FetchError(url, f"HTTP {response.status_code}")

        logger.debug(
            "page fetched",
            extra={
                "url": url,
                "final_url": str(response.url),
                "status_code": response.status_code,
                "length": len(response.content),
            },
        )
        return response.text
