"""Canned pages and stub collaborators shared by the test modules."""

from __future__ import annotations

from src.scraper.errors import FetchError

LOREM = (
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod "
    "tempor incididunt ut labore et dolore magna aliqua. Ut enim ad minim veniam, "
    "quis nostrud exercitation ullamco laboris nisi ut aliquip ex ea commodo consequat."
)

ARTICLE_HTML = f"""
<!DOCTYPE html>
<html lang="de">
<head>
  <title>Fallback title | Example</title>
  <meta name="description" content="A description of the article.">
  <meta name="keywords" content="scraping, python">
  <meta property="article:published_time" content="2024-03-01T10:00:00Z">
  <meta property="og:site_name" content="Example News">
  <meta property="og:image" content="/images/cover.png">
</head>
<body>
  <header class="site-header"><div class="logo">Site brand</div><nav><a href="/">Home</a></nav></header>
  <div class="sidebar"><p>Sidebar text that should never show up in the article.</p></div>
  <article>
    <h1>Understanding Async Scrapers</h1>
    <p class="byline"><span class="author">Jane Doe</span></p>
    <p>{LOREM}</p>
    <h2>Background</h2>
    <p>{LOREM}</p>
    <ul><li>First point</li><li>  </li><li>Second point</li></ul>
    <ol><li>Step one</li><li>Step two</li><li>Step three</li></ol>
    <blockquote>Simple things should be simple.</blockquote>
    <pre>async def main():
    await scrape()</pre>
    <div class="share-buttons"><p>Share this on social media!</p></div>
  </article>
  <footer><p>Copyright Example News</p></footer>
  <script>window.__state = {{"big": "payload"}};</script>
</body>
</html>
"""

SPA_SHELL_HTML = """
<html><head><title>App</title></head>
<body><div id="root"></div><script src="/bundle.js"></script></body></html>
"""


def simple_page(paragraph_length: int = 250) -> str:
    paragraph = (LOREM * 3)[:paragraph_length].strip()
    return f"<html><body><h1>T</h1><p>{paragraph}</p></body></html>"


class StubFetcher:
    """Returns canned HTML (or raises) per attempt and records every call."""

    def __init__(self, *responses: str | Exception) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, int]] = []

    async def fetch(self, url: str, attempt: int) -> str:
        self.calls.append((url, attempt))
        response = self._responses[min(attempt, len(self._responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


class FailingFetcher:
    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    async def fetch(self, url: str, attempt: int) -> str:
        self.calls.append((url, attempt))
        raise FetchError(url, "connection refused")


class StubRenderer:
    def __init__(self, html: str | None) -> None:
        self._html = html
        self.calls: list[str] = []

    async def render(self, url: str) -> str | None:
        self.calls.append(url)
        return self._html

