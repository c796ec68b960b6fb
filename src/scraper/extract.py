"""Boilerplate removal, content segmentation and metadata extraction.

All heuristics work on a BeautifulSoup tree and are deterministic for a
given HTML string: no clock, no randomness.

Extraction order:

1. copy the ``<body>`` and drop non-content subtrees (denylisted tags,
   landmark roles, ad/sidebar/menu/... class and id patterns);
2. pick the extraction root from an ordered list of main-content selectors,
   falling back to the cleaned body;
3. walk headings, paragraphs, lists, quotes and ``pre`` blocks in document
   order and fold them into :mod:`~src.scraper.models` sections.
"""

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field, replace
from functools import reduce
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from .models import (
    BulletList,
    Code,
    Heading,
    Metadata,
    NumberedList,
    Paragraph,
    Quote,
    Section,
)

logger = logging.getLogger(__name__)

NO_TITLE = "No title found"
NO_CONTENT = "No content found"
DEFAULT_LANGUAGE = "en"

PARAGRAPH_LIMIT = 1000
MAX_TITLE_LENGTH = 300
MAX_CONTENT_LENGTH = 50_000
MIN_CONTENT_BLOCK = 200
MIN_PARAGRAPH_LENGTH = 50

_BOILERPLATE_TAGS = frozenset({
    "script", "style", "noscript", "template", "svg",
    "nav", "footer", "header", "aside", "iframe", "form",
})
_BOILERPLATE_ROLES = frozenset({
    "navigation", "banner", "complementary", "contentinfo",
    "dialog", "alertdialog", "menu", "menubar", "search", "toolbar",
})
# Short ad tokens need word boundaries ("ad" is inside "header", "load", ...).
_BOILERPLATE_RE = re.compile(
    r"\b(?:ad|ads|advert\w*|sponsor\w*)\b"
    r"|sidebar|menu|social|share|comment|popup|modal|cookie|consent"
    r"|newsletter|related|recommended|promo",
    re.IGNORECASE,
)
_LANDMARK_TAGS = frozenset({"article", "main"})

CONTENT_SELECTORS: tuple[str, ...] = (
    "main article",
    "article",
    "main",
    ".post-content",
    ".entry-content",
    ".article-content",
    ".article-body",
    ".content-body",
    ".main-content",
    "#content",
    ".content",
    '[role="main"]',
)

SPA_MARKERS = '#root, #__next, div#app, div#__nuxt, [data-reactroot]'

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_BLOCK_TAGS = [*_HEADING_TAGS, "p", "ul", "ol", "blockquote", "pre"]
_LIST_TAGS = ["ul", "ol"]
_CONTAINER_TAGS = frozenset({"ul", "ol", "blockquote", "pre"})
_NON_TEXT_TAGS = frozenset({"script", "style", "noscript", "template"})
_MARKUP_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Strip control characters and collapse whitespace runs."""
    return _WHITESPACE_RE.sub(" ", _CONTROL_RE.sub("", text)).strip()


# ---------------------------------------------------------------------------
# Locator / extractor priority lists
# ---------------------------------------------------------------------------

Extractor = Callable[[Tag], str]


def _attr(name: str) -> Extractor:
    def extract(el: Tag) -> str:
        value = el.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return value or ""

    return extract


def _text(el: Tag) -> str:
    return el.get_text(" ")


_content = _attr("content")

_TITLE_SOURCES: tuple[tuple[str, Extractor], ...] = (
    ("h1", _text),
    ("title", _text),
    ('meta[property="og:title"]', _content),
    ('meta[name="twitter:title"]', _content),
    (".post-title", _text),
    (".entry-title", _text),
    (".article-title", _text),
    (".page-title", _text),
)

_METADATA_SOURCES: dict[str, tuple[tuple[str, Extractor], ...]] = {
    "description": (
        ('meta[name="description"]', _content),
        ('meta[property="og:description"]', _content),
        ('meta[name="twitter:description"]', _content),
    ),
    "keywords": (
        ('meta[name="keywords"]', _content),
    ),
    "author": (
        ('meta[name="author"]', _content),
        ('meta[property="article:author"]', _content),
        (".author", _text),
        ('[rel="author"]', _text),
    ),
    "publish_date": (
        ('meta[property="article:published_time"]', _content),
        ('meta[name="date"]', _content),
        ("time[datetime]", _attr("datetime")),
        ("time", _text),
    ),
    "language": (
        ("html[lang]", _attr("lang")),
        ('meta[http-equiv="content-language" i]', _content),
    ),
    "site_name": (
        ('meta[property="og:site_name"]', _content),
    ),
    "image": (
        ('meta[property="og:image"]', _content),
        ('meta[name="twitter:image"]', _content),
    ),
}


def first_match(soup: BeautifulSoup | Tag, sources: Iterable[tuple[str, Extractor]]) -> str:
    """Evaluate ``(selector, extractor)`` pairs in order; first non-empty wins."""
    for selector, extract in sources:
        el = soup.select_one(selector)
        if el is None:
            continue
        value = clean_text(extract(el))
        if value:
            return value
    return ""


# ---------------------------------------------------------------------------
# Paragraph fold
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _FoldState:
    sections: tuple[Section, ...] = ()
    paragraph: str = ""

    def flush(self) -> _FoldState:
        if not self.paragraph:
            return self
        return _FoldState(self.sections + (Paragraph(self.paragraph),), "")


def _fold(state: _FoldState, block: Section) -> _FoldState:
    if isinstance(block, Paragraph):
        if not state.paragraph:
            return replace(state, paragraph=block.text)
        joined = f"{state.paragraph}\n\n{block.text}"
        if len(joined) > PARAGRAPH_LIMIT:
            return replace(state.flush(), paragraph=block.text)
        return replace(state, paragraph=joined)
    flushed = state.flush()
    return replace(flushed, sections=flushed.sections + (block,))


def fold_sections(blocks: Iterable[Section]) -> tuple[Section, ...]:
    """Merge consecutive paragraphs up to ``PARAGRAPH_LIMIT`` characters.

    Any non-paragraph block closes the open paragraph, so source order is
    kept exactly.
    """
    return reduce(_fold, blocks, _FoldState()).flush().sections


# ---------------------------------------------------------------------------
# Element helpers
# ---------------------------------------------------------------------------


def _is_boilerplate(tag: Tag) -> bool:
    if tag.name in _BOILERPLATE_TAGS:
        return True
    role = (tag.get("role") or "").strip().lower()
    if role in _BOILERPLATE_ROLES:
        return True
    if tag.name in _LANDMARK_TAGS or role == "main":
        return False
    marker = " ".join([*(tag.get("class") or []), tag.get("id") or "", role]).strip()
    return bool(marker) and _BOILERPLATE_RE.search(marker) is not None


def _top_level(elements: list[Tag]) -> list[Tag]:
    """Drop elements nested inside another element of the same list."""
    ids = {id(el) for el in elements}
    return [el for el in elements if not any(id(p) in ids for p in el.parents)]


def _inside_container(el: Tag, root: Tag) -> bool:
    for parent in el.parents:
        if parent is root:
            return False
        if parent.name in _CONTAINER_TAGS:
            return True
    return False


def _owning_list(el: Tag) -> Tag | None:
    return el.find_parent(_LIST_TAGS)


def _list_items(list_tag: Tag) -> list[str]:
    """Item texts of a list; nested lists are flattened after their parent item."""
    items: list[str] = []
    for li in list_tag.find_all("li"):
        if _owning_list(li) is not list_tag:
            continue
        own = " ".join(
            s for s in li.find_all(string=True)
            if not isinstance(s, _MARKUP_STRINGS) and _owning_list(s) is list_tag
        )
        text = clean_text(own)
        if text:
            items.append(text)
        for nested in li.find_all(_LIST_TAGS):
            if _owning_list(nested) is list_tag:
                items.extend(_list_items(nested))
    return items


def _to_section(el: Tag) -> Section | None:
    name = el.name
    if name in _HEADING_TAGS:
        text = clean_text(el.get_text())
        return Heading(int(name[1]), text) if text else None
    if name == "p":
        text = clean_text(el.get_text())
        return Paragraph(text) if text else None
    if name in _LIST_TAGS:
        items = tuple(_list_items(el))
        if not items:
            return None
        return BulletList(items) if name == "ul" else NumberedList(items)
    if name == "blockquote":
        text = clean_text(el.get_text(" "))
        return Quote(text) if text else None
    if name == "pre":
        text = _CONTROL_RE.sub("", el.get_text()).strip("\n")
        return Code(text) if text.strip() else None
    return None


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtractedPage:
    """Everything the orchestrator needs from one HTML document."""

    title: str
    content: str
    sections: tuple[Section, ...]
    metadata: Metadata
    body_text_length: int
    has_spa_markers: bool = False
    source_url: str = field(default="", compare=False)

    @property
    def content_length(self) -> int:
        """Length of the plain-text content; the sentinel counts as empty."""
        return 0 if self.content == NO_CONTENT else len(self.content)


class ContentExtractor:
    """Extracts title, content, sections and metadata from one HTML page."""

    def __init__(self, html: str, url: str = "", *, max_content_length: int = MAX_CONTENT_LENGTH) -> None:
        self._soup = BeautifulSoup(html or "", "html.parser")
        self._url = url
        self._max_content_length = max_content_length
        self._cleaned: Tag | None = None

    @property
    def cleaned_body(self) -> Tag:
        """A boilerplate-free copy of the body; the parsed tree is untouched."""
        if self._cleaned is None:
            body = self._soup.body or self._soup
            clone = copy.copy(body)
            doomed = [tag for tag in clone.find_all(True) if _is_boilerplate(tag)]
            for tag in doomed:
                if not tag.decomposed:
                    tag.decompose()
            for br in clone.find_all("br"):
                br.replace_with("\n")
            self._cleaned = clone
        return self._cleaned

    def extract_title(self) -> str:
        for selector, extract in _TITLE_SOURCES:
            el = self._soup.select_one(selector)
            if el is None:
                continue
            title = clean_text(extract(el))
            if 0 < len(title) < MAX_TITLE_LENGTH:
                return title
        return NO_TITLE

    def content_roots(self) -> list[Tag]:
        """Top-level elements of the first matching main-content selector."""
        body = self.cleaned_body
        for selector in CONTENT_SELECTORS:
            matches = [el for el in body.select(selector) if el.get_text(strip=True)]
            if matches:
                return _top_level(matches)
        return [body]

    def iter_blocks(self) -> Iterator[Section]:
        """Unfolded sections of every content root, in document order."""
        for root in self.content_roots():
            for el in root.find_all(_BLOCK_TAGS):
                if _inside_container(el, root):
                    continue
                section = _to_section(el)
                if section is not None:
                    yield section

    def extract_sections(self) -> tuple[Section, ...]:
        return fold_sections(self.iter_blocks())

    def extract_content(self) -> str:
        """Plain-text article body, or ``NO_CONTENT``.

        Tries the main-content selectors, then long ``<p>`` elements, then
        the whole cleaned body; each candidate must exceed
        ``MIN_CONTENT_BLOCK`` characters.
        """
        body = self.cleaned_body

        for selector in CONTENT_SELECTORS:
            elements = body.select(selector)
            if not elements:
                continue
            text = clean_text(" ".join(el.get_text(" ") for el in _top_level(elements)))
            if len(text) > MIN_CONTENT_BLOCK:
                return self._cap(text)

        paragraphs = [clean_text(p.get_text()) for p in body.find_all("p")]
        combined = "\n\n".join(p for p in paragraphs if len(p) > MIN_PARAGRAPH_LENGTH)
        if len(combined) > MIN_CONTENT_BLOCK:
            return self._cap(clean_text(combined))

        text = clean_text(body.get_text(" "))
        return self._cap(text) if len(text) > MIN_CONTENT_BLOCK else NO_CONTENT

    def sparse_content(self) -> str:
        """Text of the content roots with no minimum length, for pages too
        short to pass :meth:`extract_content`. Empty when there is none."""
        text = clean_text(" ".join(root.get_text(" ") for root in self.content_roots()))
        return self._cap(text)

    def extract_metadata(self) -> Metadata:
        values = {name: first_match(self._soup, sources) for name, sources in _METADATA_SOURCES.items()}
        language = values.pop("language") or DEFAULT_LANGUAGE
        if values["image"] and self._url:
            values["image"] = urljoin(self._url, values["image"])
        return Metadata(language=language, **values)

    def body_text_length(self) -> int:
        """Visible text length of the raw body, before boilerplate removal."""
        body = self._soup.body or self._soup
        strings = (
            s for s in body.find_all(string=True)
            if not isinstance(s, _MARKUP_STRINGS) and s.parent is not None and s.parent.name not in _NON_TEXT_TAGS
        )
        return len(clean_text(" ".join(strings)))

    def has_spa_markers(self) -> bool:
        body = self._soup.body or self._soup
        return body.select_one(SPA_MARKERS) is not None

    def extract(self) -> ExtractedPage:
        content = self.extract_content()
        if content == NO_CONTENT:
            content = self.sparse_content() or NO_CONTENT
        page = ExtractedPage(
            title=self.extract_title(),
            content=content,
            sections=self.extract_sections(),
            metadata=self.extract_metadata(),
            body_text_length=self.body_text_length(),
            has_spa_markers=self.has_spa_markers(),
            source_url=self._url,
        )
        logger.debug(
            "page extracted",
            extra={
                "url": self._url,
                "title": page.title[:80],
                "content_length": page.content_length,
                "sections": len(page.sections),
                "body_text_length": page.body_text_length,
                "spa_markers": page.has_spa_markers,
            },
        )
        return page

    def _cap(self, text: str) -> str:
        return text[: self._max_content_length]


def extract_page(html: str, url: str = "", *, max_content_length: int = MAX_CONTENT_LENGTH) -> ExtractedPage:
    """Run the full extractor over *html*."""
    return ContentExtractor(html, url, max_content_length=max_content_length).extract()
