"""PDF export of scrape results (reportlab).

Pages are laid out with platypus flowables; page footers carry
``Page i of N`` and are stamped by :class:`_FooterCanvas` only once the
whole document has been laid out and the page count is known.
"""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Iterable
from datetime import datetime, timezone
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    Flowable,
    ListFlowable,
    ListItem,
    PageBreak,
    Paragraph,
    Preformatted,
    SimpleDocTemplate,
    Spacer,
)

from src.scraper.models import (
    BatchResult,
    BulletList,
    Code,
    Heading,
    NumberedList,
    Quote,
    ScrapeResult,
    Section,
)
from src.scraper.text import segment_plain_text

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 50
DEFAULT_FILENAME = "scraped-content"

_MARGINS = {"topMargin": 50, "bottomMargin": 60, "leftMargin": 72, "rightMargin": 72}
_HEADING_SIZES = {1: 20, 2: 17, 3: 15, 4: 13, 5: 12, 6: 11}


def suggest_filename(title: str | None) -> str:
    """Filename derived from a page title: ``my_article_title.pdf``."""
    name = re.sub(r"[^a-z0-9\s]", "", title or "", flags=re.IGNORECASE)
    name = re.sub(r"\s+", "_", name.strip()).lower()[:MAX_FILENAME_LENGTH]
    return f"{name or DEFAULT_FILENAME}.pdf"


def batch_filename(when: datetime | None = None) -> str:
    when = when or datetime.now(timezone.utc)
    return f"batch_scrape_{when:%Y%m%d_%H%M%S}.pdf"


def footer_text(page: int, total: int, generated_on: str) -> str:
    return f"Generated on {generated_on} • Page {page} of {total}"


class _FooterCanvas(canvas.Canvas):
    """Canvas that buffers pages and stamps footers once the total is known."""

    generated_on = ""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._saved_pages: list[dict] = []

    def showPage(self) -> None:  # noqa: N802 - reportlab API
        self._saved_pages.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._saved_pages)
        for state in self._saved_pages:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        width, _ = self._pagesize
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.grey)
        self.drawCentredString(
            width / 2,
            _MARGINS["bottomMargin"] - 25,
            footer_text(self._pageNumber, total, self.generated_on),
        )


def _footer_canvas(generated_on: str) -> type[_FooterCanvas]:
    return type("FooterCanvas", (_FooterCanvas,), {"generated_on": generated_on})


# ---------------------------------------------------------------------------
# Styles and flowables
# ---------------------------------------------------------------------------


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    styles = {
        "title": ParagraphStyle(
            "DocTitle", parent=base["Title"], fontName="Helvetica-Bold", fontSize=24, leading=28,
            alignment=TA_CENTER, spaceAfter=12,
        ),
        "meta": ParagraphStyle(
            "DocMeta", parent=base["Normal"], fontName="Helvetica", fontSize=11, leading=14,
            alignment=TA_CENTER, textColor=colors.HexColor("#444444"),
        ),
        "body": ParagraphStyle(
            "Body", parent=base["Normal"], fontName="Helvetica", fontSize=11, leading=15,
            firstLineIndent=18, spaceAfter=8,
        ),
        "item": ParagraphStyle(
            "ListItem", parent=base["Normal"], fontName="Helvetica", fontSize=11, leading=14,
        ),
        "quote": ParagraphStyle(
            "Quote", parent=base["Normal"], fontName="Helvetica-Oblique", fontSize=11, leading=15,
            alignment=TA_CENTER, leftIndent=36, rightIndent=36, spaceBefore=6, spaceAfter=10,
            textColor=colors.HexColor("#333333"),
        ),
        "code": ParagraphStyle(
            "Code", parent=base["Code"], fontName="Courier", fontSize=9, leading=11,
            leftIndent=12, backColor=colors.HexColor("#f4f4f4"), spaceBefore=4, spaceAfter=10,
        ),
        "url": ParagraphStyle(
            "Url", parent=base["Normal"], fontName="Helvetica", fontSize=9, leading=11,
            textColor=colors.HexColor("#1a55a6"),
        ),
    }
    for level, size in _HEADING_SIZES.items():
        styles[f"h{level}"] = ParagraphStyle(
            f"Heading{level}", parent=base["Heading1"], fontName="Helvetica-Bold",
            fontSize=size, leading=size + 4, spaceBefore=10, spaceAfter=6,
        )
    return styles


def _para(text: str, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(text).replace("\n", "<br/>"), style)


def _list_flowable(items: Iterable[str], style: ParagraphStyle, numbered: bool) -> ListFlowable:
    return ListFlowable(
        [ListItem(_para(item, style)) for item in items],
        bulletType="1" if numbered else "bullet",
        leftIndent=24,
        spaceAfter=8,
    )


def section_flowables(sections: Iterable[Section], styles: dict[str, ParagraphStyle]) -> list[Flowable]:
    """Map sections onto flowables, mirroring the plain-text layout rules."""
    story: list[Flowable] = []
    for section in sections:
        if isinstance(section, Heading):
            story.append(_para(section.text, styles[f"h{min(max(section.level, 1), 6)}"]))
        elif isinstance(section, BulletList):
            story.append(_list_flowable(section.items, styles["item"], numbered=False))
        elif isinstance(section, NumberedList):
            story.append(_list_flowable(section.items, styles["item"], numbered=True))
        elif isinstance(section, Quote):
            story.append(_para(section.text, styles["quote"]))
        elif isinstance(section, Code):
            story.append(Preformatted(section.text, styles["code"]))
        else:
            story.append(_para(section.text, styles["body"]))
    return story


def _format_date(value: str) -> str:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%B %d, %Y")
    except ValueError:
        return value


def _result_flowables(result: ScrapeResult, styles: dict[str, ParagraphStyle]) -> list[Flowable]:
    meta = result.metadata
    story: list[Flowable] = [_para(result.title, styles["title"])]
    if meta.author:
        story.append(_para(f"Author: {meta.author}", styles["meta"]))
    if meta.publish_date:
        story.append(_para(f"Published: {_format_date(meta.publish_date)}", styles["meta"]))
    if meta.site_name:
        story.append(_para(meta.site_name, styles["meta"]))
    story.append(_para(result.url, styles["meta"]))
    story.append(Spacer(1, 0.3 * inch))

    sections = result.structured_content or tuple(segment_plain_text(result.content))
    story.extend(section_flowables(sections, styles))
    return story


def _build(story: list[Flowable], title: str, generated_on: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=LETTER, title=title, **_MARGINS)
    doc.build(story, canvasmaker=_footer_canvas(generated_on))
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Public renderers
# ---------------------------------------------------------------------------


def render_result_pdf(result: ScrapeResult, *, generated_at: datetime | None = None) -> bytes:
    """Render one successful result as a standalone PDF document."""
    generated_on = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    styles = _styles()
    pdf = _build(_result_flowables(result, styles), result.title, generated_on)
    logger.debug("pdf rendered", extra={"url": result.url, "bytes": len(pdf)})
    return pdf


def render_batch_pdf(batch: BatchResult, *, generated_at: datetime | None = None) -> bytes:
    """Render a batch: cover page, table of contents, one section per
    successful result and a summary of the failed URLs."""
    when = generated_at or datetime.now(timezone.utc)
    generated_on = when.strftime("%Y-%m-%d")
    styles = _styles()
    successes = [r for r in batch.results if r.success]
    failures = [r for r in batch.results if not r.success]

    story: list[Flowable] = [
        Spacer(1, 2 * inch),
        _para("Batch Scraping Report", styles["title"]),
        _para(f"Generated {when:%Y-%m-%d %H:%M} UTC", styles["meta"]),
        Spacer(1, 0.4 * inch),
        _para(f"Total URLs: {len(batch.results)}", styles["meta"]),
        _para(f"Successful: {batch.successful}", styles["meta"]),
        _para(f"Failed: {batch.failed}", styles["meta"]),
        _para(f"Total words: {batch.total_words}", styles["meta"]),
    ]

    if successes:
        story += [PageBreak(), _para("Table of Contents", styles["h1"])]
        for number, result in enumerate(successes, start=1):
            story.append(_para(f"{number}. {result.title}", styles["item"]))
            story.append(_para(result.url, styles["url"]))
            story.append(Spacer(1, 6))

    for result in successes:
        story.append(PageBreak())
        story.extend(_result_flowables(result, styles))

    if failures:
        story += [PageBreak(), _para("Failed URLs", styles["h1"])]
        for result in failures:
            story.append(_para(result.url, styles["url"]))
            story.append(_para(f"Error: {result.error or 'Unknown error'}", styles["item"]))
            story.append(Spacer(1, 8))

    pdf = _build(story, "Batch Scraping Report", generated_on)
    logger.debug(
        "batch pdf rendered",
        extra={"successful": len(successes), "failed": len(failures), "bytes": len(pdf)},
    )
    return pdf
