"""Plain-text rendering and segmentation tests."""

import itertools

import pytest

from src.scraper.extract import extract_page
from src.scraper.models import BulletList, Code, Heading, NumberedList, Paragraph, Quote
from src.scraper.text import generate_plain_text, section_to_text, segment_plain_text

SECTIONS = (
    Heading(1, "Title"),
    Paragraph("Intro paragraph."),
    Heading(2, "Details"),
    BulletList(("alpha", "beta")),
    NumberedList(("one", "two", "three")),
    Quote("Quoted words"),
    Code("x = 1\ny = 2"),
)


def test_generate_plain_text_format():
    text = generate_plain_text(SECTIONS)
    assert text == (
        "# Title\n\n"
        "Intro paragraph.\n\n"
        "## Details\n\n"
        "- alpha\n- beta\n\n"
        "1. one\n2. two\n3. three\n\n"
        "> Quoted words\n\n"
        "```\nx = 1\ny = 2\n```"
    )


def test_generate_plain_text_empty():
    assert generate_plain_text(()) == ""


def test_section_to_text_multiline_quote():
    assert section_to_text(Quote("a\nb")) == "> a\n> b"


def test_segment_recovers_headings_and_lists():
    sections = segment_plain_text(generate_plain_text(SECTIONS))

    assert [s for s in sections if isinstance(s, Heading)] == [Heading(1, "Title"), Heading(2, "Details")]
    assert BulletList(("alpha", "beta")) in sections
    assert NumberedList(("one", "two", "three")) in sections
    assert Quote("Quoted words") in sections
    assert Code("x = 1\ny = 2") in sections


def test_segment_joins_wrapped_lines_into_one_paragraph():
    text = "first line\nsecond line\n\n- item"
    assert segment_plain_text(text) == [Paragraph("first line second line"), BulletList(("item",))]


def test_segment_ignores_blank_input():
    assert segment_plain_text("  \n\n ") == []


MARKER_LED = [
    "1. Download the installer.",
    "12) Twelfth step of many.",
    "- Note: a dash-led remark.",
    "* starred aside",
    "• bullet-led line",
    "# not a heading",
    "> not a quote",
    "```not a fence",
    "\\ leading backslash",
    "1\\. already escaped-looking",
    "plain sentence",
]


def _shape(sections):
    return (
        [(s.level, s.text) for s in sections if isinstance(s, Heading)],
        [len(s.items) for s in sections if isinstance(s, (BulletList, NumberedList))],
    )


@pytest.mark.parametrize("text", MARKER_LED)
def test_marker_led_paragraph_reads_back_as_paragraph(text):
    sections = (Heading(2, "Steps"), Paragraph(text))
    assert segment_plain_text(generate_plain_text(sections)) == list(sections)


@pytest.mark.parametrize("first,second", list(itertools.product(MARKER_LED, repeat=2)))
def test_round_trip_keeps_heading_and_list_counts(first, second):
    sections = (
        Heading(1, "Title"),
        Paragraph(first),
        BulletList((first, second)),
        Paragraph(f"{first}\n\n{second}"),
        NumberedList((second,)),
        Heading(3, second),
        Quote(first),
    )
    assert _shape(segment_plain_text(generate_plain_text(sections))) == _shape(sections)


def test_escaped_plain_text_format():
    text = generate_plain_text((Paragraph("1. Download the installer.\n\n- a remark"),))
    assert text == "1\\. Download the installer.\n\n\\- a remark"


def test_extracted_steps_survive_round_trip():
    html = (
        "<html><body><article><h2>Steps</h2>"
        "<p>1. Download the installer.</p><p>- Note: a dash-led remark.</p>"
        "</article></body></html>"
    )
    sections = extract_page(html).sections
    assert _shape(segment_plain_text(generate_plain_text(sections))) == _shape(sections) == ([(2, "Steps")], [])
