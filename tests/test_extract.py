"""Content extractor unit tests."""

import pytest

from src.scraper.extract import (
    NO_CONTENT,
    NO_TITLE,
    PARAGRAPH_LIMIT,
    ContentExtractor,
    extract_page,
    fold_sections,
)
from src.scraper.models import (
    BulletList,
    Code,
    Heading,
    NumberedList,
    Paragraph,
    Quote,
)
from tests.helpers import ARTICLE_HTML, LOREM, SPA_SHELL_HTML, simple_page


# --- title resolution ---


def test_title_prefers_h1():
    assert ContentExtractor(ARTICLE_HTML).extract_title() == "Understanding Async Scrapers"


def test_title_falls_back_to_title_tag_and_cleans_whitespace():
    html = "<html><head><title>  Hello \n\t World\x07 </title></head><body></body></html>"
    assert ContentExtractor(html).extract_title() == "Hello World"


def test_title_skips_overlong_candidates():
    html = (
        "<html><head><meta property='og:title' content='Short OG title'></head>"
        f"<body><h1>{'x' * 400}</h1></body></html>"
    )
    assert ContentExtractor(html).extract_title() == "Short OG title"


def test_title_cms_class_selector():
    html = "<html><body><div class='entry-title'>CMS Title</div></body></html>"
    assert ContentExtractor(html).extract_title() == "CMS Title"


def test_title_sentinel_when_missing():
    assert ContentExtractor("<html><body><p>hi</p></body></html>").extract_title() == NO_TITLE


# --- structured content ---


def test_sections_from_article_in_document_order():
    sections = ContentExtractor(ARTICLE_HTML).extract_sections()

    assert [s.type for s in sections] == [
        "heading",
        "paragraph",
        "heading",
        "paragraph",
        "bullet_list",
        "numbered_list",
        "quote",
        "code",
    ]
    assert sections[0] == Heading(1, "Understanding Async Scrapers")
    assert sections[1].text.startswith("Jane Doe\n\nLorem ipsum")
    assert sections[2] == Heading(2, "Background")
    assert sections[4] == BulletList(("First point", "Second point"))
    assert sections[5] == NumberedList(("Step one", "Step two", "Step three"))
    assert sections[6] == Quote("Simple things should be simple.")
    assert sections[7] == Code("async def main():\n    await scrape()")


def test_boilerplate_is_removed():
    extractor = ContentExtractor(ARTICLE_HTML)
    text = extractor.cleaned_body.get_text(" ")
    assert "Sidebar text" not in text
    assert "Share this" not in text
    assert "Copyright" not in text
    assert "Site brand" not in text
    assert "__state" not in text


def test_cleaning_does_not_touch_parsed_tree():
    extractor = ContentExtractor(ARTICLE_HTML)
    extractor.extract_sections()
    # Metadata still sees elements outside the cleaned body.
    assert extractor.extract_metadata().author == "Jane Doe"
    assert extractor.body_text_length() > len(extractor.extract_content())


def test_falls_back_to_body_when_no_content_selector_matches():
    sections = ContentExtractor(simple_page()).extract_sections()
    assert [s.type for s in sections] == ["heading", "paragraph"]


def test_content_selector_order_prefers_article_over_cms_class():
    html = (
        "<html><body>"
        "<div class='post-content'><p>From the CMS container.</p></div>"
        "<article><p>From the article.</p></article>"
        "</body></html>"
    )
    assert ContentExtractor(html).extract_sections() == (Paragraph("From the article."),)


def test_role_main_root():
    html = (
        "<html><body><div><p>Outside</p></div>"
        "<div role='main'><h3>Inside</h3><p>Body</p></div></body></html>"
    )
    assert ContentExtractor(html).extract_sections() == (Heading(3, "Inside"), Paragraph("Body"))


def test_empty_elements_are_dropped():
    html = "<html><body><article><h2> </h2><p></p><ul><li> </li></ul><p>Kept</p></article></body></html>"
    assert ContentExtractor(html).extract_sections() == (Paragraph("Kept"),)


def test_nested_blocks_are_not_emitted_twice():
    html = (
        "<html><body><article>"
        "<blockquote><p>Quoted paragraph</p></blockquote>"
        "<ul><li><p>Item paragraph</p><ul><li>Nested</li></ul></li><li>Other</li></ul>"
        "</article></body></html>"
    )
    sections = ContentExtractor(html).extract_sections()
    assert sections == (
        Quote("Quoted paragraph"),
        BulletList(("Item paragraph", "Nested", "Other")),
    )


def test_line_breaks_do_not_glue_words():
    html = "<html><body><p>first line<br>second line</p></body></html>"
    assert ContentExtractor(html).extract_sections() == (Paragraph("first line second line"),)


# --- paragraph fold ---


def test_fold_merges_paragraphs_with_blank_line():
    folded = fold_sections([Paragraph("a"), Paragraph("b"), Paragraph("c")])
    assert folded == (Paragraph("a\n\nb\n\nc"),)


def test_fold_starts_new_paragraph_past_limit():
    first = "x" * 600
    second = "y" * 600
    folded = fold_sections([Paragraph(first), Paragraph(second)])
    assert folded == (Paragraph(first), Paragraph(second))
    assert all(len(p.text) <= PARAGRAPH_LIMIT for p in folded)


def test_fold_heading_flushes_accumulator():
    folded = fold_sections([Paragraph("a"), Heading(2, "H"), Paragraph("b")])
    assert folded == (Paragraph("a"), Heading(2, "H"), Paragraph("b"))


def test_fold_any_block_flushes_to_preserve_order():
    folded = fold_sections([Paragraph("a"), Quote("q"), Paragraph("b")])
    assert folded == (Paragraph("a"), Quote("q"), Paragraph("b"))


# --- plain-text content ---


def test_content_from_article_selector():
    content = ContentExtractor(ARTICLE_HTML).extract_content()
    assert content.startswith("Understanding Async Scrapers")
    assert "Sidebar" not in content
    assert "\n" not in content


def test_content_from_long_paragraphs():
    html = f"<html><body><div><p>short</p><p>{LOREM}</p></div></body></html>"
    assert ContentExtractor(html).extract_content() == LOREM


def test_content_sentinel_for_tiny_pages():
    assert ContentExtractor("<html><body><p>Too short.</p></body></html>").extract_content() == NO_CONTENT


@pytest.mark.parametrize("paragraphs", [1, 5, 400])
def test_content_is_capped(paragraphs):
    body = "".join(f"<p>{LOREM}</p>" for _ in range(paragraphs))
    content = ContentExtractor(f"<html><body>{body}</body></html>").extract_content()
    assert content != NO_CONTENT
    assert 0 < len(content) <= 50_000


def test_content_cap_is_configurable():
    html = f"<html><body><p>{LOREM}</p></body></html>"
    page = extract_page(html, max_content_length=100)
    assert len(page.content) == 100


# --- metadata ---


def test_metadata_sources():
    meta = ContentExtractor(ARTICLE_HTML, "https://example.com/posts/1").extract_metadata()
    assert meta.description == "A description of the article."
    assert meta.keywords == "scraping, python"
    assert meta.author == "Jane Doe"
    assert meta.publish_date == "2024-03-01T10:00:00Z"
    assert meta.language == "de"
    assert meta.site_name == "Example News"
    assert meta.image == "https://example.com/images/cover.png"
    assert meta.reading_time == 0


def test_metadata_priority_order():
    html = (
        "<html><head>"
        "<meta property='og:description' content='og'>"
        "<meta name='description' content='plain'>"
        "</head><body><time datetime='2023-01-02'>Jan 2</time></body></html>"
    )
    meta = ContentExtractor(html).extract_metadata()
    assert meta.description == "plain"
    assert meta.publish_date == "2023-01-02"


def test_metadata_defaults():
    meta = ContentExtractor("<html><body></body></html>").extract_metadata()
    assert meta.language == "en"
    assert meta.description == ""
    assert meta.author == ""
    assert meta.image == ""


def test_metadata_content_language_header():
    html = "<html><head><meta http-equiv='Content-Language' content='fr'></head><body></body></html>"
    assert ContentExtractor(html).extract_metadata().language == "fr"


# --- escalation signals ---


def test_spa_markers_detected():
    page = extract_page(SPA_SHELL_HTML)
    assert page.has_spa_markers is True
    assert page.sections == ()
    assert page.content_length == 0


@pytest.mark.parametrize(
    "marker",
    ['<div id="__next"></div>', '<div id="app"></div>', '<div id="__nuxt"></div>', "<div data-reactroot></div>"],
)
def test_other_spa_markers(marker):
    assert extract_page(f"<html><body>{marker}</body></html>").has_spa_markers is True


def test_body_text_length_ignores_scripts():
    html = "<html><body><p>abc</p><script>var x = 'not counted';</script></body></html>"
    assert extract_page(html).body_text_length == 3


def test_extraction_is_deterministic():
    assert extract_page(ARTICLE_HTML, "https://example.com") == extract_page(ARTICLE_HTML, "https://example.com")


def test_short_page_keeps_its_real_text():
    html = "<html><body><main><h1>Tickets</h1><p>Two open tickets.</p></main></body></html>"
    page = extract_page(html)
    assert page.content == "Tickets Two open tickets."
    assert page.content_length == len("Tickets Two open tickets.")


def test_sentinel_only_for_pages_without_text():
    page = extract_page("<html><body><div></div></body></html>")
    assert page.content == NO_CONTENT
    assert page.content_length == 0
