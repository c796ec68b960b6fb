"""Plain-text rendering of structured sections, and the reverse."""

from __future__ import annotations

import re
from collections.abc import Iterable

from .models import BulletList, Code, Heading, NumberedList, Paragraph, Quote, Section

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*\S)\s*$")
_BULLET_RE = re.compile(r"^[-*•]\s+(.*\S)\s*$")
_NUMBERED_RE = re.compile(r"^\d+[.)]\s+(.*\S)\s*$")
_FENCE = "```"
_NUMBER_MARK_RE = re.compile(r"^(\d+)([.)]\s)")
_ESCAPED_NUMBER_RE = re.compile(r"^(\d+)\\([.)])")
_ESCAPE = "\\"


def section_to_text(section: Section) -> str:
    if isinstance(section, Heading):
        return f"{'#' * section.level} {section.text}"
    if isinstance(section, BulletList):
        return "\n".join(f"- {item}" for item in section.items)
    if isinstance(section, NumberedList):
        return "\n".join(f"{i}. {item}" for i, item in enumerate(section.items, start=1))
    if isinstance(section, Quote):
        return "\n".join(f"> {line}" for line in section.text.splitlines() or [""])
    if isinstance(section, Code):
        return f"{_FENCE}\n{section.text}\n{_FENCE}"
    return "\n".join(_escape_line(line) for line in section.text.splitlines())


def generate_plain_text(sections: Iterable[Section]) -> str:
    """Render sections as text separated by blank lines.

    Paragraph lines that begin like a heading, list item, quote or fence are
    backslash-escaped (``1\\. Download``, ``\\- note``).
    """
    return "\n\n".join(section_to_text(s) for s in sections).strip()


def segment_plain_text(text: str) -> list[Section]:
    """Split text produced by :func:`generate_plain_text` back into sections.

    Heading and list boundaries survive the round trip and escaped
    paragraph lines lose their backslash; consecutive free
    text lines are joined into one paragraph, so paragraph wrapping may
    differ from the original.
    """
    sections: list[Section] = []
    lines = text.splitlines()
    i = 0
    while i < len(lines):
        line = lines[i].rstrip()
        stripped = line.strip()

        if not stripped:
            i += 1
            continue

        if stripped.startswith(_FENCE):
            body: list[str] = []
            i += 1
            while i < len(lines) and not lines[i].strip().startswith(_FENCE):
                body.append(lines[i])
                i += 1
            i += 1  # closing fence
            sections.append(Code("\n".join(body)))
            continue

        heading = _HEADING_RE.match(stripped)
        if heading:
            sections.append(Heading(len(heading.group(1)), heading.group(2)))
            i += 1
            continue

        for pattern, kind in ((_BULLET_RE, BulletList), (_NUMBERED_RE, NumberedList)):
            if pattern.match(stripped):
                items: list[str] = []
                while i < len(lines):
                    item = pattern.match(lines[i].strip())
                    if item is None:
                        break
                    items.append(item.group(1))
                    i += 1
                sections.append(kind(tuple(items)))
                break
        else:
            if stripped.startswith(">"):
                quoted: list[str] = []
                while i < len(lines) and lines[i].strip().startswith(">"):
                    quoted.append(lines[i].strip()[1:].strip())
                    i += 1
                sections.append(Quote("\n".join(quoted)))
                continue

            chunk: list[str] = []
            while i < len(lines) and lines[i].strip() and not _starts_block(lines[i].strip()):
                chunk.append(lines[i].strip())
                i += 1
            sections.append(Paragraph(" ".join(_unescape_line(part) for part in chunk)))

    return sections


def _starts_block(line: str) -> bool:
    return bool(
        line.startswith((_FENCE, ">"))
        or _HEADING_RE.match(line)
        or _BULLET_RE.match(line)
        or _NUMBERED_RE.match(line)
    )


def _escape_line(line: str) -> str:
    """Neutralise a leading block marker so free text reads back as free text."""
    line = line.lstrip()
    number = _NUMBER_MARK_RE.match(line)
    if number:
        return f"{number.group(1)}{_ESCAPE}{line[number.end(1):]}"
    if line.startswith(_ESCAPE) or _ESCAPED_NUMBER_RE.match(line) or _starts_block(line):
        return _ESCAPE + line
    return line


def _unescape_line(line: str) -> str:
    number = _ESCAPED_NUMBER_RE.match(line)
    if number:
        return number.group(1) + line[number.end(1) + 1:]
    if line.startswith(_ESCAPE):
        return line[1:]
    return line
