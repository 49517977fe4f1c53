"""Flat text views of document bodies.

The detection and diff algorithms never walk an editor document tree. They
work on the raw body string plus a list of character ranges to leave alone,
or on a list of plain-text lines extracted from the body.
"""

import html
import re
from collections.abc import Iterable

from markdown_it import MarkdownIt

from ..models import TextView
from .links import extract_markers

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
# A tag name must follow "<", so comparison signs in prose are not tags
_HTML_TAG = re.compile(r"</?[A-Za-z][^<>]*>|<!--.*?-->", re.DOTALL)
_HTML_HEADING = re.compile(r"<h([1-6])\b[^>]*>.*?</h\1\s*>", re.IGNORECASE | re.DOTALL)
_BLOCK_TAG = re.compile(r"</?(p|div|br|h[1-6]|li|ul|ol|blockquote|hr)\b[^>]*>", re.IGNORECASE)
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")

_md: MarkdownIt | None = None


def _get_markdown() -> MarkdownIt:
    global _md
    if _md is None:
        _md = MarkdownIt("commonmark")
    return _md


def _line_offsets(body: str) -> list[int]:
    """Character offset at which each line starts, plus a final end sentinel."""
    offsets = [0]
    offsets.extend(m.end() for m in _LINE_BREAK.finditer(body))
    offsets.append(len(body))
    return offsets


def _markdown_heading_ranges(body: str) -> list[tuple[int, int]]:
    """Character ranges of ATX and setext headings."""
    tokens = _get_markdown().parse(body)
    offsets = _line_offsets(body)
    last = len(offsets) - 1

    ranges: list[tuple[int, int]] = []
    for token in tokens:
        if token.type != "heading_open" or not token.map:
            continue
        first_line, end_line = token.map
        start = offsets[min(first_line, last)]
        end = offsets[min(end_line, last)]
        if end > start:
            ranges.append((start, end))
    return ranges


def merge_ranges(ranges: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    """Sort half-open ranges and merge any that overlap or touch."""
    merged: list[tuple[int, int]] = []
    for start, end in sorted(r for r in ranges if r[1] > r[0]):
        if merged and start <= merged[-1][1]:
            prev_start, prev_end = merged[-1]
            merged[-1] = (prev_start, max(prev_end, end))
        else:
            merged.append((start, end))
    return merged


def excluded_ranges(body: str) -> list[tuple[int, int]]:
    """Ranges of ``body`` that are never phrase-detection candidates.

    Covers reference markers, HTML tags (so attribute values never match),
    HTML heading elements, and markdown heading lines.
    """
    ranges: list[tuple[int, int]] = [(m.start, m.end) for m in extract_markers(body)]
    ranges.extend(m.span() for m in _HTML_TAG.finditer(body))
    ranges.extend(m.span() for m in _HTML_HEADING.finditer(body))
    ranges.extend(_markdown_heading_ranges(body))
    return merge_ranges(ranges)


def flatten(body: str) -> TextView:
    """Build the flat text view of a body: the text itself plus excluded ranges."""
    return TextView(text=body, excluded=excluded_ranges(body))


def strip_html(body: str) -> str:
    """Reduce editor HTML to plain text, one block element per line."""
    text = _BLOCK_TAG.sub("\n", body)
    text = _HTML_TAG.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = _EXTRA_BLANK_LINES.sub("\n\n", text)
    return text.strip()


def body_to_lines(body: str) -> list[str]:
    """Split a body into the line sequence compared by the revision differ."""
    return strip_html(body).split("\n")
