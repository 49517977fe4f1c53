"""Phrase-based reference detection.

Finds literal, case-insensitive occurrences of known titles in text that is
not already linked. Longer titles win: the catalog is scanned longest title
first and every matched character is claimed, so a shorter title can never
match inside (or across) a longer match.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from .models import CatalogEntry, Span
from .parser.links import MarkerSyntax, render_marker
from .parser.text import flatten
from .parser.title_index import as_catalog

log = logging.getLogger(__name__)


def _fold(text: str) -> str:
    """Lower-case text one character at a time, keeping its length.

    Characters whose lower-case form is longer than one character are kept
    as-is so offsets into the folded text are offsets into the original.
    """
    return "".join(ch.lower() if len(ch.lower()) == 1 else ch for ch in text)


def _is_boundary(text: str, index: int) -> bool:
    """True when the character at index is absent or not alphanumeric."""
    if index < 0 or index >= len(text):
        return True
    return not text[index].isalnum()


def detect(
    text: str,
    catalog: Iterable[CatalogEntry | str],
    excluded: Iterable[tuple[int, int]] = (),
) -> list[Span]:
    """Find non-overlapping occurrences of catalog titles in text.

    Titles are tried longest first; equal-length titles keep catalog order.
    For each title the search restarts at offset 0. An occurrence is recorded
    only if none of its characters is already claimed and both neighbors are
    word boundaries. After a recorded match the search resumes at its end;
    after a rejected occurrence it resumes one character past its start.

    Args:
        text: Text to scan.
        catalog: Known titles (entries or bare title strings).
        excluded: Half-open ranges that are never candidates, such as
            existing markers and headings.

    Returns:
        Spans sorted by start offset, with offsets into ``text``.
    """
    entries = [entry for entry in as_catalog(catalog) if entry.title]
    if not entries or not text:
        return []

    ordered = sorted(entries, key=lambda e: len(e.title), reverse=True)

    # One flag per character offset, lives for this call only
    claimed = bytearray(len(text))
    for start, end in excluded:
        start, end = max(start, 0), min(end, len(text))
        if end > start:
            claimed[start:end] = b"\x01" * (end - start)

    folded = _fold(text)
    spans: list[Span] = []

    for entry in ordered:
        needle = _fold(entry.title)
        length = len(needle)
        cursor = 0

        while cursor < len(text):
            idx = folded.find(needle, cursor)
            if idx == -1:
                break
            end = idx + length

            if any(claimed[idx:end]):
                cursor = idx + 1
                continue

            if not (_is_boundary(text, idx - 1) and _is_boundary(text, end)):
                cursor = idx + 1
                continue

            spans.append(Span(start=idx, end=end, matched_title=entry.title))
            claimed[idx:end] = b"\x01" * length
            cursor = end

    spans.sort(key=lambda s: s.start)
    return spans


def detect_in_body(body: str, catalog: Iterable[CatalogEntry | str]) -> list[Span]:
    """Detect titles in a stored body, skipping markers, tags, and headings."""
    view = flatten(body)
    return detect(view.text, catalog, view.excluded)


def apply_spans(
    body: str,
    spans: Sequence[Span],
    *,
    syntax: MarkerSyntax = "wikitext",
) -> str:
    """Convert accepted spans into reference markers.

    Any subset of the spans from one detection pass can be applied; each is
    independent of the others. The marker targets the matched catalog title
    and keeps the original text as its label when the two differ.

    Spans that fall outside the body or overlap a span already applied are
    skipped.
    """
    result = body
    limit = len(body)

    for span in sorted(spans, key=lambda s: s.start, reverse=True):
        if span.start < 0 or span.end > limit or span.start >= span.end:
            log.debug("Skipping span %d-%d (outside body or overlapping)", span.start, span.end)
            continue

        original = result[span.start : span.end]
        label = original if original != span.matched_title else None
        marker = render_marker(span.matched_title, label, syntax=syntax)
        result = result[: span.start] + marker + result[span.end :]
        limit = span.start

    return result
