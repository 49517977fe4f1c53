"""Reference marker extraction and rendering.

Two marker syntaxes are recognized:

- Wikitext, as typed by authors: ``[[Target]]`` or ``[[Target|Label]]``
- Rendered HTML, as stored by the rich-text editor:
  ``<a class="wiki-link" data-wiki-link="Target">Label</a>``

Both the reference scanner and the phrase detector go through
``extract_markers`` so they agree on what counts as a marker.
"""

import html
import logging
import re
from typing import Literal

from ..config import (
    BROKEN_LINK_CLASS,
    MARKER_LABEL_SEPARATOR,
    WIKI_LINK_CLASS,
    WIKI_LINK_HREF_PREFIX,
)
from ..models import ReferenceMarker
from ..slugs import normalize

log = logging.getLogger(__name__)

# Pattern for [[link]] syntax - captures content between double brackets.
# Brackets are not allowed inside, so "[[a [[b]]" only matches "[[b]]".
MARKER_PATTERN = re.compile(r"\[\[([^\[\]\n]*)\]\]")

# Pattern for rendered anchors carrying a data-wiki-link attribute.
# The label stops at the next "<a", so an unclosed anchor never swallows
# the text up to some later, unrelated "</a>".
HTML_MARKER_PATTERN = re.compile(
    r"<a\b[^>]*?\bdata-wiki-link\s*=\s*\"([^\"]*)\"[^>]*>((?:(?!<a\b).)*?)</a\s*>",
    re.IGNORECASE | re.DOTALL,
)

_TAG_PATTERN = re.compile(r"<[^>]*>")

# Characters that would end or split a [[Target|Label]] marker early
_WIKITEXT_UNSAFE = re.compile(r"[\[\]|\n]")

MarkerSyntax = Literal["wikitext", "html"]


def _parse_wikitext(inner: str) -> tuple[str, str] | None:
    """Split marker content into (target, label). None if the target is missing."""
    target, sep, label = inner.partition(MARKER_LABEL_SEPARATOR)
    target = target.strip()
    if not target:
        return None
    label = label.strip() if sep else ""
    return target, label or target


def _parse_html(attr: str, inner_html: str) -> tuple[str, str] | None:
    target = html.unescape(attr).strip()
    if not target:
        return None
    label = html.unescape(_TAG_PATTERN.sub("", inner_html)).strip()
    return target, label or target


def extract_markers(body: str) -> list[ReferenceMarker]:
    """Extract reference markers from a document body.

    Malformed markers (no target title) are treated as plain text and skipped.
    Never raises.

    Args:
        body: Document body in wikitext, markdown, or editor HTML.

    Returns:
        Markers in body order, non-overlapping, with offsets into ``body``.
    """
    candidates: list[ReferenceMarker] = []

    for match in MARKER_PATTERN.finditer(body):
        parsed = _parse_wikitext(match.group(1))
        if parsed is None:
            log.debug("Skipping malformed marker at %d: %r", match.start(), match.group(0))
            continue
        target, label = parsed
        candidates.append(
            ReferenceMarker(
                start=match.start(),
                end=match.end(),
                target_title=target,
                display_label=label,
                syntax="wikitext",
            )
        )

    for match in HTML_MARKER_PATTERN.finditer(body):
        parsed = _parse_html(match.group(1), match.group(2))
        if parsed is None:
            log.debug("Skipping anchor with empty data-wiki-link at %d", match.start())
            continue
        target, label = parsed
        candidates.append(
            ReferenceMarker(
                start=match.start(),
                end=match.end(),
                target_title=target,
                display_label=label,
                syntax="html",
            )
        )

    # A wikitext marker typed inside a rendered anchor belongs to the anchor
    candidates.sort(key=lambda m: (m.start, -m.end))
    markers: list[ReferenceMarker] = []
    for marker in candidates:
        if markers and marker.start < markers[-1].end:
            continue
        markers.append(marker)
    return markers


def extract_targets(body: str) -> list[str]:
    """Unique target titles referenced by a body, in first-seen order."""
    seen: set[str] = set()
    targets: list[str] = []
    for marker in extract_markers(body):
        if marker.target_title not in seen:
            seen.add(marker.target_title)
            targets.append(marker.target_title)
    return targets


def render_marker(
    target_title: str,
    display_label: str | None = None,
    *,
    syntax: MarkerSyntax = "wikitext",
    broken: bool = False,
) -> str:
    """Render a marker in the requested syntax.

    The label is omitted from wikitext output when it equals the target.
    Titles or labels containing brackets, "|" or a newline cannot be written
    as wikitext and are rendered as HTML instead.
    ``broken`` only affects HTML output, where it adds the broken-link class.
    """
    label = display_label or target_title

    if syntax == "wikitext" and (
        _WIKITEXT_UNSAFE.search(target_title) or _WIKITEXT_UNSAFE.search(label)
    ):
        log.debug("Rendering %r as HTML: not expressible in wikitext", target_title)
        syntax = "html"

    if syntax == "wikitext":
        if label == target_title:
            return f"[[{target_title}]]"
        return f"[[{target_title}{MARKER_LABEL_SEPARATOR}{label}]]"

    classes = WIKI_LINK_CLASS
    if broken:
        classes = f"{classes} {BROKEN_LINK_CLASS}"
    href = f"{WIKI_LINK_HREF_PREFIX}{normalize(target_title)}"
    return (
        f'<a href="{html.escape(href)}" class="{classes}" '
        f'data-wiki-link="{html.escape(target_title)}">{html.escape(label)}</a>'
    )
