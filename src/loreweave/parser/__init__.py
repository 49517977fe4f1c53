"""Adapters between stored document bodies and the engine's flat text model."""

from .links import extract_markers, extract_targets, render_marker
from .text import body_to_lines, excluded_ranges, flatten, strip_html
from .title_index import (
    as_catalog,
    build_catalog,
    catalog_slugs,
    catalog_version,
    load_corpus,
    load_document,
    lookup_title,
)

__all__ = [
    "as_catalog",
    "body_to_lines",
    "build_catalog",
    "catalog_slugs",
    "catalog_version",
    "excluded_ranges",
    "extract_markers",
    "extract_targets",
    "flatten",
    "load_corpus",
    "load_document",
    "lookup_title",
    "render_marker",
    "strip_html",
]
