"""Pydantic models for documents, references, spans, and revisions."""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .slugs import normalize


def _with_derived_slug(data: Any) -> Any:
    """Fill in a missing or empty slug from the title."""
    if isinstance(data, dict) and not data.get("slug"):
        title = data.get("title")
        if isinstance(title, str):
            return {**data, "slug": normalize(title)}
    return data


class CatalogEntry(BaseModel):
    """A known document title and its slug."""

    model_config = ConfigDict(frozen=True)

    title: str
    slug: str = ""  # Derived from title when omitted

    @model_validator(mode="before")
    @classmethod
    def _derive_slug(cls, data: Any) -> Any:
        return _with_derived_slug(data)


class Document(BaseModel):
    """A document as seen by the engine: identity, title, slug, body."""

    id: str
    title: str
    slug: str = ""  # Derived from title when omitted
    body: str = ""

    @model_validator(mode="before")
    @classmethod
    def _derive_slug(cls, data: Any) -> Any:
        return _with_derived_slug(data)

    def catalog_entry(self) -> CatalogEntry:
        return CatalogEntry(title=self.title, slug=self.slug)


class ReferenceMarker(BaseModel):
    """A [[Target|Label]] style marker found in a document body.

    Offsets are half-open character offsets into the body the marker came from.
    """

    start: int
    end: int
    target_title: str
    display_label: str
    syntax: Literal["wikitext", "html"] = "wikitext"


class ResolvedReference(ReferenceMarker):
    """A marker tagged with the slug it resolves to and whether that slug exists."""

    slug: str
    status: Literal["resolved", "broken"]


class Backlink(BaseModel):
    """A document that references a target document."""

    id: str
    title: str
    slug: str


class BrokenReference(BaseModel):
    """A marker in one document whose target does not exist."""

    source_id: str
    source_title: str
    target_title: str
    slug: str


class Span(BaseModel):
    """A half-open [start, end) range of text matching a catalog title."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    matched_title: str


class TextView(BaseModel):
    """Flat text of a body plus ranges that phrase detection must skip."""

    text: str
    excluded: list[tuple[int, int]] = Field(default_factory=list)


class DiffLine(BaseModel):
    """One line of a revision diff."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["same", "added", "removed"]
    text: str


class Revision(BaseModel):
    """Immutable snapshot of a document's title and body."""

    model_config = ConfigDict(frozen=True)

    id: str
    document_id: str
    title: str
    body: str
    created: datetime = Field(default_factory=lambda: datetime.now(UTC))
    summary: str | None = None
