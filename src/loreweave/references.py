"""Reference resolution and backlink indexing.

Every marker's slug is recomputed from its target title on each pass; nothing
here caches against a catalog, since the set of existing documents can change
between reads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel, Field

from .models import Backlink, BrokenReference, CatalogEntry, Document, ResolvedReference
from .parser.links import extract_markers, render_marker
from .parser.title_index import as_catalog, catalog_slugs
from .slugs import normalize

log = logging.getLogger(__name__)


class AnnotatedBody(BaseModel):
    """A body together with every marker in it, each tagged resolved or broken."""

    body: str
    references: list[ResolvedReference] = Field(default_factory=list)

    @property
    def resolved(self) -> list[ResolvedReference]:
        return [r for r in self.references if r.status == "resolved"]

    @property
    def broken(self) -> list[ResolvedReference]:
        return [r for r in self.references if r.status == "broken"]

    def render_html(self) -> str:
        """Rewrite every marker as an HTML link, tagging broken ones.

        Text outside markers is left untouched.
        """
        parts: list[str] = []
        cursor = 0
        for ref in self.references:
            parts.append(self.body[cursor : ref.start])
            parts.append(
                render_marker(
                    ref.target_title,
                    ref.display_label,
                    syntax="html",
                    broken=ref.status == "broken",
                )
            )
            cursor = ref.end
        parts.append(self.body[cursor:])
        return "".join(parts)


def resolve_references(body: str, catalog: Iterable[CatalogEntry | str]) -> AnnotatedBody:
    """Tag every marker in a body as resolved or broken.

    A marker is resolved when some catalog entry has the slug of its target
    title. Targets that normalize to an empty slug are always broken.
    Self-references follow the same rule.

    Args:
        body: Document body.
        catalog: Catalog snapshot to resolve against.

    Returns:
        AnnotatedBody; a body without markers passes through with no references.
    """
    existing = catalog_slugs(as_catalog(catalog))
    references: list[ResolvedReference] = []

    for marker in extract_markers(body):
        slug = normalize(marker.target_title)
        status = "resolved" if slug and slug in existing else "broken"
        references.append(
            ResolvedReference(**marker.model_dump(), slug=slug, status=status)
        )

    return AnnotatedBody(body=body, references=references)


def _referenced_slugs(body: str) -> set[str]:
    return {slug for m in extract_markers(body) if (slug := normalize(m.target_title))}


def find_backlinks(target_slug: str, corpus: Iterable[Document]) -> list[Backlink]:
    """Find documents whose body references a slug.

    Args:
        target_slug: Slug of the referenced document.
        corpus: Snapshot of every document to scan.

    Returns:
        One entry per referencing document, in corpus order. Empty for an
        empty slug or when nothing references it.
    """
    if not target_slug:
        return []

    return [
        Backlink(id=doc.id, title=doc.title, slug=doc.slug)
        for doc in corpus
        if target_slug in _referenced_slugs(doc.body)
    ]


def build_backlink_index(corpus: Iterable[Document]) -> dict[str, list[Backlink]]:
    """Build a backlink index for a whole corpus in one pass.

    Returns:
        Dict mapping each referenced slug to the documents that reference it.
        A source appears at most once per target. Targets need not exist.
    """
    backlinks: dict[str, list[Backlink]] = {}

    for doc in corpus:
        source = Backlink(id=doc.id, title=doc.title, slug=doc.slug)
        for slug in sorted(_referenced_slugs(doc.body)):
            backlinks.setdefault(slug, []).append(source)

    return backlinks


def find_broken_references(
    corpus: Iterable[Document],
    catalog: Iterable[CatalogEntry | str],
) -> list[BrokenReference]:
    """List every broken marker across a corpus, in corpus then body order."""
    catalog = as_catalog(catalog)
    broken: list[BrokenReference] = []

    for doc in corpus:
        for ref in resolve_references(doc.body, catalog).broken:
            broken.append(
                BrokenReference(
                    source_id=doc.id,
                    source_title=doc.title,
                    target_title=ref.target_title,
                    slug=ref.slug,
                )
            )

    if broken:
        log.debug("Found %d broken references", len(broken))
    return broken
