"""Title catalog and corpus building.

The engine never reads storage itself: callers take a snapshot of the corpus
(``load_corpus`` for a directory of markdown files) and pass the catalog or
corpus explicitly to every operation. ``catalog_version`` lets a caller
notice that the catalog changed between two reads.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from pathlib import Path

import frontmatter

from ..models import CatalogEntry, Document
from ..slugs import normalize

log = logging.getLogger(__name__)


def as_catalog(items: Iterable[CatalogEntry | Document | str]) -> list[CatalogEntry]:
    """Coerce entries, documents, or bare titles into catalog entries."""
    catalog: list[CatalogEntry] = []
    for item in items:
        if isinstance(item, CatalogEntry):
            catalog.append(item)
        elif isinstance(item, Document):
            catalog.append(item.catalog_entry())
        else:
            catalog.append(CatalogEntry(title=item))
    return catalog


def build_catalog(documents: Iterable[Document]) -> list[CatalogEntry]:
    """Map documents to catalog entries, preserving order."""
    return [doc.catalog_entry() for doc in documents]


def catalog_version(catalog: Iterable[CatalogEntry]) -> str:
    """Stable digest of an ordered catalog.

    Two snapshots with the same titles and slugs in the same order share a
    version; any added, removed, renamed, or reordered entry changes it.
    """
    digest = hashlib.sha1()
    for entry in catalog:
        digest.update(entry.title.encode("utf-8"))
        digest.update(b"\x00")
        digest.update(entry.slug.encode("utf-8"))
        digest.update(b"\x01")
    return digest.hexdigest()


def catalog_slugs(catalog: Iterable[CatalogEntry]) -> set[str]:
    """Set of non-empty slugs present in a catalog."""
    return {entry.slug for entry in catalog if entry.slug}


def lookup_title(title: str, catalog: Iterable[CatalogEntry]) -> CatalogEntry | None:
    """Find the catalog entry a title resolves to, if any.

    Args:
        title: Free-text title, as typed inside a marker.
        catalog: Catalog snapshot.

    Returns:
        The first entry whose slug equals ``normalize(title)``, or None.
        Titles that normalize to an empty slug never resolve.
    """
    slug = normalize(title)
    if not slug:
        return None
    for entry in catalog:
        if entry.slug == slug:
            return entry
    return None


def _is_skipped(rel_path: Path) -> bool:
    # Special files and dot-directories (the revision store lives in .revisions/)
    if rel_path.name.startswith("_"):
        return True
    return any(part.startswith(".") for part in rel_path.parts[:-1])


def load_document(kb_root: Path, md_file: Path) -> Document:
    """Load one markdown file as a Document.

    Raises:
        OSError, UnicodeDecodeError, ValueError: If the file cannot be read or
            its frontmatter cannot be parsed.
    """
    post = frontmatter.load(str(md_file))
    rel_path = md_file.relative_to(kb_root)
    doc_id = rel_path.with_suffix("").as_posix()

    title = post.metadata.get("title") if post.metadata else None
    # YAML loads bare scalars such as `title: 2024` as ints, bools or dates
    if title is not None and not isinstance(title, (str, list, dict)):
        title = str(title)
    if not isinstance(title, str) or not title.strip():
        title = md_file.stem

    return Document(id=doc_id, title=title.strip(), body=post.content)


def load_corpus(kb_root: Path) -> list[Document]:
    """Read every markdown document under a directory.

    Files that cannot be read or parsed are skipped and logged at debug level.

    Args:
        kb_root: Root directory of the knowledge base.

    Returns:
        Documents sorted by id (path relative to root, without .md).
    """
    if not kb_root.exists() or not kb_root.is_dir():
        return []

    documents: list[Document] = []
    for md_file in kb_root.rglob("*.md"):
        if _is_skipped(md_file.relative_to(kb_root)):
            continue
        try:
            documents.append(load_document(kb_root, md_file))
        except Exception as e:
            log.debug("Skipping %s during corpus load: %s", md_file, e)
            continue

    documents.sort(key=lambda d: d.id)
    return documents
