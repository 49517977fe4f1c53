"""Knowledge-base operations used by the CLI.

This module binds the pure engine (references, detection, revisions) to a
directory of markdown documents with YAML frontmatter and a file-backed
revision store. Each operation reads a fresh corpus snapshot; nothing is
cached between calls.
"""

import logging
from pathlib import Path

import frontmatter

from .config import (
    DETECT_APPLY_SUMMARY,
    RECENT_CHANGES_LIMIT,
    LoreweaveError,
    get_kb_root,
    get_revisions_root,
)
from .detection import apply_spans, detect_in_body
from .models import Backlink, BrokenReference, DiffLine, Document, Revision, Span
from .parser.title_index import build_catalog, load_corpus
from .references import AnnotatedBody, find_backlinks, find_broken_references, resolve_references
from .revisions import RevisionMismatchError, diff_bodies, revert, snapshot
from .slugs import normalize
from .store import FileRevisionStore

log = logging.getLogger(__name__)

# Revision reference meaning "the live document"
CURRENT = "current"


class DocumentNotFoundError(LoreweaveError):
    """Raised when a path, title, or slug matches no document."""

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Document not found: {ref}")


def _kb(kb_root: Path | None) -> Path:
    return kb_root if kb_root is not None else get_kb_root()


def get_corpus(kb_root: Path | None = None) -> list[Document]:
    """Load a fresh snapshot of every document in the KB."""
    return load_corpus(_kb(kb_root))


def get_store(kb_root: Path | None = None) -> FileRevisionStore:
    return FileRevisionStore(get_revisions_root(_kb(kb_root)))


def find_document(ref: str, corpus: list[Document]) -> Document:
    """Find a document by path, title, or slug.

    Lookup order:
    1. Path relative to the KB root, with or without ``.md``
    2. Title or slug, compared by normalized slug

    Raises:
        DocumentNotFoundError: If nothing matches.
    """
    path_key = ref.strip().replace("\\", "/").strip("/")
    if path_key.endswith(".md"):
        path_key = path_key[:-3]

    for doc in corpus:
        if doc.id == path_key:
            return doc

    slug = normalize(ref)
    if slug:
        for doc in corpus:
            if doc.slug == slug:
                return doc

    raise DocumentNotFoundError(ref)


def save_document(document: Document, kb_root: Path | None = None) -> Path:
    """Write a document's title and body back, keeping its other frontmatter."""
    path = _kb(kb_root) / f"{document.id}.md"
    if path.exists():
        post = frontmatter.load(str(path))
    else:
        post = frontmatter.Post("")
    post["title"] = document.title
    post.content = document.body

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(frontmatter.dumps(post) + "\n", encoding="utf-8")
    return path


# ─────────────────────────────────────────────────────────────────────────────
# References
# ─────────────────────────────────────────────────────────────────────────────


def links(ref: str, kb_root: Path | None = None) -> AnnotatedBody:
    """Resolve the references of one document against the current catalog."""
    corpus = get_corpus(kb_root)
    document = find_document(ref, corpus)
    return resolve_references(document.body, build_catalog(corpus))


def backlinks(ref: str, kb_root: Path | None = None) -> list[Backlink]:
    """Documents whose body references the given document."""
    corpus = get_corpus(kb_root)
    document = find_document(ref, corpus)
    return find_backlinks(document.slug, corpus)


def broken_links(kb_root: Path | None = None) -> list[BrokenReference]:
    """Every broken reference in the KB."""
    corpus = get_corpus(kb_root)
    return find_broken_references(corpus, build_catalog(corpus))


def suggest_links(
    ref: str,
    only: list[str] | None = None,
    apply: bool = False,
    kb_root: Path | None = None,
) -> tuple[Document, list[Span]]:
    """Detect unlinked mentions of known titles in a document.

    Args:
        ref: Document path, title, or slug.
        only: Keep only spans whose matched title normalizes to one of these.
        apply: Snapshot the document, then write the spans back as markers.
        kb_root: KB root (auto-detected if None).

    Returns:
        Tuple of (document as it now stands, spans found or applied).
    """
    kb_root = _kb(kb_root)
    corpus = get_corpus(kb_root)
    document = find_document(ref, corpus)
    spans = detect_in_body(document.body, build_catalog(corpus))

    if only:
        wanted = {normalize(title) for title in only}
        spans = [s for s in spans if normalize(s.matched_title) in wanted]

    if apply and spans:
        get_store(kb_root).append(snapshot(document, summary=DETECT_APPLY_SUMMARY))
        document = Document(
            id=document.id,
            title=document.title,
            body=apply_spans(document.body, spans),
        )
        save_document(document, kb_root)
        log.debug("Applied %d references to %s", len(spans), document.id)

    return document, spans


# ─────────────────────────────────────────────────────────────────────────────
# Revisions
# ─────────────────────────────────────────────────────────────────────────────


def snapshot_document(
    ref: str,
    summary: str | None = None,
    kb_root: Path | None = None,
) -> Revision:
    """Store the document's current state as a revision."""
    kb_root = _kb(kb_root)
    document = find_document(ref, get_corpus(kb_root))
    revision = snapshot(document, summary=summary)
    get_store(kb_root).append(revision)
    return revision


def history(ref: str, kb_root: Path | None = None) -> list[Revision]:
    """Revisions of a document, newest first."""
    kb_root = _kb(kb_root)
    document = find_document(ref, get_corpus(kb_root))
    return get_store(kb_root).list(document.id)


def recent_changes(limit: int = RECENT_CHANGES_LIMIT, kb_root: Path | None = None) -> list[Revision]:
    """Newest revisions across every document in the KB."""
    return get_store(kb_root).recent(limit)


def _resolve_side(document: Document, revision_ref: str, store: FileRevisionStore) -> str:
    if revision_ref == CURRENT:
        return document.body
    revision = store.get(revision_ref)
    if revision.document_id != document.id:
        raise RevisionMismatchError(document.id, revision)
    return revision.body


def diff_revisions(
    ref: str,
    from_revision: str,
    to_revision: str = CURRENT,
    kb_root: Path | None = None,
) -> list[DiffLine]:
    """Diff two states of a document; either side may be ``"current"``."""
    kb_root = _kb(kb_root)
    document = find_document(ref, get_corpus(kb_root))
    store = get_store(kb_root)
    old_body = _resolve_side(document, from_revision, store)
    new_body = _resolve_side(document, to_revision, store)
    return diff_bodies(old_body, new_body)


def revert_document(
    ref: str,
    revision_id: str,
    kb_root: Path | None = None,
) -> Document:
    """Revert a document to a stored revision and write it back.

    The current state is snapshotted before the file is overwritten.
    """
    kb_root = _kb(kb_root)
    document = find_document(ref, get_corpus(kb_root))
    store = get_store(kb_root)
    reverted = revert(store, document, store.get(revision_id))
    save_document(reverted, kb_root)
    return reverted
