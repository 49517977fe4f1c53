"""Append-only revision storage.

The engine needs three things from a store: append a revision, list a
document's revisions newest first, and fetch one by id. ``recent`` adds a
newest-first timeline across all documents. ``FileRevisionStore``
keeps each revision as its own markdown file with YAML frontmatter, laid out
as ``<root>/<document_id>/<timestamp>-<revision_id>.md``. Files are written
once and never rewritten. Bodies come back with surrounding whitespace
trimmed, the same way document bodies are read from the corpus.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

import frontmatter
import yaml

from .config import LoreweaveError
from .models import Revision

log = logging.getLogger(__name__)


class RevisionNotFoundError(LoreweaveError):
    """Raised when a revision id is not in the store."""

    def __init__(self, revision_id: str) -> None:
        self.revision_id = revision_id
        super().__init__(f"Revision not found: {revision_id}")


class RevisionStore(Protocol):
    """Storage the revision operations write snapshots into."""

    def append(self, revision: Revision) -> None: ...

    def list(self, document_id: str) -> list[Revision]: ...

    def get(self, revision_id: str) -> Revision: ...

    def recent(self, limit: int) -> list[Revision]: ...


def _newest_first(revisions: list[Revision]) -> list[Revision]:
    return sorted(revisions, key=lambda r: r.created, reverse=True)


class MemoryRevisionStore:
    """In-process store, for tests and short-lived callers."""

    def __init__(self) -> None:
        self._revisions: list[Revision] = []

    def append(self, revision: Revision) -> None:
        self._revisions.append(revision)

    def list(self, document_id: str) -> list[Revision]:
        return _newest_first([r for r in self._revisions if r.document_id == document_id])

    def get(self, revision_id: str) -> Revision:
        for revision in self._revisions:
            if revision.id == revision_id:
                return revision
        raise RevisionNotFoundError(revision_id)

    def recent(self, limit: int) -> list[Revision]:
        """Newest revisions across every document."""
        return _newest_first(self._revisions)[: max(limit, 0)]

    def __len__(self) -> int:
        return len(self._revisions)


def _ensure_aware(dt: datetime) -> datetime:
    # YAML timestamps without an offset load as naive datetimes
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class FileRevisionStore:
    """Revisions stored as frontmatter markdown files under a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _document_dir(self, document_id: str) -> Path:
        return self.root / document_id

    def _revision_path(self, revision: Revision) -> Path:
        stamp = revision.created.astimezone(UTC).strftime("%Y%m%dT%H%M%S%fZ")
        return self._document_dir(revision.document_id) / f"{stamp}-{revision.id}.md"

    def append(self, revision: Revision) -> None:
        path = self._revision_path(revision)
        if path.exists():
            raise FileExistsError(f"Revision already stored: {path}")

        metadata = {
            "id": revision.id,
            "document_id": revision.document_id,
            "title": revision.title,
            "created": revision.created.isoformat(),
        }
        if revision.summary:
            metadata["summary"] = revision.summary

        path.parent.mkdir(parents=True, exist_ok=True)
        header = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True)
        path.write_text(f"---\n{header}---\n\n{revision.body}", encoding="utf-8")
        log.debug("Stored revision %s for %s", revision.id, revision.document_id)

    def _load(self, path: Path) -> Revision:
        post = frontmatter.load(str(path))
        meta = post.metadata
        created = meta["created"]
        if isinstance(created, str):
            created = datetime.fromisoformat(created)
        return Revision(
            id=str(meta["id"]),
            document_id=str(meta["document_id"]),
            title=str(meta["title"]),
            body=post.content,
            created=_ensure_aware(created),
            summary=meta.get("summary"),
        )

    def _iter_files(self, directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return [p for p in directory.rglob("*.md") if p.is_file()]

    def list(self, document_id: str) -> list[Revision]:
        revisions = []
        for path in self._iter_files(self._document_dir(document_id)):
            revision = self._load(path)
            # Nested document ids share directory prefixes
            if revision.document_id == document_id:
                revisions.append(revision)
        return _newest_first(revisions)

    def get(self, revision_id: str) -> Revision:
        for path in self._iter_files(self.root):
            if path.stem.endswith(f"-{revision_id}"):
                return self._load(path)
        raise RevisionNotFoundError(revision_id)

    def recent(self, limit: int) -> list[Revision]:
        """Newest revisions across every document.

        File names start with a fixed-width UTC stamp, so only the newest
        ``limit`` files are parsed.
        """
        if limit <= 0:
            return []
        paths = sorted(self._iter_files(self.root), key=lambda p: p.name, reverse=True)
        return _newest_first([self._load(path) for path in paths[:limit]])
