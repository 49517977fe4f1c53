"""Line-level revision diffs and snapshot-based editing.

``diff`` is a plain longest-common-subsequence diff over two line lists,
built in O(m*n) time and space with no truncation. Unchanged blank lines
are dropped from its output.

Edits and reverts always snapshot the current state into a revision store
before returning the new state, so no prior state is ever lost.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Literal

from .config import REVERT_SUMMARY_TEMPLATE, LoreweaveError
from .models import DiffLine, Document, Revision
from .parser.text import body_to_lines
from .store import RevisionStore

log = logging.getLogger(__name__)

_PREFIXES = {"same": "  ", "added": "+ ", "removed": "- "}


class RevisionMismatchError(LoreweaveError):
    """Raised when reverting a document to another document's revision."""

    def __init__(self, document_id: str, revision: Revision) -> None:
        self.document_id = document_id
        self.revision = revision
        super().__init__(
            f"Revision {revision.id} belongs to {revision.document_id!r}, not {document_id!r}"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Diff
# ─────────────────────────────────────────────────────────────────────────────


def _lcs_table(old_lines: Sequence[str], new_lines: Sequence[str]) -> list[list[int]]:
    m, n = len(old_lines), len(new_lines)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        row, prev = dp[i], dp[i - 1]
        old = old_lines[i - 1]
        for j in range(1, n + 1):
            if old == new_lines[j - 1]:
                row[j] = prev[j - 1] + 1
            else:
                row[j] = max(prev[j], row[j - 1])
    return dp


def diff(old_lines: Sequence[str], new_lines: Sequence[str]) -> list[DiffLine]:
    """Compute a line diff between two line sequences.

    Backtracks the LCS table from the end. On a tie between dropping an old
    line and taking a new one, the new line is emitted first (so in output
    order, removals precede additions within a changed block).

    Args:
        old_lines: Lines of the earlier snapshot.
        new_lines: Lines of the later snapshot.

    Returns:
        Diff lines in document order, without unchanged blank lines.
    """
    dp = _lcs_table(old_lines, new_lines)
    result: list[DiffLine] = []
    i, j = len(old_lines), len(new_lines)

    while i > 0 or j > 0:
        if i > 0 and j > 0 and old_lines[i - 1] == new_lines[j - 1]:
            result.append(DiffLine(kind="same", text=old_lines[i - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or dp[i][j - 1] >= dp[i - 1][j]):
            result.append(DiffLine(kind="added", text=new_lines[j - 1]))
            j -= 1
        else:
            result.append(DiffLine(kind="removed", text=old_lines[i - 1]))
            i -= 1

    result.reverse()
    return [line for line in result if line.kind != "same" or line.text.strip()]


def diff_bodies(old_body: str, new_body: str) -> list[DiffLine]:
    """Diff two stored bodies by their plain-text lines."""
    return diff(body_to_lines(old_body), body_to_lines(new_body))


def reconstruct(lines: Sequence[DiffLine], side: Literal["old", "new"]) -> list[str]:
    """Rebuild one side of a diff.

    ``"old"`` keeps same and removed lines, ``"new"`` keeps same and added
    lines. Unchanged blank lines were dropped by ``diff`` and do not come back.
    """
    keep = "removed" if side == "old" else "added"
    return [line.text for line in lines if line.kind in ("same", keep)]


def has_changes(lines: Sequence[DiffLine]) -> bool:
    return any(line.kind != "same" for line in lines)


def format_diff(lines: Sequence[DiffLine]) -> str:
    """Render a diff one line each, prefixed with "+ ", "- " or two spaces."""
    return "\n".join(f"{_PREFIXES[line.kind]}{line.text}" for line in lines)


# ─────────────────────────────────────────────────────────────────────────────
# Revisions
# ─────────────────────────────────────────────────────────────────────────────


def snapshot(
    document: Document,
    summary: str | None = None,
    created: datetime | None = None,
) -> Revision:
    """Capture a document's current title and body as a new revision."""
    return Revision(
        id=uuid.uuid4().hex,
        document_id=document.id,
        title=document.title,
        body=document.body,
        created=created or datetime.now(UTC),
        summary=summary,
    )


def record_edit(
    store: RevisionStore,
    document: Document,
    *,
    title: str | None = None,
    body: str | None = None,
    summary: str | None = None,
) -> Document:
    """Snapshot the pre-edit state, then return the edited document.

    Fields left as None keep their current value. The slug follows the title.
    """
    store.append(snapshot(document, summary=summary))
    new_title = document.title if title is None else title
    new_body = document.body if body is None else body
    return Document(id=document.id, title=new_title, body=new_body)


def revert(store: RevisionStore, document: Document, revision: Revision) -> Document:
    """Revert a document to a prior revision.

    The current state is appended to ``store`` first, with a summary naming
    the revision it was superseded by; only then is the reverted document
    returned. The caller persists the returned document.

    Raises:
        RevisionMismatchError: If the revision belongs to another document.
            Nothing is written to the store in that case.
    """
    if revision.document_id != document.id:
        raise RevisionMismatchError(document.id, revision)

    summary = REVERT_SUMMARY_TEMPLATE.format(created=revision.created.isoformat())
    store.append(snapshot(document, summary=summary))
    log.debug("Reverted %s to revision %s", document.id, revision.id)

    return Document(id=document.id, title=revision.title, body=revision.body)
