"""loreweave: document cross-referencing and versioning engine.

Resolves [[wiki links]] against a title catalog, indexes backlinks, detects
unlinked mentions of known titles, and diffs document revisions.
"""

from .detection import apply_spans, detect, detect_in_body
from .references import (
    build_backlink_index,
    find_backlinks,
    find_broken_references,
    resolve_references,
)
from .revisions import diff, diff_bodies, reconstruct, record_edit, revert, snapshot
from .slugs import normalize

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "apply_spans",
    "build_backlink_index",
    "detect",
    "detect_in_body",
    "diff",
    "diff_bodies",
    "find_backlinks",
    "find_broken_references",
    "normalize",
    "reconstruct",
    "record_edit",
    "resolve_references",
    "revert",
    "snapshot",
]
