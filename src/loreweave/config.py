"""Configuration management for loreweave.

This module contains all configurable constants for the cross-referencing engine
and the environment lookups used by the CLI. Magic strings are documented here
rather than scattered throughout the codebase.
"""

import os
from pathlib import Path


class LoreweaveError(Exception):
    """Base class for errors raised by the loreweave adapters."""


class ConfigurationError(LoreweaveError):
    """Raised when required configuration is missing."""


# =============================================================================
# Knowledge Base Location
# =============================================================================

# Directory used when LOREWEAVE_KB_ROOT is not set
DEFAULT_KB_DIRNAME = "kb"

# Revision store directory name inside the KB root.
# Dot-prefixed so corpus loading never picks revisions up as documents.
DEFAULT_REVISIONS_DIRNAME = ".revisions"


def get_kb_root() -> Path:
    """Get the knowledge base root directory.

    Discovery order:
    1. LOREWEAVE_KB_ROOT environment variable (explicit override)
    2. ./kb/ relative to the current working directory, if it exists
    3. Error with helpful message

    Raises:
        ConfigurationError: If no KB can be found.
    """
    root = os.environ.get("LOREWEAVE_KB_ROOT")
    if root:
        return Path(root)

    local = Path.cwd() / DEFAULT_KB_DIRNAME
    if local.is_dir():
        return local

    raise ConfigurationError(
        "No knowledge base found. Options:\n"
        f"  1. Create ./{DEFAULT_KB_DIRNAME}/ and add markdown documents\n"
        "  2. Set LOREWEAVE_KB_ROOT to an existing directory of documents"
    )


def get_revisions_root(kb_root: Path | None = None) -> Path:
    """Get the revision store directory.

    Discovery order:
    1. LOREWEAVE_REVISIONS_DIR environment variable (explicit override)
    2. {kb_root}/.revisions/

    Raises:
        ConfigurationError: If no KB root can be determined.
    """
    root = os.environ.get("LOREWEAVE_REVISIONS_DIR")
    if root:
        return Path(root)

    if kb_root is None:
        kb_root = get_kb_root()
    return kb_root / DEFAULT_REVISIONS_DIRNAME


# =============================================================================
# Reference Markers
# =============================================================================

# Separates the target title from the display label in [[Target|Label]]
MARKER_LABEL_SEPARATOR = "|"

# Rendered HTML markers link to {prefix}{slug}
WIKI_LINK_HREF_PREFIX = "/articles/"

# CSS classes carried by rendered markers. Broken markers carry both.
WIKI_LINK_CLASS = "wiki-link"
BROKEN_LINK_CLASS = "wiki-link-broken"


# =============================================================================
# Revisions
# =============================================================================

# Summary stored on the snapshot taken right before a revert.
# Formatted with the reverted-to revision's creation time in ISO 8601.
REVERT_SUMMARY_TEMPLATE = "Reverted to revision from {created}"

# Summary stored on the snapshot taken before applying detected references
DETECT_APPLY_SUMMARY = "Before applying detected references"

# Number of revisions shown by the recent-changes timeline
RECENT_CHANGES_LIMIT = 50
