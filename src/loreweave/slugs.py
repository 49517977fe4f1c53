"""Title to slug normalization.

Every component resolves titles through ``normalize``; reference resolution,
phrase detection, and revision storage must agree byte for byte.
"""

import re

# Apostrophes are dropped rather than hyphenated so possessives stay joined:
# "Dragon's Lair" -> "dragons-lair".
_APOSTROPHES = re.compile(r"['‘’]")
_NON_SLUG_RUN = re.compile(r"[^a-z0-9]+")


def normalize(title: str) -> str:
    """Convert a title to its canonical slug (lowercase, hyphens, a-z0-9 only).

    Total and idempotent. An empty result means the title has no valid target.
    """
    slug = title.lower()
    slug = _APOSTROPHES.sub("", slug)
    slug = _NON_SLUG_RUN.sub("-", slug)
    return slug.strip("-")


def is_valid_slug(slug: str) -> bool:
    """True for a non-empty slug that is already in normalized form."""
    return bool(slug) and normalize(slug) == slug
