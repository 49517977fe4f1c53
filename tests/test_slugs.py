"""Tests for title to slug normalization."""

from __future__ import annotations

import pytest

from loreweave.slugs import is_valid_slug, normalize


class TestNormalize:
    """Tests for normalize()."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Castle Black", "castle-black"),
            ("Dragon's Lair!", "dragons-lair"),
            ("Dragon’s Lair", "dragons-lair"),
            ("  Leading and trailing  ", "leading-and-trailing"),
            ("Multiple   spaces", "multiple-spaces"),
            ("Under_score / Slash", "under-score-slash"),
            ("Version 2.0", "version-2-0"),
            ("---Dashes---", "dashes"),
            ("ALLCAPS", "allcaps"),
            ("Café Noir", "caf-noir"),
        ],
    )
    def test_examples(self, title: str, expected: str):
        """Runs of non-alphanumerics collapse to one hyphen."""
        assert normalize(title) == expected

    @pytest.mark.parametrize("title", ["", "   ", "!!!", "'", "—"])
    def test_no_valid_target(self, title: str):
        """Titles without any a-z0-9 character normalize to an empty slug."""
        assert normalize(title) == ""

    @pytest.mark.parametrize(
        "title",
        ["Castle Black", "Dragon's Lair!", "a--b", "  x  y  ", "Ünïcödé Title", "-lead"],
    )
    def test_idempotent(self, title: str):
        """Normalizing a slug again leaves it unchanged."""
        once = normalize(title)
        assert normalize(once) == once

    def test_deterministic(self):
        """Same input always yields the same output."""
        assert {normalize("Night's Watch") for _ in range(5)} == {"nights-watch"}


class TestIsValidSlug:
    """Tests for is_valid_slug()."""

    @pytest.mark.parametrize("slug", ["castle-black", "a", "v2-0"])
    def test_valid(self, slug: str):
        assert is_valid_slug(slug)

    @pytest.mark.parametrize("slug", ["", "Castle-Black", "castle black", "-x", "x-"])
    def test_invalid(self, slug: str):
        assert not is_valid_slug(slug)
