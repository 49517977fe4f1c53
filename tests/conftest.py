"""Shared test fixtures for the loreweave test suite.

Design:
- tmp_kb: Creates isolated KB in temp directory, with LOREWEAVE_KB_ROOT set
- tmp_kb_with_entries: KB seeded with a few cross-referencing documents
- cli_invoke: CliRunner bound to the isolated KB
"""

import os
from pathlib import Path
from typing import Generator

import pytest
from click.testing import CliRunner

from loreweave.cli import cli


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture
def tmp_kb(tmp_path: Path) -> Generator[Path, None, None]:
    """Create isolated KB directory.

    Sets LOREWEAVE_KB_ROOT to the temp directory, yields the path, then
    restores the environment.

    Usage:
        def test_something(tmp_kb):
            create_entry(tmp_kb, "alice.md", "Alice", "Body")
    """
    kb_root = tmp_path / "kb"
    kb_root.mkdir()

    original_kb_root = os.environ.get("LOREWEAVE_KB_ROOT")
    original_revisions = os.environ.pop("LOREWEAVE_REVISIONS_DIR", None)
    os.environ["LOREWEAVE_KB_ROOT"] = str(kb_root)

    yield kb_root

    if original_kb_root is not None:
        os.environ["LOREWEAVE_KB_ROOT"] = original_kb_root
    else:
        os.environ.pop("LOREWEAVE_KB_ROOT", None)
    if original_revisions is not None:
        os.environ["LOREWEAVE_REVISIONS_DIR"] = original_revisions


@pytest.fixture
def tmp_kb_with_entries(tmp_kb: Path) -> Path:
    """KB with sample entries that reference each other.

    Creates:
    - castle-black.md -> references Night's Watch and Winterfell (missing)
    - nights-watch.md -> references Castle Black
    - the-wall.md     -> mentions Castle Black without a reference
    """
    create_entry(
        tmp_kb,
        "castle-black.md",
        "Castle Black",
        "Headquarters of the [[Night's Watch]]. Ravens fly to [[Winterfell]].",
    )
    create_entry(
        tmp_kb,
        "nights-watch.md",
        "Night's Watch",
        "The order is based at [[Castle Black|the castle]].",
    )
    create_entry(
        tmp_kb,
        "the-wall.md",
        "The Wall",
        "## Castle Black\n\nCastle Black guards the Wall. Ask the Night's Watch.",
    )
    return tmp_kb


@pytest.fixture
def cli_invoke(runner: CliRunner, tmp_kb: Path):
    """Helper for invoking CLI with proper isolation.

    Usage:
        def test_links(cli_invoke):
            result = cli_invoke(["links", "castle-black"])
            assert result.exit_code == 0
    """
    def _invoke(args: list[str], input: str | None = None, catch_exceptions: bool = False):
        return runner.invoke(
            cli,
            args,
            input=input,
            catch_exceptions=catch_exceptions,
            env={"LOREWEAVE_KB_ROOT": str(tmp_kb)},
        )
    return _invoke


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions (for test code, not fixtures)
# ─────────────────────────────────────────────────────────────────────────────


def create_entry(kb_root: Path, path: str, title: str, content: str) -> Path:
    """Helper to create a test entry with frontmatter.

    Usage in tests:
        from conftest import create_entry
        entry = create_entry(tmp_kb, "test.md", "Test", "Content")
    """
    entry_path = kb_root / path
    entry_path.parent.mkdir(parents=True, exist_ok=True)

    frontmatter = f"""---
title: "{title}"
created: 2024-01-15
---

{content}
"""
    entry_path.write_text(frontmatter, encoding="utf-8")
    return entry_path
