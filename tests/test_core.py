"""Tests for KB-level operations in loreweave.core."""

from __future__ import annotations

from pathlib import Path

import frontmatter
import pytest

from conftest import create_entry
from loreweave import core
from loreweave.config import ConfigurationError, get_kb_root, get_revisions_root
from loreweave.models import Document
from loreweave.revisions import RevisionMismatchError, has_changes


class TestConfig:
    """Tests for KB and revision store discovery."""

    def test_env_override(self, tmp_kb: Path):
        assert get_kb_root() == tmp_kb
        assert get_revisions_root() == tmp_kb / ".revisions"

    def test_revisions_env_override(self, tmp_kb: Path, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("LOREWEAVE_REVISIONS_DIR", str(tmp_path / "elsewhere"))
        assert get_revisions_root() == tmp_path / "elsewhere"

    def test_local_kb_dir(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("LOREWEAVE_KB_ROOT", raising=False)
        (tmp_path / "kb").mkdir()
        monkeypatch.chdir(tmp_path)

        assert get_kb_root() == tmp_path / "kb"

    def test_missing_kb(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("LOREWEAVE_KB_ROOT", raising=False)
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigurationError):
            get_kb_root()


class TestFindDocument:
    """Tests for find_document()."""

    @pytest.fixture
    def corpus(self) -> list[Document]:
        return [
            Document(id="lore/castle-black", title="Castle Black"),
            Document(id="dragons", title="Dragon's Lair"),
        ]

    @pytest.mark.parametrize(
        "ref,expected",
        [
            ("lore/castle-black", "lore/castle-black"),
            ("lore/castle-black.md", "lore/castle-black"),
            ("/lore/castle-black/", "lore/castle-black"),
            ("Castle Black", "lore/castle-black"),
            ("castle-black", "lore/castle-black"),
            ("Dragon's Lair", "dragons"),
            ("dragons", "dragons"),
        ],
    )
    def test_lookup(self, corpus, ref: str, expected: str):
        assert core.find_document(ref, corpus).id == expected

    @pytest.mark.parametrize("ref", ["Winterfell", "", "!!!"])
    def test_not_found(self, corpus, ref: str):
        with pytest.raises(core.DocumentNotFoundError):
            core.find_document(ref, corpus)


class TestSaveDocument:
    """Tests for save_document()."""

    def test_preserves_other_frontmatter(self, tmp_kb: Path):
        path = create_entry(tmp_kb, "alice.md", "Alice", "Old body")

        core.save_document(Document(id="alice", title="Alice Liddell", body="New body"))

        post = frontmatter.load(str(path))
        assert post["title"] == "Alice Liddell"
        assert post.content == "New body"
        assert "created" in post.metadata

    def test_creates_new_file(self, tmp_kb: Path):
        core.save_document(Document(id="lore/new", title="New", body="Fresh"))

        post = frontmatter.load(str(tmp_kb / "lore" / "new.md"))
        assert post["title"] == "New"
        assert post.content == "Fresh"


class TestOperations:
    """Tests for corpus-backed operations."""

    def test_links(self, tmp_kb_with_entries: Path):
        result = core.links("castle-black")
        assert {r.target_title: r.status for r in result.references} == {
            "Night's Watch": "resolved",
            "Winterfell": "broken",
        }

    def test_backlinks(self, tmp_kb_with_entries: Path):
        assert [b.id for b in core.backlinks("Castle Black")] == ["nights-watch"]

    def test_broken_links(self, tmp_kb_with_entries: Path):
        broken = core.broken_links()
        assert [(b.source_id, b.slug) for b in broken] == [("castle-black", "winterfell")]

    def test_catalog_read_fresh_each_call(self, tmp_kb_with_entries: Path):
        assert core.links("castle-black").broken

        create_entry(tmp_kb_with_entries, "winterfell.md", "Winterfell", "Cold.")

        assert core.links("castle-black").broken == []

    def test_suggest_links(self, tmp_kb_with_entries: Path):
        document, spans = core.suggest_links("the-wall")

        assert document.id == "the-wall"
        assert [(s.start, s.end, s.matched_title) for s in spans] == [
            (17, 29, "Castle Black"),
            (37, 45, "The Wall"),
            (55, 68, "Night's Watch"),
        ]

    def test_suggest_links_apply_only(self, tmp_kb_with_entries: Path):
        document, spans = core.suggest_links("the-wall", only=["castle black"], apply=True)

        assert [s.matched_title for s in spans] == ["Castle Black"]
        assert document.body.startswith("## Castle Black\n\n[[Castle Black]] guards")

        on_disk = frontmatter.load(str(tmp_kb_with_entries / "the-wall.md"))
        assert on_disk.content == document.body

        (stored,) = core.history("the-wall")
        assert "[[" not in stored.body
        assert [b.id for b in core.backlinks("castle-black")] == ["nights-watch", "the-wall"]

    def test_snapshot_diff_revert(self, tmp_kb_with_entries: Path):
        revision = core.snapshot_document("castle-black", summary="before edit")
        create_entry(tmp_kb_with_entries, "castle-black.md", "Castle Black", "Abandoned.")

        lines = core.diff_revisions("castle-black", revision.id)
        assert ("added", "Abandoned.") in [(l.kind, l.text) for l in lines]
        assert any(l.kind == "removed" for l in lines)

        reverted = core.revert_document("castle-black", revision.id)
        assert reverted.body == revision.body

        history = core.history("castle-black")
        assert len(history) == 2
        assert history[0].body == "Abandoned."
        assert history[0].summary.startswith("Reverted to revision from ")
        assert not has_changes(core.diff_revisions("castle-black", revision.id, "current"))

    def test_diff_rejects_foreign_revision(self, tmp_kb_with_entries: Path):
        revision = core.snapshot_document("nights-watch")

        with pytest.raises(RevisionMismatchError):
            core.diff_revisions("castle-black", revision.id)

    def test_unknown_document(self, tmp_kb_with_entries: Path):
        with pytest.raises(core.DocumentNotFoundError):
            core.links("winterfell")

    def test_apply_titles_wikitext_cannot_express(self, tmp_kb: Path):
        create_entry(tmp_kb, "foo-bar.md", "Foo|Bar", "A pipe in the title.")
        create_entry(tmp_kb, "item-3.md", "Item [3]", "Brackets in the title.")
        create_entry(tmp_kb, "notes.md", "Notes", "See Foo|Bar and Item [3] here.")

        document, spans = core.suggest_links("notes", apply=True)

        assert [s.matched_title for s in spans] == ["Foo|Bar", "Item [3]"]
        result = core.links("notes")
        assert [(r.target_title, r.status) for r in result.references] == [
            ("Foo|Bar", "resolved"),
            ("Item [3]", "resolved"),
        ]

    def test_recent_changes(self, tmp_kb_with_entries: Path):
        assert core.recent_changes() == []

        core.snapshot_document("castle-black")
        core.snapshot_document("the-wall")

        assert {r.document_id for r in core.recent_changes()} == {"castle-black", "the-wall"}
        assert len(core.recent_changes(limit=1)) == 1
