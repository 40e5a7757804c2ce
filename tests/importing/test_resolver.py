"""Tests for id conflict resolution and cross-reference rewriting."""

import pytest

from marvin.importing.resolver import resolve_conflicts, update_cross_references
from marvin.importing.types import ConflictStrategy, IncomingDocument
from marvin.storage.types import DocumentFrontmatter

from tests.conftest import make_frontmatter


def _incoming(doc_id: str, doc_type: str, content: str = "", title: str = "Incoming") -> IncomingDocument:
    return IncomingDocument(
        frontmatter=DocumentFrontmatter.from_dict(make_frontmatter(doc_id, doc_type, title=title)),
        content=content,
        source_path=f"/import/{doc_id}.md",
    )


class TestResolveConflicts:
    """Tests for resolve_conflicts."""

    def test_no_conflicts_keep_ids(self, store):
        result = resolve_conflicts(
            [_incoming("D-001", "decision"), _incoming("A-001", "action")],
            store,
            ConflictStrategy.RENUMBER,
        )
        assert [d.new_id for d in result.resolved] == ["D-001", "A-001"]
        assert result.id_mapping == {"D-001": "D-001", "A-001": "A-001"}
        assert result.skipped == []

    def test_renumber_allocates_next_free_id(self, store):
        store.create("decision", {"title": "Existing"})
        result = resolve_conflicts([_incoming("D-001", "decision")], store, ConflictStrategy.RENUMBER)

        resolved = result.resolved[0]
        assert resolved.original_id == "D-001"
        assert resolved.new_id == "D-002"
        assert resolved.frontmatter.id == "D-002"
        assert result.id_mapping == {"D-001": "D-002"}

    def test_renumbered_ids_are_distinct_within_batch(self, store):
        store.create("decision", {"title": "One"})
        store.create("decision", {"title": "Two"})
        incoming = [_incoming("D-001", "decision"), _incoming("D-002", "decision")]

        result = resolve_conflicts(incoming, store, "renumber")

        assert [d.new_id for d in result.resolved] == ["D-003", "D-004"]

    def test_renumber_avoids_ids_claimed_by_earlier_documents(self, store):
        store.create("decision", {"title": "Existing"})
        # D-002 is free in the store but kept by the first incoming document
        incoming = [_incoming("D-002", "decision"), _incoming("D-001", "decision")]

        result = resolve_conflicts(incoming, store, ConflictStrategy.RENUMBER)

        assert [d.new_id for d in result.resolved] == ["D-002", "D-003"]

    def test_renumber_avoids_ids_owned_by_later_documents(self, store):
        store.create("decision", {"title": "Existing"})
        # D-002 is free in the store and belongs to the second incoming document
        incoming = [_incoming("D-001", "decision"), _incoming("D-002", "decision")]

        result = resolve_conflicts(incoming, store, ConflictStrategy.RENUMBER)

        assert [(d.original_id, d.new_id) for d in result.resolved] == [
            ("D-001", "D-003"),
            ("D-002", "D-002"),
        ]
        assert result.id_mapping == {"D-001": "D-003", "D-002": "D-002"}

    def test_duplicate_ids_in_batch_conflict(self, store):
        incoming = [_incoming("Q-001", "question", title="First"), _incoming("Q-001", "question", title="Second")]

        result = resolve_conflicts(incoming, store, ConflictStrategy.RENUMBER)

        assert [d.new_id for d in result.resolved] == ["Q-001", "Q-002"]
        assert result.id_mapping == {"Q-001": "Q-001"}

    def test_skip(self, store):
        store.create("decision", {"title": "Existing"})
        incoming = [_incoming("D-001", "decision"), _incoming("A-001", "action")]

        result = resolve_conflicts(incoming, store, ConflictStrategy.SKIP)

        assert result.skipped == ["D-001"]
        assert [d.source_path for d in result.skipped_documents] == ["/import/D-001.md"]
        assert [d.new_id for d in result.resolved] == ["A-001"]
        assert "D-001" not in result.id_mapping

    def test_overwrite_keeps_id(self, store):
        store.create("decision", {"title": "Existing"})
        result = resolve_conflicts(
            [_incoming("D-001", "decision", title="Replacement")], store, ConflictStrategy.OVERWRITE
        )
        assert result.resolved[0].new_id == "D-001"
        assert result.resolved[0].frontmatter.title == "Replacement"
        assert result.id_mapping == {"D-001": "D-001"}

    def test_invalid_strategy(self, store):
        with pytest.raises(ValueError):
            resolve_conflicts([], store, "merge")


class TestUpdateCrossReferences:
    """Tests for update_cross_references."""

    def test_rewrites_mapped_ids(self):
        content = "See D-001 and A-001.\nDepends on D-001."
        mapping = {"D-001": "D-005", "A-001": "A-003"}
        assert update_cross_references(content, mapping) == "See D-005 and A-003.\nDepends on D-005."

    def test_context_sentence(self):
        mapping = {"D-001": "D-010", "A-003": "A-020"}
        content = "See D-001 for context. Related action: A-003."
        assert update_cross_references(content, mapping) == (
            "See D-010 for context. Related action: A-020."
        )

    def test_text_without_ids_unchanged(self):
        assert update_cross_references("No references here.", {"D-001": "D-002"}) == (
            "No references here."
        )

    def test_unmapped_ids_untouched(self):
        assert update_cross_references("Q-010 stays", {"D-001": "D-002"}) == "Q-010 stays"

    def test_replacement_is_simultaneous(self):
        mapping = {"D-001": "D-002", "D-002": "D-003"}
        assert update_cross_references("D-001, D-002", mapping) == "D-002, D-003"

    def test_word_boundaries(self):
        mapping = {"D-001": "D-009"}
        assert update_cross_references("XD-001 D-0010 (D-001)", mapping) == "XD-001 D-0010 (D-009)"

    def test_empty_mapping(self):
        assert update_cross_references("D-001", {}) == "D-001"
