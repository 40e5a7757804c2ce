"""Tests for the directory-backed document store."""

import logging
from pathlib import Path

import pytest

from marvin.exceptions import (DocumentConflictError, DocumentNotFoundError,
                               UnknownDocumentTypeError)
from marvin.storage.store import DocumentStore, slugify
from marvin.storage.types import DocumentQuery, DocumentTypeRegistration


class TestNextId:
    """Tests for per-type id allocation."""

    def test_empty_directory_starts_at_one(self, store):
        assert store.next_id("decision") == "D-001"

    def test_missing_directory_starts_at_one(self, store, marvin_dir):
        assert not (marvin_dir / "docs" / "features").exists()
        assert store.next_id("feature") == "F-001"

    def test_max_plus_one_with_gaps(self, store, marvin_dir, write_doc):
        write_doc(marvin_dir / "docs" / "decisions" / "D-001.md", "D-001", "decision")
        write_doc(marvin_dir / "docs" / "decisions" / "D-005.md", "D-005", "decision")
        assert store.next_id("decision") == "D-006"

    def test_ignores_non_matching_files(self, store, marvin_dir, write_doc):
        decisions = marvin_dir / "docs" / "decisions"
        write_doc(decisions / "D-002.md", "D-002", "decision")
        (decisions / "notes.md").write_text("scratch", encoding="utf-8")
        (decisions / "D-009.txt").write_text("not markdown", encoding="utf-8")
        assert store.next_id("decision") == "D-003"

    def test_reads_disk_not_index(self, store, marvin_dir, write_doc):
        store.create("action", {"title": "First"})
        # Written behind the store's back
        write_doc(marvin_dir / "docs" / "actions" / "A-010.md", "A-010", "action")
        assert store.next_id("action") == "A-011"

    def test_unknown_type(self, store):
        with pytest.raises(UnknownDocumentTypeError, match="Unknown document type: widget"):
            store.next_id("widget")


class TestCreate:
    """Tests for DocumentStore.create."""

    def test_create_fills_defaults(self, store, marvin_dir):
        doc = store.create("decision", {"title": "Use REST"}, "We chose REST.")

        assert doc.id == "D-001"
        assert doc.frontmatter.status == "open"
        assert doc.frontmatter.created == doc.frontmatter.updated
        assert doc.frontmatter.created.endswith("Z")
        assert Path(doc.file_path) == marvin_dir / "docs" / "decisions" / "D-001.md"
        assert "We chose REST." in Path(doc.file_path).read_text(encoding="utf-8")

    def test_create_without_title_is_untitled(self, store):
        assert store.create("question").frontmatter.title == "Untitled"

    def test_caller_cannot_override_id_or_type(self, store):
        doc = store.create("action", {"id": "A-999", "type": "decision", "title": "Ship"})
        assert doc.id == "A-001"
        assert doc.frontmatter.type == "action"

    def test_none_values_ignored(self, store):
        doc = store.create("action", {"title": "Ship", "owner": None, "status": None})
        assert doc.frontmatter.owner is None
        assert doc.frontmatter.status == "open"

    def test_extra_fields_persisted(self, store):
        doc = store.create("decision", {"title": "Use REST", "decision": "REST"})
        assert store.get(doc.id).frontmatter.extra["decision"] == "REST"

    def test_sequential_ids(self, store):
        ids = [store.create("action", {"title": f"Task {n}"}).id for n in range(3)]
        assert ids == ["A-001", "A-002", "A-003"]

    def test_unknown_type(self, store):
        with pytest.raises(UnknownDocumentTypeError):
            store.create("widget", {"title": "x"})

    def test_indexed_after_create(self, store):
        doc = store.create("decision", {"title": "Use REST"})
        assert store.indexed(doc.id).title == "Use REST"


class TestDatedFilenames:
    """Tests for types stored under date-and-slug file names."""

    def test_meeting_file_name(self, store, marvin_dir):
        doc = store.create(
            "meeting", {"title": "Sprint Planning", "created": "2026-02-03T10:00:00Z"}
        )
        assert Path(doc.file_path) == (
            marvin_dir / "docs" / "meetings" / "2026-02-03-sprint-planning.md"
        )

    def test_meeting_ids_advance_from_frontmatter(self, store):
        first = store.create("meeting", {"title": "Kickoff", "created": "2026-02-03T10:00:00Z"})
        second = store.create("meeting", {"title": "Review", "created": "2026-02-04T10:00:00Z"})
        assert first.id == "M-001"
        assert second.id == "M-002"

    def test_same_day_same_title_gets_id_suffix(self, store):
        fields = {"title": "Standup", "created": "2026-02-03T09:00:00Z"}
        first = store.create("meeting", fields)
        second = store.create("meeting", fields)
        assert Path(first.file_path).name == "2026-02-03-standup.md"
        assert Path(second.file_path).name == "2026-02-03-standup-M-002.md"

    def test_slugify(self):
        assert slugify("Q3 Review: API & UI!") == "q3-review-api-ui"


class TestReads:
    """Tests for get, list and counts."""

    def test_get_missing_returns_none(self, store):
        assert store.get("D-404") is None

    def test_get_finds_across_types(self, store):
        store.create("decision", {"title": "Use REST"})
        action = store.create("action", {"title": "Write API"})
        assert store.get(action.id).frontmatter.title == "Write API"

    def test_list_filters(self, store):
        store.create("action", {"title": "One", "owner": "alice"})
        store.create("action", {"title": "Two", "owner": "bob", "status": "done"})
        store.create("decision", {"title": "Three", "owner": "alice"})

        assert len(store.list()) == 3
        assert {d.id for d in store.list(DocumentQuery(type="action"))} == {"A-001", "A-002"}
        assert [d.id for d in store.list(DocumentQuery(owner="alice", type="decision"))] == ["D-001"]
        assert [d.id for d in store.list(DocumentQuery(status="done"))] == ["A-002"]

    def test_list_unknown_type_is_empty(self, store):
        store.create("action", {"title": "One"})
        assert store.list(DocumentQuery(type="widget")) == []

    def test_list_by_tag(self, store):
        store.create("question", {"title": "Tagged", "tags": ["imported"]})
        store.create("question", {"title": "Plain"})
        assert [d.frontmatter.title for d in store.list(DocumentQuery(tag="imported"))] == ["Tagged"]

    def test_counts(self, store):
        store.create("action", {"title": "One"})
        store.create("action", {"title": "Two"})
        counts = store.counts()
        assert counts["action"] == 2
        assert counts["decision"] == 0
        assert counts["meeting"] == 0

    def test_unparsable_file_skipped(self, marvin_dir, write_doc, caplog):
        decisions = marvin_dir / "docs" / "decisions"
        write_doc(decisions / "D-001.md", "D-001", "decision")
        (decisions / "D-002.md").write_text("---\ntitle: [broken\n---\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            store = DocumentStore(marvin_dir)

        assert [d.id for d in store.list()] == ["D-001"]
        assert store.indexed("D-001") is not None
        assert "Skipping unreadable document" in caplog.text


class TestImportDocument:
    """Tests for DocumentStore.import_document."""

    def test_keeps_caller_id(self, store, marvin_dir):
        doc = store.import_document(
            "decision",
            {"id": "D-042", "title": "Imported", "type": "decision", "status": "decided",
             "created": "2025-01-01T00:00:00Z", "updated": "2025-01-01T00:00:00Z"},
            "Body",
        )
        assert doc.id == "D-042"
        assert (marvin_dir / "docs" / "decisions" / "D-042.md").exists()
        assert store.get("D-042").frontmatter.created == "2025-01-01T00:00:00Z"

    def test_existing_id_conflicts(self, store):
        existing = store.create("decision", {"title": "Use REST"})
        with pytest.raises(DocumentConflictError, match="Document D-001 already exists"):
            store.import_document("decision", existing.frontmatter, "Again")

    def test_unknown_type(self, store):
        with pytest.raises(UnknownDocumentTypeError):
            store.import_document("widget", {"id": "W-001", "type": "widget"})


class TestUpdate:
    """Tests for DocumentStore.update."""

    def test_merges_fields_and_keeps_body(self, store):
        doc = store.create("action", {"title": "Write API", "owner": "alice"}, "Details")
        updated = store.update(doc.id, {"status": "done", "owner": None})

        assert updated.frontmatter.status == "done"
        assert updated.frontmatter.owner == "alice"
        assert updated.content == "Details"
        assert updated.file_path == doc.file_path
        assert store.get(doc.id).frontmatter.status == "done"

    def test_replaces_body(self, store):
        doc = store.create("action", {"title": "Write API"}, "Old")
        assert store.update(doc.id, {}, "New").content == "New"

    def test_refreshes_updated_timestamp(self, store):
        doc = store.create("action", {"title": "Write API", "updated": "2020-01-01T00:00:00Z"})
        updated = store.update(doc.id, {"title": "Write the API"})
        assert updated.frontmatter.updated != "2020-01-01T00:00:00Z"
        assert updated.frontmatter.created == doc.frontmatter.created

    def test_missing_document(self, store):
        with pytest.raises(DocumentNotFoundError, match="Document A-404 not found"):
            store.update("A-404", {"status": "done"})


class TestRegistrations:
    """Tests for custom type registrations."""

    def test_extra_registration(self, marvin_dir):
        store = DocumentStore(
            marvin_dir, [DocumentTypeRegistration(type="risk", dir_name="risks", id_prefix="RK")]
        )
        doc = store.create("risk", {"title": "Vendor lock-in"})
        assert doc.id == "RK-001"
        assert "risk" in store.registered_types
        assert "risks" in store.dir_names

    def test_core_types_always_registered(self, marvin_dir):
        store = DocumentStore(marvin_dir)
        assert store.registered_types == ["decision", "action", "question"]
