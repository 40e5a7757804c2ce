"""Pytest configuration and fixtures for Marvin tests"""

import sys
from pathlib import Path

import pytest

# Ensure src directory is in Python path before any imports
project_root = Path(__file__).resolve().parent.parent
src_path = project_root / "src"

if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

import yaml

from marvin.methodologies import registrations_for
from marvin.storage.store import DocumentStore


def render_document(frontmatter: dict, body: str = "") -> str:
    """Markdown file text with a YAML frontmatter block."""
    header = yaml.safe_dump(frontmatter, default_flow_style=False, sort_keys=False)
    return f"---\n{header}---\n\n{body}\n"


def make_frontmatter(doc_id: str, doc_type: str, title: str = "Test", **extra) -> dict:
    data = {
        "id": doc_id,
        "title": title,
        "type": doc_type,
        "status": "open",
        "created": "2026-01-01T00:00:00Z",
        "updated": "2026-01-01T00:00:00Z",
    }
    data.update(extra)
    return data


@pytest.fixture
def write_doc():
    """Write a document file: write_doc(path, doc_id, doc_type, body="", **fields)."""

    def _write(path: Path, doc_id: str, doc_type: str, body: str = "", **fields) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            render_document(make_frontmatter(doc_id, doc_type, **fields), body), encoding="utf-8"
        )
        return path

    return _write


@pytest.fixture
def marvin_dir(tmp_path):
    """Empty project directory with the core document directories."""
    directory = tmp_path / "project" / ".marvin"
    for name in ("decisions", "actions", "questions"):
        (directory / "docs" / name).mkdir(parents=True)
    (directory / "sources").mkdir()
    return directory


@pytest.fixture
def store(marvin_dir):
    """Store over ``marvin_dir`` with the generic-agile document types."""
    return DocumentStore(marvin_dir, registrations_for("generic-agile"))
