"""Import models: options, classifications, plans and results."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from ..storage.types import DocumentFrontmatter


class ConflictStrategy(str, Enum):
    """How an incoming id that already exists in the store is handled."""

    RENUMBER = "renumber"  # Allocate a fresh id and rewrite references
    SKIP = "skip"  # Drop the incoming document
    OVERWRITE = "overwrite"  # Replace the existing document


class ImportClassificationType(str, Enum):
    """What an import input path turned out to be."""

    MARVIN_PROJECT = "marvin-project"
    DOCS_DIRECTORY = "docs-directory"
    MARVIN_DOCUMENT = "marvin-document"
    RAW_SOURCE_DIR = "raw-source-dir"
    RAW_SOURCE_FILE = "raw-source-file"

    @property
    def label(self) -> str:
        return _CLASSIFICATION_LABELS[self]


_CLASSIFICATION_LABELS = {
    ImportClassificationType.MARVIN_PROJECT: "Marvin project",
    ImportClassificationType.DOCS_DIRECTORY: "Documents directory",
    ImportClassificationType.MARVIN_DOCUMENT: "Marvin document",
    ImportClassificationType.RAW_SOURCE_DIR: "Raw source directory",
    ImportClassificationType.RAW_SOURCE_FILE: "Raw source file",
}


class ImportPlanItemAction(str, Enum):
    IMPORT = "import"
    COPY = "copy"
    SKIP = "skip"


class ImportOptions(BaseModel):
    """Options for building and executing an import plan.

    ``ingest``, ``persona`` and ``draft`` are handed through to the ingestion
    layer for copied source files; planning and execution only read
    ``conflict`` and ``tag``.
    """

    dry_run: bool = False
    conflict: ConflictStrategy = ConflictStrategy.RENUMBER
    tag: Optional[str] = None
    ingest: bool = False
    persona: str = "product-owner"
    draft: bool = True


@dataclass(frozen=True)
class ImportClassification:
    type: ImportClassificationType
    input_path: Path


@dataclass
class IncomingDocument:
    """A recognized document collected from the import input."""

    frontmatter: DocumentFrontmatter
    content: str
    source_path: str = ""


@dataclass
class ImportPlanItem:
    """One action of an import plan."""

    action: ImportPlanItemAction
    source_path: str
    target_path: str = ""  # copy: destination file; import: assigned by the store
    document_type: Optional[str] = None
    original_id: Optional[str] = None
    new_id: Optional[str] = None
    reason: Optional[str] = None
    frontmatter: Optional[DocumentFrontmatter] = None
    content: Optional[str] = None

    @property
    def renumbered(self) -> bool:
        return self.original_id is not None and self.original_id != self.new_id


@dataclass
class ImportPlan:
    classification: ImportClassification
    items: List[ImportPlanItem] = field(default_factory=list)

    def by_action(self, action: ImportPlanItemAction) -> List[ImportPlanItem]:
        return [item for item in self.items if item.action == action]

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    copied: int = 0
    items: List[ImportPlanItem] = field(default_factory=list)

    @property
    def copied_files(self) -> List[str]:
        """File names (in the intake directory) of the copied items."""
        return [
            Path(item.target_path).name
            for item in self.items
            if item.action == ImportPlanItemAction.COPY
        ]
