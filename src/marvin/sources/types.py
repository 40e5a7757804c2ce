"""Source manifest models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

MANIFEST_VERSION = 1

SOURCE_EXTENSIONS = (".pdf", ".md", ".txt")


class SourceFileStatus(str, Enum):
    """Processing status of a source file."""

    PENDING = "pending"  # Seen by a scan, not yet ingested (or changed since)
    PROCESSING = "processing"  # Ingestion started
    COMPLETED = "completed"  # Ingested; artifacts recorded
    ERROR = "error"  # Ingestion failed; retry-eligible


@dataclass
class SourceFileEntry:
    """Manifest record for one file in the intake directory."""

    hash: str
    added_at: str
    processed_at: Optional[str] = None
    status: SourceFileStatus = SourceFileStatus.PENDING
    artifacts: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to the on-disk mapping."""
        return {
            "hash": self.hash,
            "addedAt": self.added_at,
            "processedAt": self.processed_at,
            "status": self.status.value,
            "artifacts": list(self.artifacts),
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SourceFileEntry":
        """Create from the on-disk mapping."""
        return cls(
            hash=str(data["hash"]),
            added_at=str(data.get("addedAt", "")),
            processed_at=data.get("processedAt"),
            status=SourceFileStatus(data.get("status", "pending")),
            artifacts=[str(a) for a in data.get("artifacts") or []],
            error=data.get("error"),
        )


@dataclass
class ScanResult:
    """File names found by a scan, grouped by what happened to them."""

    added: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.changed or self.removed)
