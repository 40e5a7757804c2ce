"""Source manifest: change tracking for the intake directory.

Every reference file dropped into ``<marvin_dir>/sources/`` gets an entry
keyed by file name and carrying the SHA-256 of its bytes. A scan compares the
directory against the manifest, so ingestion is re-triggered by a content
change rather than by a rename or a timestamp.

The manifest is a single YAML file rewritten in full on every mutation:

    version: 1
    files:
      requirements.md:
        hash: 3f1c...
        addedAt: '2026-01-01T10:00:00Z'
        processedAt: null
        status: pending
        artifacts: []
        error: null
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import yaml

from ..exceptions import SourceNotInManifestError
from ..file_hashing import compute_file_hash
from .types import (MANIFEST_VERSION, SOURCE_EXTENSIONS, ScanResult,
                    SourceFileEntry, SourceFileStatus)

logger = logging.getLogger(__name__)

MANIFEST_FILE = ".manifest.yaml"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SourceManifestManager:
    """Tracks source files by content hash and their ingestion status."""

    def __init__(self, marvin_dir: Union[str, Path]):
        self.sources_dir = Path(marvin_dir) / "sources"
        self.manifest_path = self.sources_dir / MANIFEST_FILE
        self._files: Dict[str, SourceFileEntry] = self._load()

    def _load(self) -> Dict[str, SourceFileEntry]:
        """Load the manifest; anything unreadable yields an empty manifest."""
        if not self.manifest_path.exists():
            return {}

        try:
            data = yaml.safe_load(self.manifest_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load source manifest {self.manifest_path}: {e}")
            return {}

        if not data:
            return {}
        if not isinstance(data, dict) or not isinstance(data.get("files") or {}, dict):
            logger.warning(f"Ignoring malformed source manifest {self.manifest_path}")
            return {}

        files: Dict[str, SourceFileEntry] = {}
        try:
            for name, entry in (data.get("files") or {}).items():
                files[str(name)] = SourceFileEntry.from_dict(entry)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed source manifest {self.manifest_path}: {e}")
            return {}
        return files

    def save(self) -> None:
        """Write the whole manifest to disk."""
        self.sources_dir.mkdir(parents=True, exist_ok=True)
        data = {
            "version": MANIFEST_VERSION,
            "files": {name: entry.to_dict() for name, entry in self._files.items()},
        }
        self.manifest_path.write_text(
            yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )

    def _files_on_disk(self) -> List[str]:
        return sorted(
            entry.name
            for entry in self.sources_dir.iterdir()
            if entry.is_file() and entry.suffix.lower() in SOURCE_EXTENSIONS
        )

    def scan(self) -> ScanResult:
        """Reconcile the manifest with the intake directory and persist it."""
        result = ScanResult()
        if not self.sources_dir.is_dir():
            return result

        on_disk = self._files_on_disk()

        for file_name in on_disk:
            file_hash = compute_file_hash(self.sources_dir / file_name)
            existing = self._files.get(file_name)

            if existing is None:
                self._files[file_name] = SourceFileEntry(hash=file_hash, added_at=_now_iso())
                result.added.append(file_name)
            elif existing.hash != file_hash:
                existing.hash = file_hash
                existing.status = SourceFileStatus.PENDING
                existing.processed_at = None
                existing.artifacts = []
                existing.error = None
                result.changed.append(file_name)

        present = set(on_disk)
        for file_name in list(self._files):
            if file_name not in present:
                del self._files[file_name]
                result.removed.append(file_name)

        self.save()
        if result.has_changes:
            logger.info(
                f"Source scan: {len(result.added)} added, {len(result.changed)} changed, "
                f"{len(result.removed)} removed"
            )
        return result

    def list(self, status: Optional[SourceFileStatus] = None) -> List[Tuple[str, SourceFileEntry]]:
        return [
            (name, entry)
            for name, entry in self._files.items()
            if status is None or entry.status == SourceFileStatus(status)
        ]

    def get(self, file_name: str) -> Optional[SourceFileEntry]:
        return self._files.get(file_name)

    def unprocessed(self) -> List[str]:
        """File names that still need ingestion (pending, or failed last time)."""
        retry = (SourceFileStatus.PENDING, SourceFileStatus.ERROR)
        return [name for name, entry in self._files.items() if entry.status in retry]

    def _require(self, file_name: str) -> SourceFileEntry:
        entry = self._files.get(file_name)
        if entry is None:
            raise SourceNotInManifestError(file_name)
        return entry

    def mark_processing(self, file_name: str) -> None:
        entry = self._require(file_name)
        entry.status = SourceFileStatus.PROCESSING
        self.save()

    def mark_completed(self, file_name: str, artifacts: Sequence[str]) -> None:
        entry = self._require(file_name)
        entry.status = SourceFileStatus.COMPLETED
        entry.processed_at = _now_iso()
        entry.artifacts = list(artifacts)
        entry.error = None
        self.save()
        logger.info(f"Source {file_name} completed with {len(entry.artifacts)} artifacts")

    def mark_error(self, file_name: str, message: str) -> None:
        entry = self._require(file_name)
        entry.status = SourceFileStatus.ERROR
        entry.error = message
        self.save()
        logger.warning(f"Source {file_name} failed: {message}")
