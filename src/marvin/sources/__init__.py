"""Source manifest for reference files awaiting ingestion."""

from .manifest import MANIFEST_FILE, SourceManifestManager
from .types import (SOURCE_EXTENSIONS, ScanResult, SourceFileEntry,
                    SourceFileStatus)

__all__ = [
    "MANIFEST_FILE",
    "SOURCE_EXTENSIONS",
    "ScanResult",
    "SourceFileEntry",
    "SourceFileStatus",
    "SourceManifestManager",
]
