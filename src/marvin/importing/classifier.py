"""Import path classification.

Decides what an arbitrary input path is, without modifying anything.

Directories are matched against ``DIRECTORY_RULES`` in order and the first
matching rule wins, so the most specific markers come first:

1. ``project-marker``: named like the project dir, holds ``config.yaml``,
   or contains the project dir
2. ``doc-subdirectories``: has a subdirectory named after a known type dir
3. ``document-files``: has a markdown file with valid document frontmatter
4. otherwise a raw source directory

Single files: ``.pdf``/``.txt`` are raw sources; ``.md`` files are documents
when their frontmatter validates, otherwise raw sources.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..config import PROJECT_CONFIG_FILE, settings
from ..exceptions import DocumentParseError, ImportPathError
from ..storage.document import parse_frontmatter
from ..storage.types import CORE_REGISTRATIONS, is_valid_id
from .types import ImportClassification, ImportClassificationType

logger = logging.getLogger(__name__)

RAW_SOURCE_EXTENSIONS = {".pdf", ".txt"}
MARKDOWN_EXTENSION = ".md"


@dataclass(frozen=True)
class ClassifierContext:
    known_types: Tuple[str, ...]
    known_dir_names: Tuple[str, ...]


DirectoryPredicate = Callable[[Path, ClassifierContext], bool]


def is_valid_marvin_document(frontmatter: Dict[str, Any], known_types: Iterable[str]) -> bool:
    """True when ``frontmatter`` has a well-formed id and a known type."""
    doc_type = frontmatter.get("type")
    if not isinstance(doc_type, str):
        return False
    return is_valid_id(frontmatter.get("id")) and doc_type in set(known_types)


def read_document_frontmatter(path: Path) -> Optional[Dict[str, Any]]:
    """Frontmatter of a markdown file, or None when it cannot be read or parsed."""
    try:
        raw = path.read_text(encoding="utf-8")
        data, _ = parse_frontmatter(raw, str(path))
    except (OSError, UnicodeDecodeError, DocumentParseError) as e:
        logger.debug(f"Not a readable document: {path} ({e})")
        return None
    return data


def _is_document_file(path: Path, known_types: Iterable[str]) -> bool:
    frontmatter = read_document_frontmatter(path)
    return frontmatter is not None and is_valid_marvin_document(frontmatter, known_types)


def _has_project_marker(path: Path, ctx: ClassifierContext) -> bool:
    return (
        path.name == settings.project_dir_name
        or (path / PROJECT_CONFIG_FILE).exists()
        or (path / settings.project_dir_name).is_dir()
    )


def _has_doc_subdirectories(path: Path, ctx: ClassifierContext) -> bool:
    dir_names = set(ctx.known_dir_names) | {reg.dir_name for reg in CORE_REGISTRATIONS}
    return any(entry.name in dir_names and entry.is_dir() for entry in path.iterdir())


def _has_document_files(path: Path, ctx: ClassifierContext) -> bool:
    return any(
        entry.suffix.lower() == MARKDOWN_EXTENSION
        and entry.is_file()
        and _is_document_file(entry, ctx.known_types)
        for entry in path.iterdir()
    )


DIRECTORY_RULES: List[Tuple[str, DirectoryPredicate, ImportClassificationType]] = [
    ("project-marker", _has_project_marker, ImportClassificationType.MARVIN_PROJECT),
    ("doc-subdirectories", _has_doc_subdirectories, ImportClassificationType.DOCS_DIRECTORY),
    ("document-files", _has_document_files, ImportClassificationType.DOCS_DIRECTORY),
]

DIRECTORY_FALLBACK = ImportClassificationType.RAW_SOURCE_DIR


def classify_file(file_path: Union[str, Path], known_types: Iterable[str]) -> ImportClassification:
    resolved = Path(file_path).resolve()
    suffix = resolved.suffix.lower()

    if suffix == MARKDOWN_EXTENSION and _is_document_file(resolved, known_types):
        return ImportClassification(ImportClassificationType.MARVIN_DOCUMENT, resolved)
    # .pdf, .txt, non-document markdown and anything else
    return ImportClassification(ImportClassificationType.RAW_SOURCE_FILE, resolved)


def classify_path(
    input_path: Union[str, Path],
    known_types: Iterable[str],
    known_dir_names: Iterable[str] = (),
) -> ImportClassification:
    """Classify an import input path.

    Args:
        input_path: File or directory to inspect
        known_types: Document types registered in the target store
        known_dir_names: Directory names of those types

    Raises:
        ImportPathError: If the path does not exist
    """
    resolved = Path(input_path).resolve()
    if not resolved.exists():
        raise ImportPathError(f"Path not found: {resolved}")

    if not resolved.is_dir():
        return classify_file(resolved, known_types)

    ctx = ClassifierContext(tuple(known_types), tuple(known_dir_names))
    for name, predicate, classification in DIRECTORY_RULES:
        if predicate(resolved, ctx):
            logger.debug(f"Classified {resolved} as {classification.value} (rule {name})")
            return ImportClassification(classification, resolved)
    return ImportClassification(DIRECTORY_FALLBACK, resolved)
