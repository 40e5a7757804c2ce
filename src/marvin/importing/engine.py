"""Import engine: plan, preview and execute imports into a project.

Importing is two-phase. ``build_import_plan`` classifies the input, collects
documents or files, resolves id conflicts and rewrites cross-references; it
never writes. ``execute_import_plan`` applies the plan to the store and the
intake directory. ``format_plan_summary`` renders a plan for dry runs.

Usage:
    plan = build_import_plan("../other-project/.marvin", store, marvin_dir, options)
    print(format_plan_summary(plan))
    if not options.dry_run:
        result = execute_import_plan(plan, store, marvin_dir, options)
"""

import logging
import shutil
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

from ..config import settings
from ..exceptions import DocumentParseError
from ..sources.manifest import SourceManifestManager
from ..storage.document import parse_frontmatter
from ..storage.store import DocumentStore
from ..storage.types import DocumentFrontmatter
from .classifier import (MARKDOWN_EXTENSION, classify_path,
                         is_valid_marvin_document)
from .resolver import resolve_conflicts, update_cross_references
from .types import (ConflictStrategy, ImportClassification,
                    ImportClassificationType, ImportOptions, ImportPlan,
                    ImportPlanItem, ImportPlanItemAction, ImportResult,
                    IncomingDocument)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SKIP_REASON = "ID conflict (skip strategy)"


def default_options() -> ImportOptions:
    return ImportOptions(conflict=settings.default_conflict)


# --------------------------------------------------------------- collection


def _sorted_entries(directory: Path) -> List[Path]:
    return sorted(directory.iterdir(), key=lambda p: p.name)


def read_incoming_document(path: Path, known_types: List[str]) -> Optional[IncomingDocument]:
    """Read ``path`` as an importable document; None if it is not one."""
    try:
        raw = path.read_text(encoding="utf-8")
        frontmatter, body = parse_frontmatter(raw, str(path))
    except (OSError, UnicodeDecodeError, DocumentParseError) as e:
        logger.debug(f"Not importing {path}: {e}")
        return None
    if not is_valid_marvin_document(frontmatter, known_types):
        logger.debug(f"Not importing {path}: not a recognized document")
        return None
    return IncomingDocument(
        frontmatter=DocumentFrontmatter.from_dict(frontmatter),
        content=body.strip(),
        source_path=str(path),
    )


def collect_marvin_docs(directory: Path, known_types: List[str]) -> List[IncomingDocument]:
    """Recognized documents among the top-level markdown files of ``directory``."""
    docs: List[IncomingDocument] = []
    for entry in _sorted_entries(directory):
        if entry.suffix.lower() != MARKDOWN_EXTENSION or not entry.is_file():
            continue
        doc = read_incoming_document(entry, known_types)
        if doc is not None:
            docs.append(doc)
    return docs


def _plan_doc_imports(
    docs: List[IncomingDocument], store: DocumentStore, options: ImportOptions
) -> List[ImportPlanItem]:
    result = resolve_conflicts(docs, store, options.conflict)
    items: List[ImportPlanItem] = []

    for resolved in result.resolved:
        items.append(
            ImportPlanItem(
                action=ImportPlanItemAction.IMPORT,
                source_path=resolved.source_path,
                document_type=resolved.frontmatter.type,
                original_id=resolved.original_id,
                new_id=resolved.new_id,
                frontmatter=resolved.frontmatter,
                content=update_cross_references(resolved.content, result.id_mapping),
            )
        )

    for doc in result.skipped_documents:
        items.append(
            ImportPlanItem(
                action=ImportPlanItemAction.SKIP,
                source_path=doc.source_path,
                document_type=doc.frontmatter.type,
                original_id=doc.frontmatter.id,
                reason=SKIP_REASON,
            )
        )

    return items


def _plan_from_marvin_project(
    classification: ImportClassification, store: DocumentStore, options: ImportOptions
) -> List[IncomingDocument]:
    project_dir = classification.input_path

    # Pointed at the project root rather than the project directory itself
    if project_dir.name != settings.project_dir_name:
        inner = project_dir / settings.project_dir_name
        if inner.is_dir():
            project_dir = inner

    docs_dir = project_dir / "docs"
    if not docs_dir.is_dir():
        return []

    docs: List[IncomingDocument] = []
    for subdir in _sorted_entries(docs_dir):
        if subdir.is_dir():
            docs.extend(collect_marvin_docs(subdir, store.registered_types))
    return docs


def _plan_from_docs_directory(
    classification: ImportClassification, store: DocumentStore, options: ImportOptions
) -> List[IncomingDocument]:
    directory = classification.input_path
    docs = collect_marvin_docs(directory, store.registered_types)
    for entry in _sorted_entries(directory):
        if entry.is_dir():
            docs.extend(collect_marvin_docs(entry, store.registered_types))
    return docs


def _plan_from_single_document(
    classification: ImportClassification, store: DocumentStore, options: ImportOptions
) -> List[IncomingDocument]:
    doc = read_incoming_document(classification.input_path, store.registered_types)
    return [doc] if doc is not None else []


def resolve_source_file_name(
    sources_dir: Path, file_name: str, reserved: Optional[Set[str]] = None
) -> Path:
    """Target path in the intake directory that collides with nothing.

    ``name.ext`` becomes ``name-1.ext``, ``name-2.ext``, ... when the name
    exists on disk or is already in ``reserved``.
    """
    reserved = reserved if reserved is not None else set()

    def taken(path: Path) -> bool:
        return path.exists() or str(path) in reserved

    target = sources_dir / file_name
    if not taken(target):
        return target

    stem, suffix = Path(file_name).stem, Path(file_name).suffix
    counter = 1
    while True:
        candidate = sources_dir / f"{stem}-{counter}{suffix}"
        if not taken(candidate):
            return candidate
        counter += 1


def _plan_copies(files: List[Path], marvin_dir: Path) -> List[ImportPlanItem]:
    sources_dir = marvin_dir / "sources"
    reserved: Set[str] = set()
    items: List[ImportPlanItem] = []
    for file_path in files:
        target = resolve_source_file_name(sources_dir, file_path.name, reserved)
        reserved.add(str(target))
        items.append(
            ImportPlanItem(
                action=ImportPlanItemAction.COPY,
                source_path=str(file_path),
                target_path=str(target),
            )
        )
    return items


def _plan_from_raw_source_dir(classification: ImportClassification) -> List[Path]:
    return [
        entry
        for entry in _sorted_entries(classification.input_path)
        if entry.is_file() and not entry.name.startswith(".")
    ]


def _plan_from_raw_source_file(classification: ImportClassification) -> List[Path]:
    return [classification.input_path]


DocumentCollector = Callable[
    [ImportClassification, DocumentStore, ImportOptions], List[IncomingDocument]
]
FileCollector = Callable[[ImportClassification], List[Path]]

DOCUMENT_COLLECTORS: Dict[ImportClassificationType, DocumentCollector] = {
    ImportClassificationType.MARVIN_PROJECT: _plan_from_marvin_project,
    ImportClassificationType.DOCS_DIRECTORY: _plan_from_docs_directory,
    ImportClassificationType.MARVIN_DOCUMENT: _plan_from_single_document,
}

FILE_COLLECTORS: Dict[ImportClassificationType, FileCollector] = {
    ImportClassificationType.RAW_SOURCE_DIR: _plan_from_raw_source_dir,
    ImportClassificationType.RAW_SOURCE_FILE: _plan_from_raw_source_file,
}


# ------------------------------------------------------------------ phases


def build_import_plan(
    input_path: PathLike,
    store: DocumentStore,
    marvin_dir: PathLike,
    options: Optional[ImportOptions] = None,
) -> ImportPlan:
    """Classify ``input_path`` and plan its import. Nothing is written.

    Returns:
        The plan; an input with nothing importable yields an empty plan
    """
    options = options or default_options()
    classification = classify_path(input_path, store.registered_types, store.dir_names)
    plan = ImportPlan(classification=classification)

    if classification.type in DOCUMENT_COLLECTORS:
        docs = DOCUMENT_COLLECTORS[classification.type](classification, store, options)
        plan.items.extend(_plan_doc_imports(docs, store, options))
    else:
        files = FILE_COLLECTORS[classification.type](classification)
        plan.items.extend(_plan_copies(files, Path(marvin_dir)))

    logger.debug(
        f"Planned {len(plan.items)} items for {classification.input_path} "
        f"({classification.type.value})"
    )
    return plan


def execute_import_plan(
    plan: ImportPlan,
    store: DocumentStore,
    marvin_dir: PathLike,
    options: Optional[ImportOptions] = None,
) -> ImportResult:
    """Apply ``plan``: copy raw files into the intake directory and write documents."""
    options = options or default_options()
    result = ImportResult(items=list(plan.items))

    for item in plan.items:
        if item.action == ImportPlanItemAction.SKIP:
            result.skipped += 1
            continue

        if item.action == ImportPlanItemAction.COPY:
            target = Path(item.target_path)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item.source_path, target)
            logger.debug(f"Copied {item.source_path} -> {target}")
            result.copied += 1
            continue

        if item.frontmatter is None or item.content is None:
            continue

        changes: Dict[str, object] = {"id": item.new_id or item.frontmatter.id}
        if options.tag:
            tags = list(item.frontmatter.tags or [])
            if options.tag not in tags:
                tags.append(options.tag)
            changes["tags"] = tags
        frontmatter = item.frontmatter.merged(changes)

        if options.conflict == ConflictStrategy.OVERWRITE and store.get(frontmatter.id) is not None:
            store.update(frontmatter.id, frontmatter, item.content)
        else:
            store.import_document(frontmatter.type, frontmatter, item.content)
        result.imported += 1

    logger.info(
        f"Import complete: {result.imported} imported, {result.copied} copied, "
        f"{result.skipped} skipped"
    )
    return result


def format_plan_summary(plan: ImportPlan) -> str:
    """Human-readable preview of ``plan``."""
    lines = [
        f"Detected: {plan.classification.type.label}",
        f"Source:   {plan.classification.input_path}",
        "",
    ]

    imports = plan.by_action(ImportPlanItemAction.IMPORT)
    copies = plan.by_action(ImportPlanItemAction.COPY)
    skips = plan.by_action(ImportPlanItemAction.SKIP)

    if imports:
        lines.append(f"Documents to import: {len(imports)}")
        for item in imports:
            if item.renumbered:
                id_info = f"{item.original_id} → {item.new_id}"
            else:
                id_info = item.new_id or item.original_id or ""
            lines.append(f"  {id_info}  {Path(item.source_path).name}")

    if copies:
        lines.append(f"Files to copy to sources/: {len(copies)}")
        for item in copies:
            lines.append(f"  {Path(item.source_path).name} → {Path(item.target_path).name}")

    if skips:
        lines.append(f"Skipped (conflict): {len(skips)}")
        for item in skips:
            label = item.original_id or Path(item.source_path).name
            lines.append(f"  {label}  {item.reason or ''}".rstrip())

    if plan.is_empty:
        lines.append("Nothing to import.")

    return "\n".join(lines)


def import_path(
    input_path: PathLike,
    store: DocumentStore,
    marvin_dir: PathLike,
    options: Optional[ImportOptions] = None,
) -> Tuple[ImportPlan, Optional[ImportResult]]:
    """Plan and, unless this is a dry run or there is nothing to do, execute.

    When ``options.ingest`` is set and files were copied, the source manifest
    is rescanned so the copies are registered as pending for ingestion.

    Returns:
        The plan and the execution result (None when nothing was executed)
    """
    options = options or default_options()
    plan = build_import_plan(input_path, store, marvin_dir, options)
    logger.info(f"Import plan:\n{format_plan_summary(plan)}")

    if options.dry_run:
        logger.info("Dry run: no changes made.")
        return plan, None
    if plan.is_empty:
        return plan, None

    result = execute_import_plan(plan, store, marvin_dir, options)

    if options.ingest and result.copied:
        manifest = SourceManifestManager(marvin_dir)
        manifest.scan()
        pending = [name for name in result.copied_files if name in manifest.unprocessed()]
        logger.info(f"Registered {len(pending)} copied sources for ingestion: {', '.join(pending)}")

    return plan, result
