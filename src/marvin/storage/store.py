"""Directory-backed document store.

Each registered document type maps to ``<marvin_dir>/docs/<dir_name>/`` and
an id prefix. Files on disk are the source of truth; the in-memory index is
a cache rebuilt on construction (or ``reload()``) and updated by mutations
made through the same instance.
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from ..exceptions import (DocumentConflictError, DocumentNotFoundError,
                          DocumentParseError, UnknownDocumentTypeError)
from .document import parse_document, serialize_document
from .types import (CORE_REGISTRATIONS, Document, DocumentFrontmatter,
                    DocumentQuery, DocumentTypeRegistration, format_id)

logger = logging.getLogger(__name__)

DOC_EXTENSION = ".md"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _without_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


class DocumentStore:
    """CRUD over the document corpus with per-type id allocation.

    Usage:
        store = DocumentStore(Path(".marvin"), registrations=registrations_for("generic-agile"))

        doc = store.create("decision", {"title": "Use REST"}, "We chose REST.")
        store.update(doc.id, {"status": "decided"})
        open_actions = store.list(DocumentQuery(type="action", status="open"))
    """

    def __init__(
        self,
        marvin_dir: Union[str, Path],
        registrations: Optional[Iterable[DocumentTypeRegistration]] = None,
    ):
        """Initialize the store and build the index.

        Args:
            marvin_dir: Project directory (``.marvin``)
            registrations: Extra document types, merged over the core ones
        """
        self.marvin_dir = Path(marvin_dir)
        self.docs_dir = self.marvin_dir / "docs"
        self._registrations: Dict[str, DocumentTypeRegistration] = {
            reg.type: reg for reg in CORE_REGISTRATIONS
        }
        for reg in registrations or []:
            self._registrations[reg.type] = reg
        self._index: Dict[str, DocumentFrontmatter] = {}

        self.reload()

    # ------------------------------------------------------------------ types

    @property
    def registered_types(self) -> List[str]:
        return list(self._registrations)

    @property
    def dir_names(self) -> List[str]:
        return [reg.dir_name for reg in self._registrations.values()]

    def registration(self, doc_type: str) -> DocumentTypeRegistration:
        reg = self._registrations.get(doc_type)
        if reg is None:
            raise UnknownDocumentTypeError(doc_type)
        return reg

    def type_dir(self, doc_type: str) -> Path:
        return self.docs_dir / self.registration(doc_type).dir_name

    # ------------------------------------------------------------------ index

    def reload(self) -> None:
        """Rebuild the index from disk.

        Files with unparsable frontmatter are left out of the index.
        """
        self._index.clear()
        for doc_type in self._registrations:
            for file_path in self._doc_files(doc_type):
                try:
                    doc = self._read(file_path)
                except DocumentParseError as e:
                    logger.warning(f"Skipping unreadable document: {e}")
                    continue
                if doc.frontmatter.id:
                    self._index[doc.frontmatter.id] = doc.frontmatter
        logger.debug(f"Indexed {len(self._index)} documents under {self.docs_dir}")

    def indexed(self, doc_id: str) -> Optional[DocumentFrontmatter]:
        """Frontmatter for ``doc_id`` from the index, without touching disk."""
        return self._index.get(doc_id)

    # ------------------------------------------------------------------ reads

    def _doc_files(self, doc_type: str) -> Iterator[Path]:
        directory = self.type_dir(doc_type)
        if not directory.is_dir():
            return
        for entry in directory.iterdir():
            if entry.suffix == DOC_EXTENSION and entry.is_file():
                yield entry

    def _read(self, file_path: Path) -> Document:
        raw = file_path.read_text(encoding="utf-8")
        return parse_document(raw, str(file_path))

    def list(self, query: Optional[DocumentQuery] = None) -> List[Document]:
        """Return documents matching ``query`` (all documents when omitted).

        Files that fail to parse are skipped with a warning.
        """
        query = query or DocumentQuery()
        if query.type:
            if query.type not in self._registrations:
                return []
            types = [query.type]
        else:
            types = self.registered_types

        results: List[Document] = []
        for doc_type in types:
            for file_path in self._doc_files(doc_type):
                try:
                    doc = self._read(file_path)
                except DocumentParseError as e:
                    logger.warning(f"Skipping unreadable document: {e}")
                    continue
                if query.matches(doc.frontmatter):
                    results.append(doc)
        return results

    def get(self, doc_id: str) -> Optional[Document]:
        """Find a document by id with a scan of every registered directory."""
        for doc_type in self._registrations:
            for file_path in self._doc_files(doc_type):
                try:
                    doc = self._read(file_path)
                except DocumentParseError:
                    continue
                if doc.frontmatter.id == doc_id:
                    return doc
        return None

    def counts(self) -> Dict[str, int]:
        return {doc_type: sum(1 for _ in self._doc_files(doc_type)) for doc_type in self._registrations}

    # ----------------------------------------------------------------- writes

    def _target_path(self, reg: DocumentTypeRegistration, frontmatter: DocumentFrontmatter) -> Path:
        directory = self.docs_dir / reg.dir_name
        if not reg.is_dated:
            return directory / f"{frontmatter.id}{DOC_EXTENSION}"

        stem = f"{str(frontmatter.created)[:10]}-{slugify(frontmatter.title)}"
        path = directory / f"{stem}{DOC_EXTENSION}"
        if path.exists():
            # Same day, same title: disambiguate with the id
            path = directory / f"{stem}-{frontmatter.id}{DOC_EXTENSION}"
        return path

    def _write(self, doc: Document) -> None:
        path = Path(doc.file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(serialize_document(doc), encoding="utf-8")
        self._index[doc.frontmatter.id] = doc.frontmatter

    def create(
        self,
        doc_type: str,
        frontmatter: Optional[Dict[str, Any]] = None,
        content: str = "",
    ) -> Document:
        """Create a document with the next free id for ``doc_type``.

        Args:
            doc_type: Registered document type
            frontmatter: Partial frontmatter; ``None`` values are ignored
            content: Markdown body

        Returns:
            The written document

        Raises:
            UnknownDocumentTypeError: If ``doc_type`` is not registered
        """
        reg = self.registration(doc_type)
        doc_id = self.next_id(doc_type)
        now = _now_iso()

        data: Dict[str, Any] = {
            "id": doc_id,
            "title": "Untitled",
            "type": doc_type,
            "status": "open",
            "created": now,
            "updated": now,
        }
        data.update(_without_none(frontmatter or {}))
        data["id"] = doc_id
        data["type"] = doc_type
        full = DocumentFrontmatter.from_dict(data)

        doc = Document(
            frontmatter=full,
            content=content.strip(),
            file_path=str(self._target_path(reg, full)),
        )
        self._write(doc)
        logger.info(f"Created {doc_type} {full.id}: {full.title}")
        return doc

    def import_document(
        self,
        doc_type: str,
        frontmatter: Union[DocumentFrontmatter, Dict[str, Any]],
        content: str = "",
    ) -> Document:
        """Write a document whose id was chosen by the caller.

        Raises:
            UnknownDocumentTypeError: If ``doc_type`` is not registered
            DocumentConflictError: If a document with that id already exists
        """
        reg = self.registration(doc_type)
        if isinstance(frontmatter, dict):
            frontmatter = DocumentFrontmatter.from_dict(frontmatter)

        if self.get(frontmatter.id) is not None:
            raise DocumentConflictError(frontmatter.id)

        doc = Document(
            frontmatter=frontmatter,
            content=content.strip(),
            file_path=str(self._target_path(reg, frontmatter)),
        )
        self._write(doc)
        logger.info(f"Imported {doc_type} {frontmatter.id}: {frontmatter.title}")
        return doc

    def update(
        self,
        doc_id: str,
        updates: Union[DocumentFrontmatter, Dict[str, Any]],
        content: Optional[str] = None,
    ) -> Document:
        """Merge ``updates`` into an existing document and rewrite it in place.

        Raises:
            DocumentNotFoundError: If no document carries ``doc_id``
        """
        existing = self.get(doc_id)
        if existing is None:
            raise DocumentNotFoundError(doc_id)

        if isinstance(updates, DocumentFrontmatter):
            updates = updates.to_dict()
        changes = _without_none(updates)
        changes["updated"] = _now_iso()

        doc = Document(
            frontmatter=existing.frontmatter.merged(changes),
            content=content.strip() if content is not None else existing.content,
            file_path=existing.file_path,
        )
        self._write(doc)
        logger.debug(f"Updated {doc_id}")
        return doc

    # ------------------------------------------------------------ allocation

    def next_id(self, doc_type: str) -> str:
        """Next id for ``doc_type``: highest number on disk plus one.

        Always derived from the directory contents, never from the index.

        Raises:
            UnknownDocumentTypeError: If ``doc_type`` is not registered
        """
        reg = self.registration(doc_type)
        pattern = re.compile(rf"^{re.escape(reg.id_prefix)}-(\d+)$")

        max_num = 0
        for file_path in self._doc_files(doc_type):
            match = pattern.match(file_path.stem)
            if match is None and reg.is_dated:
                # Dated files carry their id only in the frontmatter
                try:
                    match = pattern.match(self._read(file_path).frontmatter.id)
                except DocumentParseError:
                    match = None
            if match:
                max_num = max(max_num, int(match.group(1)))
        return format_id(reg.id_prefix, max_num + 1)
