"""Id conflict resolution and cross-reference rewriting for imports."""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence, Set, Union

from ..storage.store import DocumentStore
from ..storage.types import DocumentFrontmatter, format_id
from .types import ConflictStrategy, IncomingDocument

logger = logging.getLogger(__name__)

ID_REF_PATTERN = re.compile(r"\b([A-Z]+-\d{3,})\b")


@dataclass
class ResolvedDocument:
    frontmatter: DocumentFrontmatter
    content: str
    original_id: str
    new_id: str
    source_path: str = ""


@dataclass
class ResolveResult:
    resolved: List[ResolvedDocument] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    skipped_documents: List[IncomingDocument] = field(default_factory=list)
    id_mapping: Dict[str, str] = field(default_factory=dict)


class _IdAllocator:
    """Hands out fresh ids per type, starting from the store's next id.

    Counters advance locally and ids in ``taken`` are passed over, so a
    renumbered document never lands on an id another batch document owns.
    """

    def __init__(self, store: DocumentStore):
        self._store = store
        self._next: Dict[str, int] = {}

    def allocate(self, doc_type: str, taken: Set[str]) -> str:
        if doc_type not in self._next:
            self._next[doc_type] = int(self._store.next_id(doc_type).rsplit("-", 1)[1])
        prefix = self._store.registration(doc_type).id_prefix
        while True:
            number = self._next[doc_type]
            self._next[doc_type] = number + 1
            candidate = format_id(prefix, number)
            if candidate not in taken:
                return candidate


def resolve_conflicts(
    incoming: Sequence[IncomingDocument],
    store: DocumentStore,
    strategy: Union[ConflictStrategy, str],
) -> ResolveResult:
    """Assign a final id to every incoming document.

    An id conflicts when the store already holds it or an earlier document
    of the same batch claimed it. Non-conflicting documents keep their id,
    whatever their position in the batch: fresh ids skip every id the batch
    carries.

    Args:
        incoming: Documents collected from the import input
        store: Target store
        strategy: What to do with conflicting documents

    Returns:
        Resolved documents, skipped ids, and the old -> new id mapping for the
        whole batch (identity entries included)
    """
    strategy = ConflictStrategy(strategy)
    result = ResolveResult()
    allocator = _IdAllocator(store)
    claimed: Set[str] = set()
    # Ids the batch brings in; renumbering must not hand these out
    reserved: Set[str] = {doc.frontmatter.id for doc in incoming}

    for doc in incoming:
        original_id = doc.frontmatter.id
        conflict = original_id in claimed or store.get(original_id) is not None

        if not conflict or strategy == ConflictStrategy.OVERWRITE:
            new_id = original_id
            frontmatter = doc.frontmatter
        elif strategy == ConflictStrategy.SKIP:
            result.skipped.append(original_id)
            result.skipped_documents.append(doc)
            logger.debug(f"Skipping {original_id}: id already exists")
            continue
        else:
            new_id = allocator.allocate(doc.frontmatter.type, claimed | reserved)
            frontmatter = doc.frontmatter.merged({"id": new_id})
            logger.debug(f"Renumbering {original_id} -> {new_id}")

        claimed.add(new_id)
        result.id_mapping.setdefault(original_id, new_id)
        result.resolved.append(
            ResolvedDocument(
                frontmatter=frontmatter,
                content=doc.content,
                original_id=original_id,
                new_id=new_id,
                source_path=doc.source_path,
            )
        )

    return result


def update_cross_references(content: str, id_mapping: Mapping[str, str]) -> str:
    """Replace every id in ``content`` that has an entry in ``id_mapping``.

    The replacement is textual: ids inside code blocks or quotes are
    rewritten like any other occurrence.
    """
    if not id_mapping:
        return content
    return ID_REF_PATTERN.sub(lambda match: id_mapping.get(match.group(0), match.group(0)), content)
