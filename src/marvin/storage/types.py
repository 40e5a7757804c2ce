"""Document model.

A document is a required set of frontmatter fields, an ordered map of
type-specific extras, and a free-text body.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

ID_PATTERN = re.compile(r"^[A-Z]+-\d{3,}$")

FILENAME_STYLE_ID = "id"
FILENAME_STYLE_DATED = "dated"


@dataclass(frozen=True)
class DocumentTypeRegistration:
    """Maps a document type to its storage directory and id prefix."""

    type: str
    dir_name: str
    id_prefix: str
    filename_style: str = FILENAME_STYLE_ID  # "id" -> D-001.md, "dated" -> 2026-01-01-slug.md

    @property
    def is_dated(self) -> bool:
        return self.filename_style == FILENAME_STYLE_DATED


CORE_REGISTRATIONS = (
    DocumentTypeRegistration(type="decision", dir_name="decisions", id_prefix="D"),
    DocumentTypeRegistration(type="action", dir_name="actions", id_prefix="A"),
    DocumentTypeRegistration(type="question", dir_name="questions", id_prefix="Q"),
)

CORE_DOCUMENT_TYPES = tuple(reg.type for reg in CORE_REGISTRATIONS)

_REQUIRED_FIELDS = ("id", "title", "type", "status", "created", "updated")
_OPTIONAL_FIELDS = ("owner", "priority", "tags", "source")
KNOWN_FIELDS = _REQUIRED_FIELDS + _OPTIONAL_FIELDS


def _as_text(value: Any) -> Any:
    # YAML loads bare dates (2026-01-01) as date objects
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def format_id(prefix: str, number: int) -> str:
    return f"{prefix}-{number:03d}"


def is_valid_id(value: Any) -> bool:
    return isinstance(value, str) and ID_PATTERN.match(value) is not None


@dataclass
class DocumentFrontmatter:
    """Metadata block of a stored document."""

    id: str
    title: str
    type: str
    status: str
    created: str
    updated: str
    owner: Optional[str] = None
    priority: Optional[str] = None
    tags: Optional[List[str]] = None
    source: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        if key in KNOWN_FIELDS:
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to a single ordered mapping; unset optional fields are omitted."""
        data: Dict[str, Any] = {name: getattr(self, name) for name in _REQUIRED_FIELDS}
        for name in _OPTIONAL_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = list(value) if name == "tags" else value
        for key, value in self.extra.items():
            if key not in data:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentFrontmatter":
        """Create from a flat mapping, keeping unknown keys in ``extra``."""
        tags = data.get("tags")
        if tags is not None and not isinstance(tags, list):
            tags = [tags]
        return cls(
            id=str(data.get("id", "")),
            title=str(data.get("title", "")),
            type=str(data.get("type", "")),
            status=str(data.get("status", "")),
            created=str(_as_text(data.get("created", ""))),
            updated=str(_as_text(data.get("updated", ""))),
            owner=data.get("owner"),
            priority=data.get("priority"),
            tags=[str(t) for t in tags] if tags is not None else None,
            source=data.get("source"),
            extra={
                key: _as_text(value) for key, value in data.items() if key not in KNOWN_FIELDS
            },
        )

    def merged(self, updates: Dict[str, Any]) -> "DocumentFrontmatter":
        """Return a copy with ``updates`` applied over the current fields."""
        data = self.to_dict()
        data.update(updates)
        return DocumentFrontmatter.from_dict(data)


@dataclass
class Document:
    frontmatter: DocumentFrontmatter
    content: str
    file_path: str

    @property
    def id(self) -> str:
        return self.frontmatter.id


@dataclass
class DocumentQuery:
    """Filter for ``DocumentStore.list``; all set fields must match."""

    type: Optional[str] = None
    status: Optional[str] = None
    owner: Optional[str] = None
    tag: Optional[str] = None

    def matches(self, frontmatter: DocumentFrontmatter) -> bool:
        if self.type and frontmatter.type != self.type:
            return False
        if self.status and frontmatter.status != self.status:
            return False
        if self.owner and frontmatter.owner != self.owner:
            return False
        if self.tag and self.tag not in (frontmatter.tags or []):
            return False
        return True
