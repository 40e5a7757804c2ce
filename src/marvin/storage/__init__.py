"""Document storage: model, markdown codec and the directory-backed store."""

from .document import parse_document, parse_frontmatter, serialize_document
from .store import DocumentStore
from .types import (CORE_DOCUMENT_TYPES, CORE_REGISTRATIONS, ID_PATTERN,
                    Document, DocumentFrontmatter, DocumentQuery,
                    DocumentTypeRegistration, is_valid_id)

__all__ = [
    "CORE_DOCUMENT_TYPES",
    "CORE_REGISTRATIONS",
    "ID_PATTERN",
    "Document",
    "DocumentFrontmatter",
    "DocumentQuery",
    "DocumentStore",
    "DocumentTypeRegistration",
    "is_valid_id",
    "parse_document",
    "parse_frontmatter",
    "serialize_document",
]
