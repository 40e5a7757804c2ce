"""Markdown document codec.

A document file is a YAML frontmatter block fenced by ``---`` lines, a blank
line, and the markdown body:

    ---
    id: D-001
    title: Use REST
    ...
    ---

    We chose REST.
"""

import re
from typing import Any, Dict, Tuple

import yaml

from ..exceptions import DocumentParseError
from .types import Document, DocumentFrontmatter

_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)


def parse_frontmatter(raw: str, file_path: str = "") -> Tuple[Dict[str, Any], str]:
    """Split raw text into (frontmatter mapping, body).

    Text without a frontmatter block yields an empty mapping and the whole
    text as body.

    Raises:
        DocumentParseError: If the block is not valid YAML or not a mapping
    """
    raw = raw.lstrip("\ufeff")
    match = _FRONTMATTER_RE.match(raw)
    if not match:
        return {}, raw

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise DocumentParseError(f"Invalid frontmatter in {file_path or '<string>'}: {e}", file_path) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DocumentParseError(
            f"Frontmatter in {file_path or '<string>'} is not a mapping", file_path
        )
    return data, raw[match.end():]


def parse_document(raw: str, file_path: str) -> Document:
    data, body = parse_frontmatter(raw, file_path)
    return Document(
        frontmatter=DocumentFrontmatter.from_dict(data),
        content=body.strip(),
        file_path=file_path,
    )


def serialize_document(doc: Document) -> str:
    header = yaml.safe_dump(
        doc.frontmatter.to_dict(),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
    body = doc.content.strip() if doc.content else ""
    if body:
        return f"---\n{header}---\n\n{body}\n"
    return f"---\n{header}---\n"
