"""Marvin: a file-backed store for project governance documents.

Decisions, actions, questions and methodology-specific artifacts live as
markdown files with YAML frontmatter under a project's ``.marvin/`` directory.
"""

__version__ = "0.3.0"
