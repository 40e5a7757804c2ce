"""Custom exceptions for the Marvin document store."""


class MarvinError(Exception):
    """Base exception for all Marvin errors."""

    pass


class ProjectNotFoundError(MarvinError):
    """Exception raised when no project directory exists above a path."""

    def __init__(self, searched_from: str, dir_name: str = ".marvin"):
        """
        Initialize project-not-found error.

        Args:
            searched_from: Directory the upward search started from
            dir_name: Name of the project directory that was looked for
        """
        super().__init__(
            f"No {dir_name}/ directory found (searched from {searched_from}). "
            "Initialize a project first."
        )
        self.searched_from = searched_from


class ConfigError(MarvinError):
    """Exception raised for missing or malformed project configuration."""

    pass


class DocumentNotFoundError(MarvinError):
    """Exception raised when a document id is not present in the store."""

    def __init__(self, doc_id: str):
        super().__init__(f"Document {doc_id} not found")
        self.doc_id = doc_id


class UnknownDocumentTypeError(MarvinError):
    """Exception raised for a document type with no registration."""

    def __init__(self, doc_type: str):
        super().__init__(f"Unknown document type: {doc_type}")
        self.doc_type = doc_type


class DocumentConflictError(MarvinError):
    """Exception raised when importing a document whose id already exists."""

    def __init__(self, doc_id: str):
        super().__init__(
            f"Document {doc_id} already exists. Resolve conflicts before importing."
        )
        self.doc_id = doc_id


class DocumentParseError(MarvinError):
    """Exception raised when a document's frontmatter cannot be parsed."""

    def __init__(self, message: str, file_path: str = ""):
        super().__init__(message)
        self.file_path = file_path


class SourceNotInManifestError(MarvinError):
    """Exception raised when a source file has not been registered by a scan."""

    def __init__(self, file_name: str):
        super().__init__(f'Source file "{file_name}" not in manifest')
        self.file_name = file_name


class ImportPathError(MarvinError):
    """Exception raised when an import input path cannot be used."""

    pass
