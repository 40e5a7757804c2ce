"""Content hashing used to detect changed source files."""

import hashlib
from pathlib import Path
from typing import Union

_CHUNK_SIZE = 1024 * 1024


def compute_file_hash(file_path: Union[str, Path]) -> str:
    """Compute SHA256 hash of a file's bytes.

    Args:
        file_path: Path to file

    Returns:
        Hex digest of SHA256 hash

    Raises:
        OSError: If the file cannot be read
    """
    digest = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()
