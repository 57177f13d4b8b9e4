"""SHA-1 content digest used by Box to verify uploaded bytes."""

import hashlib
from pathlib import Path
from typing import Union

CHUNK_SIZE = 64 * 1024


def calculate_sha1(file_path: Union[str, Path], chunk_size: int = CHUNK_SIZE) -> str:
    """
    Stream a file through SHA-1 and return the hex digest.

    The file is read once, front to back; the digest is only produced after
    the last chunk. Read errors propagate as OSError.

    Example:
        >>> calculate_sha1("empty.csv")
        'da39a3ee5e6b4b0d3255bfef95601890afd80709'
    """
    digest = hashlib.sha1()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()
