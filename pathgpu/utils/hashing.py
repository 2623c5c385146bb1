"""SHA-256 hashing for document and buffer provenance.

Provides:
    - sha256_file(): Hash file contents (source SVG, exported buffers)
    - sha256_bytes(): Hash an in-memory buffer
    - sha256_array(): Hash numpy array values

Used for:
    - Export manifests: per-buffer hashes the binding layer can verify
    - Idempotence checks: same document + tolerance → same digest

Deterministic hashing:
    - Arrays are hashed through .tobytes() of a C-contiguous copy
    - Files read in chunks (1 MB default)
    - Results are hex strings (64 chars)

Note: Module named `hashing.py` to avoid shadowing builtin `hash()`.
"""

import hashlib
from pathlib import Path
from typing import Iterable, Union

import numpy as np


def sha256_file(path: Union[str, Path], chunk_size: int = 1 << 20) -> str:
    """Compute SHA-256 hash of file contents.

    Parameters
    ----------
    path : Union[str, Path]
        File path
    chunk_size : int
        Read chunk size in bytes, default 1 MB

    Returns
    -------
    str
        SHA-256 hex digest (64 characters)

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    sha256 = hashlib.sha256()
    with open(path, 'rb') as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            sha256.update(chunk)
    return sha256.hexdigest()


def sha256_bytes(data: Union[bytes, bytearray, memoryview]) -> str:
    """Compute SHA-256 hash of a byte buffer."""
    return hashlib.sha256(bytes(data)).hexdigest()


def sha256_array(a: np.ndarray) -> str:
    """Compute SHA-256 hash of array values.

    Notes
    -----
    Invariant to memory layout (strides) but NOT to dtype or byte order.
    """
    return hashlib.sha256(np.ascontiguousarray(a).tobytes()).hexdigest()


def sha256_chunks(chunks: Iterable[bytes]) -> str:
    """Hash several buffers as one stream, in order."""
    sha256 = hashlib.sha256()
    for chunk in chunks:
        sha256.update(chunk)
    return sha256.hexdigest()
