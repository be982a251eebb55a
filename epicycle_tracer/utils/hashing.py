"""SHA-256 hashing for input provenance.

Provides:
    - sha256_file(): Hash file contents (source images, configs)
    - sha256_array(): Hash array values (edge masks, skeletons)

The epicycles.v1 result file records the hash of the mask it was computed
from, so a stale result can be detected without re-running the pipeline.

Deterministic hashing:
    - Arrays hashed over dtype, shape and C-contiguous bytes
    - Files read in chunks (1 MB default)
    - Results are hex strings (64 chars)

Note: Module named `hashing.py` to avoid shadowing builtin `hash()`.
"""

import hashlib
from pathlib import Path
from typing import Union

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


def sha256_array(a: np.ndarray) -> str:
    """Compute SHA-256 hash of array values.

    Parameters
    ----------
    a : np.ndarray
        Array to hash (any shape, dtype)

    Returns
    -------
    str
        SHA-256 hex digest (64 characters)

    Notes
    -----
    Invariant to memory layout (strides) but NOT to dtype or shape:
    a uint8 mask and the equivalent bool mask hash differently.
    """
    a = np.ascontiguousarray(a)

    sha256 = hashlib.sha256()
    sha256.update(str(a.dtype).encode('utf-8'))
    sha256.update(repr(a.shape).encode('utf-8'))
    sha256.update(a.tobytes())

    return sha256.hexdigest()
