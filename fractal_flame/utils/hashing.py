"""SHA-256 fingerprints for render provenance.

Provides:
    - sha256_file(): hash file contents (exported PNGs, flame YAMLs)
    - sha256_array(): hash array values (pixel buffers, histograms)
    - sha256_string() / hash_dict(): hash strings and JSON-able parameter dicts

Used by the CLI metadata and by the seed-determinism tests: two renders with
the same parameters and seed must produce the same buffer hash.

Deterministic hashing:
    - Arrays hashed as C-contiguous bytes, prefixed with dtype and shape
    - Files read in chunks (1 MB default)
    - Dicts serialized as JSON with sorted keys
    - Results are hex strings (64 chars)

Note: module named `hashing.py` to avoid shadowing builtin `hash()`.
"""

import hashlib
import json
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
    """Compute SHA-256 hash of array values, dtype and shape.

    Examples
    --------
    >>> buffer_hash = sha256_array(pixel_buffer.rgba)
    """
    a = np.ascontiguousarray(a)
    sha256 = hashlib.sha256()
    sha256.update(f"{a.dtype.str}{a.shape}".encode('utf-8'))
    sha256.update(a.tobytes())
    return sha256.hexdigest()


def sha256_string(s: str) -> str:
    """Compute SHA-256 hash of string."""
    sha256 = hashlib.sha256()
    sha256.update(s.encode('utf-8'))
    return sha256.hexdigest()


def hash_dict(d: dict) -> str:
    """Compute SHA-256 hash of dictionary (sorted keys).

    Parameters
    ----------
    d : dict
        Dictionary to hash (must be JSON-serializable)

    Examples
    --------
    >>> params_hash = hash_dict(params.to_dict())
    """
    json_str = json.dumps(d, sort_keys=True)
    return sha256_string(json_str)
