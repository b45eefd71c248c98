# -*- coding: utf-8 -*-
"""
RU: Потоковое хеширование содержимого файлов по блокам.

EN: Content hashing of files, streamed in chunks.

The digest of the original plaintext is stored in each container and
compared with the digest of the decrypted output. A mismatch means a wrong
password or corrupted data.
"""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Final, Union

import blake3

from cryption.config import DEFAULT_CHUNK_SIZE, DEFAULT_HASH_ALGORITHM
from cryption.exceptions import HashingError
from cryption.utils import secure_compare

_LOGGER: Final = logging.getLogger(__name__)

_HASHERS: Final[Dict[str, Callable[[], Any]]] = {
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
    "sha3_256": hashlib.sha3_256,
    "blake2b": hashlib.blake2b,
    "blake3": blake3.blake3,
}

SUPPORTED_HASH_ALGORITHMS: Final[frozenset[str]] = frozenset(_HASHERS)


def new_hasher(algorithm: str = DEFAULT_HASH_ALGORITHM) -> Any:
    """
    Return a fresh incremental hasher (``update``/``hexdigest`` interface).

    Raises:
        HashingError: if ``algorithm`` is not supported.
    """
    factory = _HASHERS.get(algorithm)
    if factory is None:
        raise HashingError(f"Unsupported hash algorithm: {algorithm!r}")
    return factory()


def hash_file(
    path: Union[str, Path],
    algorithm: str = DEFAULT_HASH_ALGORITHM,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """
    Hash a file without loading it into memory.

    Returns:
        Lowercase hex digest.

    Raises:
        HashingError: unsupported algorithm.
        OSError: the file cannot be read.
    """
    hasher = new_hasher(algorithm)
    size = 0
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            hasher.update(chunk)
            size += len(chunk)
    _LOGGER.debug("Hashed %d bytes with %s", size, algorithm)
    return str(hasher.hexdigest())


def validate_hash(expected: str, actual: str) -> bool:
    """Compare two hex digests, ignoring case."""
    if not isinstance(expected, str) or not isinstance(actual, str):
        return False
    try:
        return secure_compare(expected.lower(), actual.lower())
    except UnicodeEncodeError:
        return False


__all__ = [
    "SUPPORTED_HASH_ALGORITHMS",
    "new_hasher",
    "hash_file",
    "validate_hash",
]
