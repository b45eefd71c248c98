# -*- coding: utf-8 -*-
"""
RU: Файлы ключей: выведенный ключ одной строкой в шестнадцатеричном виде.

EN: Raw key files: the derived key stored as one line of lowercase hex.

The file is an alternative to the password at decryption time. It is
rewritten on every encryption that names it and never deleted here.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Final, Iterable, Optional, Union

from cryption.algorithms import AlgorithmRegistry
from cryption.exceptions import KeyFileCorruptError
from cryption.utils import hex_decode, hex_encode, set_secure_file_permissions

_LOGGER: Final = logging.getLogger(__name__)

_DEFAULT_KEY_LENGTHS: Final[frozenset[int]] = AlgorithmRegistry.default().key_lengths()
# Hex of a 64-byte key plus generous whitespace.
_MAX_KEY_FILE_SIZE: Final[int] = 1024

PathLike = Union[str, Path]


def write_key_file(key: bytes, path: PathLike) -> None:
    """Write ``key`` as hex to ``path``, replacing any existing file."""
    if not isinstance(key, (bytes, bytearray)) or not key:
        raise ValueError("Key must be non-empty bytes")
    target = Path(path)
    target.write_text(hex_encode(bytes(key)) + "\n", encoding="ascii")
    set_secure_file_permissions(str(target))
    _LOGGER.debug("Key file written: %s", target)


def read_key_file(
    path: PathLike,
    expected_length: Optional[int] = None,
    *,
    allowed_lengths: Iterable[int] = _DEFAULT_KEY_LENGTHS,
) -> bytes:
    """
    Read a key written by :func:`write_key_file`.

    Args:
        path: key file path.
        expected_length: required key size in bytes; when omitted the size
            must be one of ``allowed_lengths``, by default any key size of a
            registered algorithm.

    Raises:
        KeyFileCorruptError: invalid hex, empty file or wrong key size.
        OSError: the file cannot be read.
    """
    raw = Path(path).read_bytes()
    if len(raw) > _MAX_KEY_FILE_SIZE:
        raise KeyFileCorruptError("Key file is too large")
    try:
        key = hex_decode(raw.decode("ascii"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise KeyFileCorruptError("Key file is not valid hex") from exc
    if not key:
        raise KeyFileCorruptError("Key file is empty")

    if expected_length is not None:
        if len(key) != expected_length:
            raise KeyFileCorruptError(
                f"Key file holds {len(key)} bytes, expected {expected_length}"
            )
    elif len(key) not in frozenset(allowed_lengths):
        raise KeyFileCorruptError(f"Unsupported key size in key file: {len(key)} bytes")
    _LOGGER.debug("Key file read: %s", path)
    return key


__all__ = ["write_key_file", "read_key_file"]
