# -*- coding: utf-8 -*-
"""
RU: Общие утилиты: ГСЧ с проверками, сравнение в константное время, кодеки и права на файлы.

EN: Small helpers shared by the cryption modules: RNG with sanity checks,
constant-time comparison, hex/base64 codecs and key file permissions.
"""
from __future__ import annotations

import base64
import binascii
import hmac
import logging
import os
import secrets
import stat
from collections import Counter
from typing import Final, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

_LOGGER: Final = logging.getLogger(__name__)

_MAX_RANDOM_BYTES: Final[int] = 1024 * 1024
_SMALL_APT_MIN_N: Final[int] = 32


def generate_random_bytes(n: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Two independent OS sources are XORed and mixed through HKDF-SHA256, then
    passed through basic repetition/proportion sanity checks.

    Args:
        n: number of bytes to generate (1..1MiB).

    Returns:
        Random bytes of requested length.

    Raises:
        ValueError: if n is out of range or the output is degenerate.
    """
    if not isinstance(n, int) or n <= 0 or n > _MAX_RANDOM_BYTES:
        raise ValueError("Requested random size must be in 1..1MiB")

    src1 = os.urandom(n)
    src2 = secrets.token_bytes(n)
    ikm = bytes(a ^ b for a, b in zip(src1, src2))
    hkdf = HKDF(
        algorithm=hashes.SHA256(), length=n, salt=src2[:16], info=b"CRYPTION-RNG-v1"
    )
    out = hkdf.derive(ikm)
    _sanity_checks(out)
    return out


def _sanity_checks(data: bytes) -> None:
    # A 1-byte draw cannot be judged; 2..31 bytes only fail if all equal.
    if len(data) < 2:
        return
    if all(b == data[0] for b in data):
        raise ValueError("Degenerate RNG output (all bytes equal)")
    if len(data) >= _SMALL_APT_MIN_N:
        freq: Counter[int] = Counter(data)
        if max(freq.values()) / float(len(data)) > 0.80:
            raise ValueError("RNG output fails adaptive proportion sanity check")


def zero_memory(buf: Union[bytearray, None]) -> None:
    """Best-effort zeroization of a mutable buffer; ``None`` is ignored."""
    if buf is None:
        return
    for i in range(len(buf)):
        buf[i] = 0


def secure_compare(a: Union[bytes, str], b: Union[bytes, str]) -> bool:
    """Constant-time comparison of two byte strings or two ASCII strings."""
    if isinstance(a, str):
        a = a.encode("ascii")
    if isinstance(b, str):
        b = b.encode("ascii")
    return hmac.compare_digest(a, b)


def b64_encode(data: bytes) -> str:
    """Encode bytes to a base64 ASCII string (no newlines)."""
    return base64.b64encode(data).decode("ascii")


def b64_decode(text: str) -> bytes:
    """
    Decode a base64 ASCII string.

    Raises:
        ValueError: on non-ASCII or invalid base64 input.
    """
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (UnicodeEncodeError, binascii.Error) as exc:
        raise ValueError("Invalid base64 data") from exc


def hex_encode(data: bytes) -> str:
    """Encode bytes to a lowercase hex string."""
    return data.hex()


def hex_decode(text: str) -> bytes:
    """
    Decode a hex string (case-insensitive, surrounding whitespace ignored).

    Raises:
        ValueError: on invalid hex.
    """
    return bytes.fromhex(text.strip())


def set_secure_file_permissions(filepath: str) -> None:
    """
    Restrict a file to owner read/write (0600 on POSIX).

    Failure is logged and ignored; Windows only honours the read-only bit.
    """
    try:
        os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)
        _LOGGER.debug("Applied 0600 permissions to %s", filepath)
    except OSError as e:
        _LOGGER.warning("Could not set strict permissions for %s: %s", filepath, e)


__all__ = [
    "generate_random_bytes",
    "zero_memory",
    "secure_compare",
    "b64_encode",
    "b64_decode",
    "hex_encode",
    "hex_decode",
    "set_secure_file_permissions",
]
