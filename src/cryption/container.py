# -*- coding: utf-8 -*-
"""
RU: Формат контейнера: шифртекст, за которым следует самоописывающий трейлер.

EN: Container framing: ciphertext followed by a self-describing trailer.

Format version 1::

    [ciphertext ...][trailer body][footer]

    footer (16 bytes)
      0-7    magic      b"CRYPTION"
      8      version    0x01
      9-11   reserved   zero
      12-15  body length, unsigned 32-bit big-endian

    trailer body: UTF-8 JSON object
      {"v": 1, "algorithm": str, "salt": base64, "iv": base64,
       "hash": hex, "hash_algorithm": str, "kdf": {...}}

The footer sits at a fixed offset from the end of the file, so a reader
finds the trailer without knowing the ciphertext length, and knows the
ciphertext length once it has the trailer.
"""

from __future__ import annotations

import io
import json
import logging
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, Final, Iterator, Mapping, Union

from cryption.config import DEFAULT_CHUNK_SIZE, DEFAULT_HASH_ALGORITHM, SUPPORTED_KDFS
from cryption.exceptions import CorruptContainerError
from cryption.utils import b64_decode, b64_encode

_LOGGER: Final = logging.getLogger(__name__)

MAGIC: Final[bytes] = b"CRYPTION"
FORMAT_VERSION: Final[int] = 1
_FOOTER: Final = struct.Struct(">8sB3xI")
FOOTER_SIZE: Final[int] = _FOOTER.size
MAX_TRAILER_SIZE: Final[int] = 64 * 1024
_MIN_SALT_LEN: Final[int] = 8
_MAX_SALT_LEN: Final[int] = 64

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ContainerConfig:
    """
    Decryption metadata bound to one container.

    Attributes:
        algorithm: registry name of the cipher.
        salt: KDF salt.
        iv: cipher IV/nonce.
        content_hash: hex digest of the original plaintext.
        hash_algorithm: algorithm that produced ``content_hash``.
        kdf: KDF parameters used to derive the key from the password.
    """

    algorithm: str
    salt: bytes
    iv: bytes
    content_hash: str
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    kdf: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"ContainerConfig(algorithm={self.algorithm!r}, "
            f"hash_algorithm={self.hash_algorithm!r}, kdf={self.kdf.get('version')!r})"
        )


def encode_trailer(config: ContainerConfig) -> bytes:
    """Serialize ``config`` into trailer body plus footer."""
    body = json.dumps(
        {
            "v": FORMAT_VERSION,
            "algorithm": config.algorithm,
            "salt": b64_encode(config.salt),
            "iv": b64_encode(config.iv),
            "hash": config.content_hash,
            "hash_algorithm": config.hash_algorithm,
            "kdf": dict(config.kdf),
        },
        separators=(",", ":"),
        sort_keys=True,
    ).encode("utf-8")
    if len(body) > MAX_TRAILER_SIZE:
        raise ValueError("Container trailer is too large")
    return body + _FOOTER.pack(MAGIC, FORMAT_VERSION, len(body))


def decode_trailer(body: bytes) -> ContainerConfig:
    """
    Parse a trailer body.

    Raises:
        CorruptContainerError: malformed JSON, missing fields or bad encodings.
    """
    try:
        record = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise CorruptContainerError("Container trailer is not valid JSON") from exc
    if not isinstance(record, Mapping):
        raise CorruptContainerError("Container trailer must be an object")
    if record.get("v") != FORMAT_VERSION:
        raise CorruptContainerError("Unsupported container trailer version")

    try:
        algorithm = record["algorithm"]
        content_hash = record["hash"]
        hash_algorithm = record.get("hash_algorithm", DEFAULT_HASH_ALGORITHM)
        kdf = record["kdf"]
        salt = b64_decode(record["salt"])
        iv = b64_decode(record["iv"])
    except KeyError as exc:
        raise CorruptContainerError(f"Container trailer lacks field {exc}") from exc
    except (TypeError, AttributeError, ValueError) as exc:
        raise CorruptContainerError("Container trailer has invalid salt or IV") from exc

    if not isinstance(algorithm, str) or not algorithm:
        raise CorruptContainerError("Container trailer has invalid algorithm")
    if not isinstance(hash_algorithm, str) or not hash_algorithm:
        raise CorruptContainerError("Container trailer has invalid hash algorithm")
    if not isinstance(content_hash, str):
        raise CorruptContainerError("Container trailer has invalid content hash")
    try:
        bytes.fromhex(content_hash)
    except ValueError as exc:
        raise CorruptContainerError("Container trailer has invalid content hash") from exc
    if not isinstance(kdf, Mapping) or kdf.get("version") not in SUPPORTED_KDFS:
        raise CorruptContainerError("Container trailer has invalid KDF parameters")
    if len(salt) < _MIN_SALT_LEN or len(salt) > _MAX_SALT_LEN:
        raise CorruptContainerError("Container trailer has invalid salt length")

    return ContainerConfig(
        algorithm=algorithm,
        salt=salt,
        iv=iv,
        content_hash=content_hash,
        hash_algorithm=hash_algorithm,
        kdf=dict(kdf),
    )


def _locate_trailer(f: BinaryIO) -> tuple[int, int]:
    """Return ``(ciphertext_length, body_length)`` for an open container."""
    size = f.seek(0, os.SEEK_END)
    if size < FOOTER_SIZE:
        raise CorruptContainerError("Container is too short to hold a trailer")
    f.seek(size - FOOTER_SIZE)
    magic, version, body_len = _FOOTER.unpack(f.read(FOOTER_SIZE))
    if magic != MAGIC:
        raise CorruptContainerError("Container footer magic not found")
    if version != FORMAT_VERSION:
        raise CorruptContainerError(f"Unsupported container version: {version}")
    if body_len == 0 or body_len > MAX_TRAILER_SIZE or body_len > size - FOOTER_SIZE:
        raise CorruptContainerError("Container trailer length is out of range")
    return size - FOOTER_SIZE - body_len, body_len


def read_config(path: PathLike) -> ContainerConfig:
    """
    Read the trailer of the container at ``path``.

    Raises:
        CorruptContainerError: the trailer cannot be located or parsed.
        OSError: the file cannot be opened.
    """
    with open(path, "rb") as f:
        ct_len, body_len = _locate_trailer(f)
        f.seek(ct_len)
        body = f.read(body_len)
    config = decode_trailer(body)
    _LOGGER.debug("Read container trailer (%d ciphertext bytes)", ct_len)
    return config


def ciphertext_length(path: PathLike) -> int:
    """Size of the ciphertext region of the container at ``path``."""
    with open(path, "rb") as f:
        return _locate_trailer(f)[0]


class TrailerWriter:
    """
    Sink wrapper that appends the trailer after all ciphertext.

    ``write`` forwards ciphertext to the sink unchanged; ``close`` writes the
    trailer exactly once. The sink itself is not closed.
    """

    __slots__ = ("_sink", "_trailer", "_closed", "written")

    def __init__(self, sink: BinaryIO, config: ContainerConfig) -> None:
        self._sink = sink
        # Encode now so an invalid config fails before any output.
        self._trailer = encode_trailer(config)
        self._closed = False
        self.written = 0

    def write(self, chunk: bytes) -> int:
        if self._closed:
            raise ValueError("write to closed TrailerWriter")
        self._sink.write(chunk)
        self.written += len(chunk)
        return len(chunk)

    def close(self) -> None:
        if self._closed:
            return
        self._sink.write(self._trailer)
        self._closed = True
        _LOGGER.debug(
            "Container trailer appended after %d ciphertext bytes", self.written
        )

    def __enter__(self) -> "TrailerWriter":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        # No trailer on failure: a container without one is rejected on read.
        if exc_type is None:
            self.close()


class CiphertextStream(io.RawIOBase):
    """
    Read-only stream over the ciphertext region of a container.

    Reads stop at the start of the trailer, whatever the chunk size.
    """

    def __init__(self, path: PathLike) -> None:
        super().__init__()
        self._file: BinaryIO = open(path, "rb")
        try:
            self._remaining, _ = _locate_trailer(self._file)
            self._file.seek(0)
        except BaseException:
            self._file.close()
            raise
        self.length = self._remaining

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        view = memoryview(buffer).cast("B")
        n = min(len(view), self._remaining)
        if n == 0:
            return 0
        got = self._file.readinto(view[:n]) or 0
        self._remaining -= got
        return got

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        while True:
            chunk = self.read(chunk_size)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        f = getattr(self, "_file", None)
        if f is not None:
            f.close()
        super().close()


def open_ciphertext_stream(path: PathLike) -> CiphertextStream:
    """
    Open the ciphertext region of the container at ``path``.

    Raises:
        CorruptContainerError: the trailer cannot be located.
    """
    return CiphertextStream(path)


__all__ = [
    "MAGIC",
    "FORMAT_VERSION",
    "FOOTER_SIZE",
    "MAX_TRAILER_SIZE",
    "ContainerConfig",
    "encode_trailer",
    "decode_trailer",
    "read_config",
    "ciphertext_length",
    "TrailerWriter",
    "CiphertextStream",
    "open_ciphertext_stream",
]
