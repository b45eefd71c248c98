# -*- coding: utf-8 -*-
"""
RU: Реестр поддерживаемых симметричных алгоритмов.

EN: Registry of supported symmetric algorithms.

Each entry describes the sizing the rest of the package needs (key length,
block size, IV size, all in bits) and which ``cryptography`` primitive and
mode implement it. The registry is built once and never mutated, so one
instance can be shared by any number of threads.

Example:
    >>> registry = AlgorithmRegistry.default()
    >>> spec = registry.lookup("aes-256-cbc")
    >>> spec.key_length, spec.iv_size
    (256, 128)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Iterable, Iterator, Mapping, Optional, Tuple

from cryption.exceptions import UnknownAlgorithmError

_LOGGER: Final = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlgorithmSpec:
    """
    Immutable description of a symmetric algorithm.

    Attributes:
        name: identifier used in containers (e.g. ``"aes-256-cbc"``).
        key_length: key size in bits.
        block_size: cipher block size in bits (8 for stream ciphers).
        iv_size: IV/nonce size in bits.
        cipher: primitive family in ``cryptography`` (``AES``, ``Camellia``, ``ChaCha20``).
        mode: block mode name, or ``None`` for a native stream cipher.
    """

    name: str
    key_length: int
    block_size: int
    iv_size: int
    cipher: str
    mode: Optional[str]

    def __post_init__(self) -> None:
        for field_name in ("key_length", "block_size", "iv_size"):
            value = getattr(self, field_name)
            if value <= 0 or value % 8:
                raise ValueError(f"{field_name} must be a positive multiple of 8")

    @property
    def key_bytes(self) -> int:
        return self.key_length // 8

    @property
    def iv_bytes(self) -> int:
        return self.iv_size // 8

    @property
    def padded(self) -> bool:
        """True when plaintext must be padded to the block size."""
        return self.mode == "CBC"


def _block(cipher: str, bits: int, mode: str) -> AlgorithmSpec:
    name = f"{cipher.lower()}-{bits}-{mode.lower()}"
    return AlgorithmSpec(name, bits, 128, 128, cipher, mode)


SYMMETRIC_ALGORITHMS: Final[Tuple[AlgorithmSpec, ...]] = (
    _block("AES", 128, "CBC"),
    _block("AES", 192, "CBC"),
    _block("AES", 256, "CBC"),
    _block("AES", 128, "CTR"),
    _block("AES", 192, "CTR"),
    _block("AES", 256, "CTR"),
    _block("AES", 128, "CFB"),
    _block("AES", 256, "CFB"),
    _block("AES", 128, "OFB"),
    _block("AES", 256, "OFB"),
    _block("Camellia", 128, "CBC"),
    _block("Camellia", 256, "CBC"),
    AlgorithmSpec("chacha20", 256, 8, 128, "ChaCha20", None),
)

# Listed for discovery only; file cryption here is symmetric.
ASYMMETRIC_ALGORITHMS: Final[Tuple[str, ...]] = ("rsa",)


class AlgorithmRegistry:
    """
    Immutable name -> ``AlgorithmSpec`` lookup.

    Lookups are case-insensitive. Build the standard table with
    :meth:`default` and pass the instance to whoever needs it.
    """

    __slots__ = ("_entries", "_asymmetric")

    def __init__(
        self,
        specs: Iterable[AlgorithmSpec],
        asymmetric: Iterable[str] = (),
    ) -> None:
        entries = {}
        for spec in specs:
            key = spec.name.lower()
            if key in entries:
                raise ValueError(f"Algorithm registered twice: {spec.name}")
            entries[key] = spec
        self._entries: Mapping[str, AlgorithmSpec] = MappingProxyType(entries)
        self._asymmetric: Tuple[str, ...] = tuple(asymmetric)
        _LOGGER.debug("Algorithm registry built with %d entries", len(entries))

    @classmethod
    def default(cls) -> "AlgorithmRegistry":
        """Registry with every algorithm this package implements."""
        return cls(SYMMETRIC_ALGORITHMS, ASYMMETRIC_ALGORITHMS)

    def lookup(self, name: str) -> AlgorithmSpec:
        """
        Resolve an algorithm by name.

        Raises:
            UnknownAlgorithmError: if ``name`` is not registered.
        """
        spec = self._entries.get(name.lower()) if isinstance(name, str) else None
        if spec is None:
            raise UnknownAlgorithmError(f"Unknown algorithm: {name!r}")
        return spec

    def symmetric_names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self._entries.values())

    def asymmetric_names(self) -> Tuple[str, ...]:
        return self._asymmetric

    def key_lengths(self) -> frozenset[int]:
        """Distinct key sizes in bytes across registered algorithms."""
        return frozenset(spec.key_bytes for spec in self._entries.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def __iter__(self) -> Iterator[AlgorithmSpec]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "AlgorithmSpec",
    "AlgorithmRegistry",
    "SYMMETRIC_ALGORITHMS",
    "ASYMMETRIC_ALGORITHMS",
]
