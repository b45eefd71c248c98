# -*- coding: utf-8 -*-
"""
RU: Конфигурация: профили вывода ключа и параметры конвейера.

EN: Cryption configuration: key-derivation profiles and pipeline settings.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Final

DEFAULT_CHUNK_SIZE: Final[int] = 64 * 1024
DEFAULT_HASH_ALGORITHM: Final[str] = "sha256"

KDF_ARGON2ID: Final[str] = "argon2id"
KDF_SCRYPT: Final[str] = "scrypt"
KDF_PBKDF2: Final[str] = "pbkdf2"
SUPPORTED_KDFS: Final[frozenset[str]] = frozenset(
    {KDF_ARGON2ID, KDF_SCRYPT, KDF_PBKDF2}
)


class KdfProfile(str, Enum):
    """Predefined key-derivation profiles."""

    # Desktop/laptop systems (default)
    DESKTOP = "desktop"

    # High-performance servers
    SERVER = "server"

    # PBKDF2-HMAC-SHA256, for environments without Argon2
    LEGACY = "legacy"

    # scrypt, for interoperability with scrypt-based tooling
    COMPAT = "compat"


@dataclass(frozen=True)
class KdfPolicy:
    """
    Password key-derivation settings.

    Only the fields of the selected ``algorithm`` are used. The resulting
    parameters are written into every container so decryption does not
    depend on the policy in effect at that time.

    Examples:
        >>> KdfPolicy.from_profile(KdfProfile.LEGACY).algorithm
        'pbkdf2'
        >>> KdfPolicy().to_params()["version"]
        'argon2id'
    """

    algorithm: str = KDF_ARGON2ID
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536  # KiB
    argon2_parallelism: int = 4
    scrypt_n: int = 2**15
    scrypt_r: int = 8
    scrypt_p: int = 1
    pbkdf2_iterations: int = 200_000
    salt_len: int = 16

    def __post_init__(self) -> None:
        if self.algorithm not in SUPPORTED_KDFS:
            raise ValueError(f"Unsupported KDF: {self.algorithm!r}")
        if self.argon2_time_cost < 2:
            raise ValueError("argon2_time_cost must be >= 2")
        if self.argon2_memory_cost < 65536:
            raise ValueError("argon2_memory_cost must be >= 65536 KiB (64 MiB)")
        if self.argon2_parallelism < 1:
            raise ValueError("argon2_parallelism must be >= 1")
        if self.scrypt_n < 2**14 or self.scrypt_n & (self.scrypt_n - 1):
            raise ValueError("scrypt_n must be a power of two >= 16384")
        if self.scrypt_r < 1 or self.scrypt_p < 1:
            raise ValueError("scrypt_r and scrypt_p must be >= 1")
        if self.pbkdf2_iterations < 100_000:
            raise ValueError("pbkdf2_iterations must be >= 100000")
        if self.salt_len < 8 or self.salt_len > 64:
            raise ValueError("salt_len must be between 8 and 64 bytes")

    @staticmethod
    def from_profile(profile: KdfProfile) -> "KdfPolicy":
        """Return the policy for a predefined profile."""
        return _PROFILE_POLICIES[profile]

    def to_params(self) -> Dict[str, Any]:
        """Parameter mapping for the selected algorithm (stored in the trailer)."""
        if self.algorithm == KDF_ARGON2ID:
            return {
                "version": KDF_ARGON2ID,
                "time_cost": self.argon2_time_cost,
                "memory_cost": self.argon2_memory_cost,
                "parallelism": self.argon2_parallelism,
                "salt_len": self.salt_len,
            }
        if self.algorithm == KDF_SCRYPT:
            return {
                "version": KDF_SCRYPT,
                "n": self.scrypt_n,
                "r": self.scrypt_r,
                "p": self.scrypt_p,
                "salt_len": self.salt_len,
            }
        return {
            "version": KDF_PBKDF2,
            "iterations": self.pbkdf2_iterations,
            "hash_name": "sha256",
            "salt_len": self.salt_len,
        }


_PROFILE_POLICIES: Final[Dict[KdfProfile, KdfPolicy]] = {
    KdfProfile.DESKTOP: KdfPolicy(),
    KdfProfile.SERVER: KdfPolicy(
        argon2_time_cost=5,
        argon2_memory_cost=131072,  # 128 MiB
        argon2_parallelism=8,
    ),
    KdfProfile.LEGACY: KdfPolicy(algorithm=KDF_PBKDF2, pbkdf2_iterations=600_000),
    KdfProfile.COMPAT: KdfPolicy(algorithm=KDF_SCRYPT),
}


@dataclass(frozen=True)
class CryptionConfig:
    """
    Settings for one ``FileCryptor``.

    Attributes:
        chunk_size: bytes read per pipeline step.
        hash_algorithm: content hash stored in new containers.
        kdf: key-derivation policy for new containers.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    kdf: KdfPolicy = field(default_factory=KdfPolicy)

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if not self.hash_algorithm:
            raise ValueError("hash_algorithm must be non-empty")


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_HASH_ALGORITHM",
    "KDF_ARGON2ID",
    "KDF_SCRYPT",
    "KDF_PBKDF2",
    "SUPPORTED_KDFS",
    "KdfProfile",
    "KdfPolicy",
    "CryptionConfig",
]
