# -*- coding: utf-8 -*-
"""
RU: Иерархия исключений подсистемы шифрования файлов без секретов в сообщениях.

EN: Exception hierarchy for file cryption.

Guidelines:
- Do not put secrets (keys, passwords, salts, IVs, plaintext) in exception messages.
- Raise the narrowest subclass at the call site so callers can handle precisely.
- Plain I/O failures are not wrapped: ``OSError`` propagates unchanged.
"""

from __future__ import annotations

from typing import Optional


class CryptionError(Exception):
    """Base exception for all cryption failures."""

    def __init__(
        self, message: str = "", *, cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(message)
        self.__cause__ = cause


class UnknownAlgorithmError(CryptionError, LookupError):
    """Raised when an algorithm name is not present in the registry."""


class KeyFileCorruptError(CryptionError):
    """Raised when a raw key file cannot be decoded or has the wrong length."""


class CorruptContainerError(CryptionError):
    """Raised when the container trailer is missing, truncated or unparsable."""


class EncryptionError(CryptionError):
    """Raised on cipher construction or encryption failures."""


class DecryptionError(CryptionError):
    """Raised when the decipher itself rejects the ciphertext."""


class PasswordOrIntegrityError(DecryptionError):
    """
    Wrong password, wrong key, or corrupted/tampered ciphertext.

    The two causes are indistinguishable once a non-authenticated mode has
    produced output, so they share one error.
    """


class PaddingError(PasswordOrIntegrityError):
    """Raised when block-cipher padding is invalid after decryption."""


# KDF
class KdfError(CryptionError):
    """Base class for key-derivation failures."""


class KDFParameterError(KdfError):
    """Raised on invalid KDF parameters (salt length, costs, output length)."""


class KDFAlgorithmError(KdfError):
    """Raised when the requested KDF is unsupported or fails internally."""


# Hashing
class HashingError(CryptionError):
    """Raised on an unsupported content-hash algorithm."""


__all__ = [
    "CryptionError",
    "UnknownAlgorithmError",
    "KeyFileCorruptError",
    "CorruptContainerError",
    "EncryptionError",
    "DecryptionError",
    "PasswordOrIntegrityError",
    "PaddingError",
    "KdfError",
    "KDFParameterError",
    "KDFAlgorithmError",
    "HashingError",
]
