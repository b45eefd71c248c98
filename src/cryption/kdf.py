# -*- coding: utf-8 -*-
"""
RU: Вывод ключа из пароля: Argon2id (по умолчанию), scrypt и PBKDF2-HMAC-SHA256.

EN: Password key derivation with Argon2id (default), scrypt and PBKDF2-HMAC-SHA256.

Encryption calls :func:`derive_from_password`, which draws a fresh salt and
returns the key together with the salt and the exact parameters used. The
container stores salt and parameters; decryption calls :func:`recover_key`
with them. Recovery never checks the password: a wrong password just yields
a different key, which the content hash catches after decryption.

Parameters read back from a container are untrusted, so every cost is
bounded from both sides before any work is done.
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Final, Mapping, Optional, Union

from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from cryption.config import KDF_ARGON2ID, KDF_PBKDF2, KDF_SCRYPT, KdfPolicy
from cryption.exceptions import KDFAlgorithmError, KDFParameterError
from cryption.utils import generate_random_bytes, zero_memory

_LOGGER: Final = logging.getLogger(__name__)

_MIN_SALT_LEN: Final[int] = 8
_MAX_SALT_LEN: Final[int] = 64
_MIN_OUT_LEN: Final[int] = 16
_MAX_OUT_LEN: Final[int] = 64
_MIN_PBKDF2_ITERS: Final[int] = 100_000
_MAX_PBKDF2_ITERS: Final[int] = 10_000_000
_MAX_ARGON2_TIME: Final[int] = 16
_MAX_ARGON2_MEMORY: Final[int] = 1024 * 1024  # KiB, 1 GiB
_MAX_ARGON2_LANES: Final[int] = 64
_MAX_SCRYPT_N: Final[int] = 2**22
_MAX_SCRYPT_RP: Final[int] = 64

Password = Union[str, bytes, bytearray]
KdfParams = Mapping[str, Any]


@dataclass(frozen=True)
class DerivedKey:
    """Key material produced at encryption time."""

    key: bytes
    salt: bytes
    params: Dict[str, Any]

    def __repr__(self) -> str:
        return f"DerivedKey(key=<{len(self.key)} bytes>, salt=<{len(self.salt)} bytes>)"


def generate_salt(length: int = 16) -> bytes:
    """
    Generate a random salt.

    Raises:
        KDFParameterError: if length is outside 8..64.
    """
    if length < _MIN_SALT_LEN or length > _MAX_SALT_LEN:
        raise KDFParameterError("Salt length must be between 8 and 64 bytes")
    return generate_random_bytes(length)


def _int_param(params: KdfParams, name: str, low: int, high: int) -> int:
    value = params.get(name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise KDFParameterError(f"KDF parameter {name!r} must be an integer")
    if value < low or value > high:
        raise KDFParameterError(f"KDF parameter {name!r} must be in {low}..{high}")
    return value


def derive_key(
    password: Password,
    salt: bytes,
    length: int,
    *,
    params: KdfParams,
) -> bytes:
    """
    Derive ``length`` bytes from a password and salt.

    Args:
        password: str (UTF-8 encoded), bytes, or bytearray (wiped after use).
        salt: 8..64 bytes.
        length: output size, 16..64 bytes.
        params: mapping with ``version`` set to ``argon2id``, ``scrypt`` or ``pbkdf2``.

    Raises:
        KDFParameterError: on invalid salt, length or cost parameters.
        KDFAlgorithmError: on an unsupported ``version`` or provider failure.
    """
    if not isinstance(salt, (bytes, bytearray)):
        raise KDFParameterError("Salt must be bytes")
    if len(salt) < _MIN_SALT_LEN or len(salt) > _MAX_SALT_LEN:
        raise KDFParameterError("Salt length must be between 8 and 64 bytes")
    if length < _MIN_OUT_LEN or length > _MAX_OUT_LEN:
        raise KDFParameterError("Output length must be between 16 and 64 bytes")
    if not isinstance(params, Mapping):
        raise KDFParameterError("KDF parameters must be a mapping")

    try:
        if isinstance(password, str):
            pw_bytes = password.encode("utf-8")
        elif isinstance(password, (bytes, bytearray)):
            pw_bytes = bytes(password)
        else:
            raise KDFParameterError("Password must be str, bytes or bytearray")

        version = params.get("version")
        if version == KDF_ARGON2ID:
            return _derive_argon2id(pw_bytes, bytes(salt), length, params)
        if version == KDF_SCRYPT:
            return _derive_scrypt(pw_bytes, bytes(salt), length, params)
        if version == KDF_PBKDF2:
            return _derive_pbkdf2(pw_bytes, bytes(salt), length, params)
        raise KDFAlgorithmError("Unsupported KDF version")
    finally:
        if isinstance(password, bytearray):
            zero_memory(password)


def _derive_argon2id(pw: bytes, salt: bytes, length: int, params: KdfParams) -> bytes:
    time_cost = _int_param(params, "time_cost", 2, _MAX_ARGON2_TIME)
    memory_cost = _int_param(params, "memory_cost", 64 * 1024, _MAX_ARGON2_MEMORY)
    parallelism = _int_param(params, "parallelism", 1, _MAX_ARGON2_LANES)
    try:
        dk: bytes = hash_secret_raw(
            secret=pw,
            salt=salt,
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=length,
            type=Type.ID,
            version=19,
        )
    except Exception as exc:
        _LOGGER.error("Argon2id derivation failed: %s", exc.__class__.__name__)
        raise KDFAlgorithmError("Argon2id failed") from exc
    _LOGGER.debug("Argon2id derivation completed (t=%d, m=%d)", time_cost, memory_cost)
    return dk


def _derive_scrypt(pw: bytes, salt: bytes, length: int, params: KdfParams) -> bytes:
    n = _int_param(params, "n", 2**14, _MAX_SCRYPT_N)
    if n & (n - 1):
        raise KDFParameterError("scrypt n must be a power of two")
    r = _int_param(params, "r", 1, _MAX_SCRYPT_RP)
    p = _int_param(params, "p", 1, _MAX_SCRYPT_RP)
    try:
        dk = Scrypt(salt=salt, length=length, n=n, r=r, p=p).derive(pw)
    except Exception as exc:
        _LOGGER.error("scrypt derivation failed: %s", exc.__class__.__name__)
        raise KDFAlgorithmError("scrypt failed") from exc
    _LOGGER.debug("scrypt derivation completed (n=%d, r=%d, p=%d)", n, r, p)
    return dk


def _derive_pbkdf2(pw: bytes, salt: bytes, length: int, params: KdfParams) -> bytes:
    if params.get("hash_name", "sha256") != "sha256":
        raise KDFParameterError("PBKDF2 hash_name must be 'sha256'")
    iterations = _int_param(params, "iterations", _MIN_PBKDF2_ITERS, _MAX_PBKDF2_ITERS)
    dk = hashlib.pbkdf2_hmac("sha256", pw, salt, iterations, dklen=length)
    _LOGGER.debug("PBKDF2 derivation completed (iters=%d)", iterations)
    return dk


def derive_from_password(
    password: Password,
    key_length: int,
    block_size: int,
    *,
    params: Optional[KdfParams] = None,
) -> DerivedKey:
    """
    Derive a fresh key for encryption.

    The salt is at least one cipher block long and at least ``salt_len``
    bytes from the parameters.

    Args:
        password: user password.
        key_length: key size in bits.
        block_size: cipher block size in bits.
        params: KDF parameters; defaults to ``KdfPolicy().to_params()``.

    Returns:
        DerivedKey with the key, its salt and the parameters used.
    """
    resolved = dict(params) if params is not None else KdfPolicy().to_params()
    salt_len = max(int(resolved.get("salt_len", 16)), block_size // 8)
    salt = generate_salt(salt_len)
    key = derive_key(password, salt, key_length // 8, params=resolved)
    return DerivedKey(key=key, salt=salt, params=resolved)


def recover_key(
    password: Password,
    key_length: int,
    salt: bytes,
    *,
    params: Optional[KdfParams] = None,
) -> bytes:
    """
    Re-derive the key of an existing container.

    Deterministic: the same password, salt and parameters always give the
    same key. A wrong password is not detected here.
    """
    resolved = params if params is not None else KdfPolicy().to_params()
    return derive_key(password, salt, key_length // 8, params=resolved)


__all__ = [
    "DerivedKey",
    "KdfParams",
    "generate_salt",
    "derive_key",
    "derive_from_password",
    "recover_key",
]
