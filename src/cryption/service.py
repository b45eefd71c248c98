# -*- coding: utf-8 -*-
"""
RU: Шифрование и расшифрование файлов.

EN: File encryption and decryption.

Encryption pipeline::

    source file -> cipher -> progress -> trailer writer -> output file

Decryption pipeline::

    ciphertext region -> progress -> decipher -> output file
    then: hash(output) == trailer hash, else PasswordOrIntegrityError

Every stage is a generator, so at most one chunk per stage is in flight.
Failed runs leave their partial output on disk.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Final, Iterator, Optional, Union

from cryption.algorithms import AlgorithmRegistry, AlgorithmSpec
from cryption.config import CryptionConfig
from cryption.container import (
    ContainerConfig,
    TrailerWriter,
    open_ciphertext_stream,
    read_config,
)
from cryption.exceptions import (
    CorruptContainerError,
    KdfError,
    PasswordOrIntegrityError,
)
from cryption.hashing import hash_file, validate_hash
from cryption.kdf import Password, derive_from_password, recover_key
from cryption.keyfile import read_key_file, write_key_file
from cryption.progress import ProgressCallback, ProgressCounter
from cryption.symmetric import StreamCipher
from cryption.utils import generate_random_bytes

LOGGER: Final = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_chunks(f: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    while True:
        chunk = f.read(chunk_size)
        if not chunk:
            return
        yield chunk


@dataclass(slots=True)
class FileCryptor:
    """
    Encrypts and decrypts single files into self-describing containers.

    The registry is shared read-only; the cryptor holds no per-call state, so
    one instance may serve concurrent calls on different files.
    """

    registry: AlgorithmRegistry = field(default_factory=AlgorithmRegistry.default)
    config: CryptionConfig = field(default_factory=CryptionConfig)

    @staticmethod
    def new_default(cfg: Optional[CryptionConfig] = None) -> "FileCryptor":
        return FileCryptor(AlgorithmRegistry.default(), cfg or CryptionConfig())

    def encrypt(
        self,
        file_path: PathLike,
        password: Password,
        algorithm: Union[str, AlgorithmSpec],
        output_path: PathLike,
        key_file_path: Optional[PathLike] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Encrypt ``file_path`` into the container ``output_path``.

        Args:
            file_path: plaintext file.
            password: password the key is derived from.
            algorithm: registry name (or spec) of the cipher.
            output_path: container to create; overwritten if present.
            key_file_path: where to store the raw key as hex, if given.
            on_progress: called with the cumulative ciphertext byte count.

        Raises:
            UnknownAlgorithmError: ``algorithm`` is not registered.
            OSError: any read/write failure.
        """
        spec = (
            algorithm
            if isinstance(algorithm, AlgorithmSpec)
            else self.registry.lookup(algorithm)
        )
        derived = derive_from_password(
            password, spec.key_length, spec.block_size, params=self.config.kdf.to_params()
        )
        if key_file_path is not None:
            write_key_file(derived.key, key_file_path)

        content_hash = hash_file(
            file_path, self.config.hash_algorithm, chunk_size=self.config.chunk_size
        )
        container = ContainerConfig(
            algorithm=spec.name,
            salt=derived.salt,
            iv=generate_random_bytes(spec.iv_bytes),
            content_hash=content_hash,
            hash_algorithm=self.config.hash_algorithm,
            kdf=derived.params,
        )

        cipher = StreamCipher(spec, derived.key, container.iv)
        progress = ProgressCounter(on_progress)
        with open(file_path, "rb") as src, open(output_path, "wb") as dst:
            with TrailerWriter(dst, container) as writer:
                for chunk in progress.pipe(
                    cipher.encrypt(_read_chunks(src, self.config.chunk_size))
                ):
                    writer.write(chunk)
        LOGGER.info(
            "Encrypted %s -> %s (%s, %d bytes)",
            file_path,
            output_path,
            spec.name,
            progress.total,
        )

    def decrypt(
        self,
        file_path: PathLike,
        password: Optional[Password],
        key_file_path: Optional[PathLike],
        output_path: PathLike,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Decrypt the container ``file_path`` into ``output_path``.

        The key comes from ``key_file_path`` when given, otherwise it is
        re-derived from ``password`` and the stored salt.

        Raises:
            CorruptContainerError: the trailer is missing or invalid.
            UnknownAlgorithmError: the trailer names an unknown algorithm.
            KeyFileCorruptError: the key file is unreadable or the wrong size.
            DecryptionError: the decipher rejected the ciphertext.
            PasswordOrIntegrityError: wrong password/key or corrupted data.
            OSError: any read/write failure.
        """
        container = read_config(file_path)
        spec = self.registry.lookup(container.algorithm)
        if len(container.iv) != spec.iv_bytes:
            raise CorruptContainerError(f"IV length does not match {spec.name}")

        if key_file_path is not None:
            key = read_key_file(key_file_path, spec.key_bytes)
        elif password is not None:
            try:
                key = recover_key(
                    password, spec.key_length, container.salt, params=container.kdf
                )
            except KdfError as exc:
                LOGGER.warning("Container KDF parameters rejected: %s", exc)
                raise CorruptContainerError(
                    "Container KDF parameters are invalid"
                ) from exc
        else:
            raise ValueError("Either password or key_file_path is required")

        cipher = StreamCipher(spec, key, container.iv)
        progress = ProgressCounter(on_progress)
        with open_ciphertext_stream(file_path) as src, open(output_path, "wb") as dst:
            for chunk in cipher.decrypt(
                progress.pipe(src.iter_chunks(self.config.chunk_size))
            ):
                dst.write(chunk)

        actual = hash_file(
            output_path, container.hash_algorithm, chunk_size=self.config.chunk_size
        )
        if not validate_hash(container.content_hash, actual):
            LOGGER.warning("Content hash mismatch after decrypting %s", file_path)
            raise PasswordOrIntegrityError(
                "Decrypted content does not match: wrong password or corrupted data"
            )
        LOGGER.info("Decrypted %s -> %s (%s)", file_path, output_path, spec.name)

    async def encrypt_async(
        self,
        file_path: PathLike,
        password: Password,
        algorithm: Union[str, AlgorithmSpec],
        output_path: PathLike,
        key_file_path: Optional[PathLike] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """:meth:`encrypt` in a worker thread; completes once the output is closed."""
        await asyncio.to_thread(
            self.encrypt,
            file_path,
            password,
            algorithm,
            output_path,
            key_file_path,
            on_progress,
        )

    async def decrypt_async(
        self,
        file_path: PathLike,
        password: Optional[Password],
        key_file_path: Optional[PathLike],
        output_path: PathLike,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """:meth:`decrypt` in a worker thread."""
        await asyncio.to_thread(
            self.decrypt, file_path, password, key_file_path, output_path, on_progress
        )


def encrypt(
    file_path: PathLike,
    password: Password,
    algorithm: str,
    output_path: PathLike,
    key_file_path: Optional[PathLike] = None,
    on_progress: Optional[ProgressCallback] = None,
    *,
    config: Optional[CryptionConfig] = None,
) -> None:
    """Encrypt a file with a default :class:`FileCryptor`."""
    FileCryptor.new_default(config).encrypt(
        file_path, password, algorithm, output_path, key_file_path, on_progress
    )


def decrypt(
    file_path: PathLike,
    password: Optional[Password],
    key_file_path: Optional[PathLike],
    output_path: PathLike,
    on_progress: Optional[ProgressCallback] = None,
    *,
    config: Optional[CryptionConfig] = None,
) -> None:
    """Decrypt a container with a default :class:`FileCryptor`."""
    FileCryptor.new_default(config).decrypt(
        file_path, password, key_file_path, output_path, on_progress
    )


__all__ = ["FileCryptor", "encrypt", "decrypt"]
