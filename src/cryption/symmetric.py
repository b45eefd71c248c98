# -*- coding: utf-8 -*-
"""
RU: Потоковые стадии шифрования и расшифрования на базе cryptography.

EN: Streaming cipher and decipher stages built on ``cryptography``.

A :class:`StreamCipher` is bound to one algorithm, key and IV. Its
``encrypt``/``decrypt`` methods are generator stages: they pull a chunk from
upstream, transform it, yield the result and only then pull the next one,
so memory stays bounded by the chunk size whatever the file size.

CBC algorithms pad with PKCS#7; CTR, CFB, OFB and ChaCha20 produce exactly
as many bytes as they consume.

Security notes:
- None of these modes is authenticated. Integrity is checked afterwards
  against the content hash stored in the container.
- Keys, IVs and data never appear in logs or error messages.
"""

from __future__ import annotations

import logging
from typing import Final, Iterable, Iterator, Union

from cryptography.hazmat.decrepit.ciphers import modes as decrepit_modes
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from cryption.algorithms import AlgorithmSpec
from cryption.exceptions import DecryptionError, EncryptionError, PaddingError

_LOGGER: Final = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray]

_MODES: Final = {
    "CBC": modes.CBC,
    "CTR": modes.CTR,
    "CFB": decrepit_modes.CFB,
    "OFB": decrepit_modes.OFB,
}


class StreamCipher:
    """
    Chunked encryption/decryption for one (algorithm, key, IV) triple.

    Examples:
        >>> spec = AlgorithmRegistry.default().lookup("aes-128-ctr")
        >>> sc = StreamCipher(spec, b"k" * 16, b"i" * 16)
        >>> ct = b"".join(sc.encrypt([b"hello ", b"world"]))
        >>> b"".join(sc.decrypt([ct]))
        b'hello world'
    """

    __slots__ = ("_spec", "_key", "_iv")

    def __init__(self, spec: AlgorithmSpec, key: BytesLike, iv: BytesLike) -> None:
        if not isinstance(key, (bytes, bytearray)) or len(key) != spec.key_bytes:
            raise EncryptionError(f"{spec.name} key must be {spec.key_bytes} bytes")
        if not isinstance(iv, (bytes, bytearray)) or len(iv) != spec.iv_bytes:
            raise EncryptionError(f"{spec.name} IV must be {spec.iv_bytes} bytes")
        self._spec = spec
        self._key = bytes(key)
        self._iv = bytes(iv)

    @property
    def spec(self) -> AlgorithmSpec:
        return self._spec

    def _cipher(self) -> Cipher:
        spec = self._spec
        if spec.cipher == "ChaCha20":
            return Cipher(algorithms.ChaCha20(self._key, self._iv), mode=None)
        if spec.cipher == "AES":
            primitive = algorithms.AES(self._key)
        elif spec.cipher == "Camellia":
            primitive = algorithms.Camellia(self._key)
        else:
            raise EncryptionError(f"Unsupported cipher family: {spec.cipher}")
        mode_cls = _MODES.get(spec.mode or "")
        if mode_cls is None:
            raise EncryptionError(f"Unsupported cipher mode: {spec.mode}")
        return Cipher(primitive, mode_cls(self._iv))

    def encrypt(self, chunks: Iterable[bytes]) -> Iterator[bytes]:
        """Encrypt a stream of plaintext chunks."""
        try:
            encryptor = self._cipher().encryptor()
        except EncryptionError:
            raise
        except Exception as exc:
            _LOGGER.error("%s setup failed: %s", self._spec.name, exc.__class__.__name__)
            raise EncryptionError(f"{self._spec.name} setup failed") from exc

        padder = padding.PKCS7(self._spec.block_size).padder() if self._spec.padded else None
        count = 0
        for chunk in chunks:
            count += 1
            data = padder.update(chunk) if padder is not None else chunk
            out = encryptor.update(data)
            if out:
                yield out
        tail = padder.finalize() if padder is not None else b""
        out = encryptor.update(tail) + encryptor.finalize()
        if out:
            yield out
        _LOGGER.debug("%s encrypted %d chunks", self._spec.name, count)

    def decrypt(self, chunks: Iterable[bytes]) -> Iterator[bytes]:
        """
        Decrypt a stream of ciphertext chunks.

        Raises:
            DecryptionError: ciphertext length is invalid for the mode.
            PaddingError: PKCS#7 padding is invalid (wrong key or corrupted data).
        """
        try:
            decryptor = self._cipher().decryptor()
        except EncryptionError as exc:
            raise DecryptionError(str(exc)) from exc
        except Exception as exc:
            _LOGGER.error("%s setup failed: %s", self._spec.name, exc.__class__.__name__)
            raise DecryptionError(f"{self._spec.name} setup failed") from exc

        unpadder = (
            padding.PKCS7(self._spec.block_size).unpadder() if self._spec.padded else None
        )
        for chunk in chunks:
            out = decryptor.update(chunk)
            if unpadder is not None:
                out = unpadder.update(out)
            if out:
                yield out

        try:
            out = decryptor.finalize()
        except ValueError as exc:
            _LOGGER.warning("%s ciphertext has invalid length", self._spec.name)
            raise DecryptionError("Ciphertext length is invalid for this mode") from exc
        if unpadder is not None:
            try:
                out = unpadder.update(out) + unpadder.finalize()
            except ValueError as exc:
                _LOGGER.warning("%s padding check failed", self._spec.name)
                raise PaddingError("Invalid padding: wrong key or corrupted data") from exc
        if out:
            yield out


__all__ = ["StreamCipher"]
