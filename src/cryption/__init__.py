"""
RU: Парольное шифрование файлов в самоописывающие контейнеры.

EN: Password-based file encryption into self-describing containers.

A container is the ciphertext followed by a trailer carrying the algorithm,
KDF salt and parameters, IV, and the hash of the original plaintext. The hash
is checked after decryption and is how a wrong password is detected.

Example:
    from cryption import decrypt, encrypt
    encrypt("report.pdf", "secret", "aes-256-cbc", "report.pdf.enc", "report.pdf.key")
    decrypt("report.pdf.enc", "secret", None, "report.pdf")
    decrypt("report.pdf.enc", None, "report.pdf.key", "report.pdf")
"""

from .algorithms import AlgorithmRegistry, AlgorithmSpec
from .config import CryptionConfig, KdfPolicy, KdfProfile
from .container import ContainerConfig, open_ciphertext_stream, read_config
from .exceptions import (
    CorruptContainerError,
    CryptionError,
    DecryptionError,
    EncryptionError,
    HashingError,
    KDFAlgorithmError,
    KDFParameterError,
    KeyFileCorruptError,
    PaddingError,
    PasswordOrIntegrityError,
    UnknownAlgorithmError,
)
from .hashing import hash_file, validate_hash
from .kdf import DerivedKey, derive_from_password, recover_key
from .keyfile import read_key_file, write_key_file
from .progress import ProgressCounter
from .service import FileCryptor, decrypt, encrypt

_DEFAULT_REGISTRY = AlgorithmRegistry.default()

# Read-only name lists for discovery.
SYMMETRIC_ALGORITHMS = _DEFAULT_REGISTRY.symmetric_names()
ASYMMETRIC_ALGORITHMS = _DEFAULT_REGISTRY.asymmetric_names()

__version__ = "1.0.0"

__all__ = [
    # Operations
    "encrypt",
    "decrypt",
    "FileCryptor",
    # Registry
    "AlgorithmRegistry",
    "AlgorithmSpec",
    "SYMMETRIC_ALGORITHMS",
    "ASYMMETRIC_ALGORITHMS",
    # Configuration
    "CryptionConfig",
    "KdfPolicy",
    "KdfProfile",
    # Building blocks
    "ContainerConfig",
    "read_config",
    "open_ciphertext_stream",
    "DerivedKey",
    "derive_from_password",
    "recover_key",
    "read_key_file",
    "write_key_file",
    "hash_file",
    "validate_hash",
    "ProgressCounter",
    # Errors
    "CryptionError",
    "UnknownAlgorithmError",
    "KeyFileCorruptError",
    "CorruptContainerError",
    "EncryptionError",
    "DecryptionError",
    "PasswordOrIntegrityError",
    "PaddingError",
    "KDFParameterError",
    "KDFAlgorithmError",
    "HashingError",
]
