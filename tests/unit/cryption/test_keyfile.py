from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from cryption.algorithms import AlgorithmRegistry, AlgorithmSpec
from cryption.exceptions import KeyFileCorruptError
from cryption.keyfile import read_key_file, write_key_file


def test_write_then_read(tmp_path: Path) -> None:
    key = os.urandom(32)
    p = tmp_path / "file.key"
    write_key_file(key, p)
    assert p.read_text(encoding="ascii") == key.hex() + "\n"
    assert read_key_file(p) == key
    assert read_key_file(str(p), 32) == key


def test_write_overwrites(tmp_path: Path) -> None:
    p = tmp_path / "file.key"
    write_key_file(b"\x01" * 16, p)
    write_key_file(b"\x02" * 24, p)
    assert read_key_file(p) == b"\x02" * 24


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_write_restricts_permissions(tmp_path: Path) -> None:
    p = tmp_path / "file.key"
    write_key_file(b"\x01" * 16, p)
    assert stat.S_IMODE(os.stat(p).st_mode) == 0o600


def test_write_rejects_empty_key(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        write_key_file(b"", tmp_path / "k")


def test_uppercase_and_whitespace_accepted(tmp_path: Path) -> None:
    p = tmp_path / "k"
    p.write_text("  " + ("AB" * 16) + "\r\n")
    assert read_key_file(p) == b"\xab" * 16


@pytest.mark.parametrize(
    "content",
    [b"", b"\n", b"zz" * 16, b"abc", "é".encode("utf-8") * 16, b"ab" * 1000],
)
def test_corrupt_content(tmp_path: Path, content: bytes) -> None:
    p = tmp_path / "k"
    p.write_bytes(content)
    with pytest.raises(KeyFileCorruptError):
        read_key_file(p)


def test_wrong_expected_length(tmp_path: Path) -> None:
    p = tmp_path / "k"
    write_key_file(b"\x01" * 16, p)
    with pytest.raises(KeyFileCorruptError):
        read_key_file(p, 32)


def test_unsupported_default_length(tmp_path: Path) -> None:
    p = tmp_path / "k"
    write_key_file(b"\x01" * 20, p)
    with pytest.raises(KeyFileCorruptError):
        read_key_file(p)
    assert read_key_file(p, allowed_lengths=[20]) == b"\x01" * 20


def test_missing_file_propagates_oserror(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_key_file(tmp_path / "missing.key")


@pytest.mark.parametrize("spec", list(AlgorithmRegistry.default()), ids=lambda s: s.name)
def test_default_lengths_follow_registry(tmp_path: Path, spec: AlgorithmSpec) -> None:
    p = tmp_path / "k"
    key = os.urandom(spec.key_bytes)
    write_key_file(key, p)
    assert read_key_file(p) == key
