from __future__ import annotations

import concurrent.futures

import pytest

from cryption.algorithms import (
    ASYMMETRIC_ALGORITHMS,
    SYMMETRIC_ALGORITHMS,
    AlgorithmRegistry,
    AlgorithmSpec,
)
from cryption.exceptions import UnknownAlgorithmError


def test_default_registry_contains_all_symmetric() -> None:
    registry = AlgorithmRegistry.default()
    assert len(registry) == len(SYMMETRIC_ALGORITHMS)
    assert registry.symmetric_names() == tuple(s.name for s in SYMMETRIC_ALGORITHMS)
    assert registry.asymmetric_names() == ASYMMETRIC_ALGORITHMS == ("rsa",)


@pytest.mark.parametrize(
    "name,key_length,block_size,iv_size",
    [
        ("aes-128-cbc", 128, 128, 128),
        ("aes-192-ctr", 192, 128, 128),
        ("aes-256-cbc", 256, 128, 128),
        ("camellia-256-cbc", 256, 128, 128),
        ("chacha20", 256, 8, 128),
    ],
)
def test_lookup_sizes(name: str, key_length: int, block_size: int, iv_size: int) -> None:
    spec = AlgorithmRegistry.default().lookup(name)
    assert (spec.key_length, spec.block_size, spec.iv_size) == (
        key_length,
        block_size,
        iv_size,
    )
    assert spec.key_bytes == key_length // 8
    assert spec.iv_bytes == iv_size // 8


def test_lookup_is_case_insensitive() -> None:
    registry = AlgorithmRegistry.default()
    assert registry.lookup("AES-256-CBC") is registry.lookup("aes-256-cbc")
    assert "AES-128-CTR" in registry
    assert "des-ede3" not in registry
    assert 42 not in registry


@pytest.mark.parametrize("name", ["des", "", "aes-512-cbc", "rsa"])
def test_lookup_unknown_raises(name: str) -> None:
    with pytest.raises(UnknownAlgorithmError):
        AlgorithmRegistry.default().lookup(name)


def test_unknown_algorithm_is_lookup_error() -> None:
    with pytest.raises(LookupError):
        AlgorithmRegistry.default().lookup("nope")


def test_padded_only_for_cbc() -> None:
    for spec in AlgorithmRegistry.default():
        assert spec.padded == (spec.mode == "CBC")


def test_spec_is_immutable() -> None:
    spec = AlgorithmRegistry.default().lookup("aes-128-cbc")
    with pytest.raises(Exception):
        spec.key_length = 64  # type: ignore[misc]


def test_spec_rejects_bad_sizes() -> None:
    with pytest.raises(ValueError):
        AlgorithmSpec("bad", 100, 128, 128, "AES", "CBC")
    with pytest.raises(ValueError):
        AlgorithmSpec("bad", 128, 0, 128, "AES", "CBC")


def test_duplicate_registration_rejected() -> None:
    spec = SYMMETRIC_ALGORITHMS[0]
    with pytest.raises(ValueError):
        AlgorithmRegistry([spec, spec])


def test_key_lengths() -> None:
    assert AlgorithmRegistry.default().key_lengths() == frozenset({16, 24, 32})


def test_concurrent_lookups() -> None:
    registry = AlgorithmRegistry.default()
    names = list(registry.symmetric_names()) * 50
    with concurrent.futures.ThreadPoolExecutor(max_workers=8) as ex:
        specs = list(ex.map(registry.lookup, names))
    assert [s.name for s in specs] == names
