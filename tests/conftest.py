"""Shared test fixtures for hencrypt tests."""

import io
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from hencrypt.cipher import HybridCipher, HybridConfig
from hencrypt.keys import generate_keypair, public_key_path
from hencrypt.native import NativeProvider

# Enable hencrypt debug logging during tests
logging.getLogger("hencrypt").setLevel(logging.DEBUG)
logging.getLogger("hencrypt").addHandler(logging.StreamHandler())

# 2048 bits keeps key generation fast while matching real-world sizes
TEST_RSA_BITS = 2048


# === Key Fixtures ===


@dataclass
class KeyPairFiles:
    """A generated key pair on disk."""

    private_path: Path
    public_path: Path
    private_key: rsa.RSAPrivateKey

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self.private_key.public_key()


def _make_keypair(directory: Path, name: str) -> KeyPairFiles:
    path = directory / name
    key = generate_keypair(path, TEST_RSA_BITS)
    return KeyPairFiles(private_path=path, public_path=public_key_path(path), private_key=key)


@pytest.fixture(scope="session")
def keypair(tmp_path_factory: pytest.TempPathFactory) -> KeyPairFiles:
    """RSA key pair written to disk.

    Session-scoped: RSA generation is slow, one pair serves all tests.
    """
    return _make_keypair(tmp_path_factory.mktemp("keys"), "key.pem")


@pytest.fixture(scope="session")
def other_keypair(tmp_path_factory: pytest.TempPathFactory) -> KeyPairFiles:
    """A second, unrelated RSA key pair for mismatch tests."""
    return _make_keypair(tmp_path_factory.mktemp("other-keys"), "other.pem")


# === Cipher Fixtures ===


@pytest.fixture
def cipher() -> HybridCipher:
    """HybridCipher with default config and the native provider."""
    return HybridCipher(HybridConfig())


@pytest.fixture
def cipher_factory() -> Callable[..., HybridCipher]:
    """Factory for HybridCipher with custom config fields.

    Usage:
        def test_something(cipher_factory):
            cipher = cipher_factory(one_time_key_bits=128)
    """

    def _make(**kwargs: Any) -> HybridCipher:
        return HybridCipher(HybridConfig(**kwargs))

    return _make


# === Provider Doubles ===


class RecordingProvider(NativeProvider):
    """NativeProvider that records the key bytes and stream positions it sees."""

    def __init__(self) -> None:
        super().__init__()
        self.keys_seen: list[bytes] = []
        self.decrypt_calls = 0

    def symmetric_encrypt(self, key: bytes, src: BinaryIO, dst: BinaryIO) -> None:
        self.keys_seen.append(key)
        super().symmetric_encrypt(key, src, dst)

    def symmetric_decrypt(self, key: bytes, src: BinaryIO, dst: BinaryIO) -> None:
        self.decrypt_calls += 1
        self.keys_seen.append(key)
        super().symmetric_decrypt(key, src, dst)


@pytest.fixture
def recording_provider() -> RecordingProvider:
    """NativeProvider that records calls."""
    return RecordingProvider()


# === Stream Helpers ===


class ShortReadStream(io.RawIOBase):
    """Binary stream that returns at most `step` bytes per read, like a pipe."""

    def __init__(self, data: bytes, step: int = 1) -> None:
        self._buf = io.BytesIO(data)
        self._step = step

    def readable(self) -> bool:
        return True

    def readinto(self, b: Any) -> int:
        chunk = self._buf.read(min(len(b), self._step))
        b[: len(chunk)] = chunk
        return len(chunk)

    def read(self, size: int = -1) -> bytes:
        if size < 0:
            return self._buf.read()
        return self._buf.read(min(size, self._step))
