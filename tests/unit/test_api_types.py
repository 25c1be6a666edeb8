"""API type contract tests.

These tests verify that public APIs maintain their type signatures.
Uses typing_extensions.assert_type for STATIC type checking by pyright.
"""

import io

from typing_extensions import assert_type

from hencrypt.cipher import HybridCipher, StreamHeader
from hencrypt.encoding import b64_decode, b64_encode
from hencrypt.native import NativeProvider
from hencrypt.openssl import OpenSSLProvider
from hencrypt.provider import CryptoProvider
from hencrypt.version import VersionInfo
from tests.conftest import KeyPairFiles


class TestHybridCipherTypes:
    """Verify HybridCipher type contracts."""

    def test_encrypt_bytes_returns_bytes(self, keypair: KeyPairFiles) -> None:
        """encrypt_bytes returns the whole stream as bytes."""
        result = HybridCipher().encrypt_bytes(keypair.public_key, b"data")

        assert_type(result, bytes)
        assert isinstance(result, bytes)

    def test_decrypt_returns_version_info(self, keypair: KeyPairFiles) -> None:
        """decrypt reports the stream's version metadata."""
        cipher = HybridCipher()
        encrypted = cipher.encrypt_bytes(keypair.public_key, b"data")

        result = cipher.decrypt(keypair.private_key, io.BytesIO(encrypted), io.BytesIO())

        assert_type(result, VersionInfo)
        assert isinstance(result, VersionInfo)

    def test_read_header_returns_stream_header(self, keypair: KeyPairFiles) -> None:
        """read_header returns the parsed header with the key still wrapped."""
        cipher = HybridCipher()
        encrypted = cipher.encrypt_bytes(keypair.public_key, b"data")

        result = cipher.read_header(io.BytesIO(encrypted))

        assert_type(result, StreamHeader)
        assert isinstance(result.wrapped_key, str)


class TestProviderTypes:
    """Both providers satisfy the CryptoProvider protocol."""

    def test_native_is_provider(self) -> None:
        """NativeProvider type-checks as a CryptoProvider."""
        provider: CryptoProvider = NativeProvider()
        assert_type(provider.versions(), tuple[str, str])

    def test_openssl_is_provider(self) -> None:
        """OpenSSLProvider type-checks as a CryptoProvider (static only)."""
        cls: type[CryptoProvider] = OpenSSLProvider
        assert cls is OpenSSLProvider


class TestEncodingTypes:
    """Verify base64 helper type contracts."""

    def test_encode_returns_str(self) -> None:
        """b64_encode returns ASCII text for the header."""
        result = b64_encode(b"\x00\xff")

        assert_type(result, str)
        assert result == "AP8="

    def test_decode_returns_bytes(self) -> None:
        """b64_decode returns raw bytes."""
        result = b64_decode("AP8=")

        assert_type(result, bytes)
        assert result == b"\x00\xff"
