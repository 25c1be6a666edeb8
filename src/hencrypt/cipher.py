"""
Hybrid encryption of byte streams.

Encrypt:
    random one-time key -> wrap with public key -> write header -> stream payload

Decrypt (linear, fail fast):
    read version field -> check magic and version -> read key field
    -> unwrap with private key -> stream payload

The header is fully validated and the key unwrapped before a single
payload byte is read. The one-time key is wiped when the payload stream
closes, on success and on failure.

Usage:
    from hencrypt.cipher import HybridCipher, HybridConfig

    cipher = HybridCipher(HybridConfig())
    provider = cipher.config.provider
    with open("notes.txt", "rb") as src, open("notes.txt.henc", "wb") as dst:
        cipher.encrypt(provider.public_key_handle("key.pem.pub"), src, dst)
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, BinaryIO

from hencrypt import __version__
from hencrypt._logging import get_logger
from hencrypt.constants import (
    DEFAULT_ONE_TIME_KEY_BITS,
    DEFAULT_RSA_KEY_BITS,
    KEY_FIELD_WIDTH,
    MIN_RSA_KEY_BITS,
    VERSION_FIELD_WIDTH,
)
from hencrypt.exceptions import ConfigError, UnwrapError, VersionMismatchError
from hencrypt.framing import decode_field, encode_field
from hencrypt.native import NativeProvider
from hencrypt.provider import CryptoProvider, OneTimeKey
from hencrypt.version import VersionInfo, parse_triple

__all__ = [
    "HybridCipher",
    "HybridConfig",
    "StreamHeader",
]

_logger = get_logger(__name__)


@dataclass(frozen=True)
class HybridConfig:
    """
    Settings for one HybridCipher.

    Passed explicitly; nothing is read from globals or the environment.
    """

    one_time_key_bits: int = DEFAULT_ONE_TIME_KEY_BITS
    """Size of the random one-time key. Positive multiple of 8."""

    rsa_key_bits: int = DEFAULT_RSA_KEY_BITS
    """Modulus size for newly generated key pairs."""

    provider: CryptoProvider = field(default_factory=NativeProvider)
    """Crypto primitives."""

    current_version: str = __version__
    """Version written to and checked against stream headers."""

    def __post_init__(self) -> None:
        if self.one_time_key_bits <= 0 or self.one_time_key_bits % 8:
            raise ConfigError(f"one-time key size must be a positive multiple of 8 bits: {self.one_time_key_bits}")
        if self.rsa_key_bits < MIN_RSA_KEY_BITS:
            raise ConfigError(f"RSA key size must be at least {MIN_RSA_KEY_BITS} bits: {self.rsa_key_bits}")
        if parse_triple(self.current_version) is None:
            raise ConfigError(f"version must be major.minor.patch: {self.current_version!r}")


@dataclass(frozen=True)
class StreamHeader:
    """Parsed stream header."""

    version_info: VersionInfo
    wrapped_key: str

    def encode(self) -> bytes:
        """Encode as the on-wire header."""
        return encode_field(VERSION_FIELD_WIDTH, self.version_info.serialize()) + encode_field(
            KEY_FIELD_WIDTH, self.wrapped_key.encode("ascii")
        )


class HybridCipher:
    """Encrypts and decrypts streams with a fresh one-time key per stream."""

    def __init__(self, config: HybridConfig | None = None) -> None:
        self.config = config or HybridConfig()

    @property
    def provider(self) -> CryptoProvider:
        return self.config.provider

    def _reference_version(self) -> VersionInfo:
        return VersionInfo.build(self.config.current_version, ())

    def encrypt(self, public_key: Any, src: BinaryIO, dst: BinaryIO) -> None:
        """
        Encrypt src into dst.

        Args:
            public_key: Provider key handle (see CryptoProvider.public_key_handle)
            src: Plaintext binary stream, read to EOF
            dst: Binary stream receiving header and ciphertext

        Raises:
            KeyGenError: If the one-time key cannot be generated
            WrapError: If the public key cannot wrap the one-time key
            FieldTooLargeError: If the wrapped key does not fit its field
            StreamCryptoError: If the symmetric cipher fails
        """
        nbytes = self.config.one_time_key_bits // 8
        with OneTimeKey(self.provider.random_bytes(nbytes)) as key:
            wrapped = self.provider.asymmetric_wrap(public_key, key.reveal())
            header = StreamHeader(
                version_info=VersionInfo.build(self.config.current_version, self.provider.versions()),
                wrapped_key=wrapped,
            )
            # Encode before writing so an oversized field leaves dst untouched
            encoded = header.encode()
            dst.write(encoded)
            _logger.debug(
                "Header written: version=%s header_bytes=%d key_bits=%d",
                header.version_info.version,
                len(encoded),
                self.config.one_time_key_bits,
            )

            self.provider.symmetric_encrypt(key.reveal(), src, dst)
        _logger.debug("Encryption complete")

    def read_version_info(self, src: BinaryIO) -> VersionInfo:
        """
        Read only the version field, without the compatibility check.

        Used to inspect streams from any version. Leaves src at the key field.

        Raises:
            FramingError: If the field is truncated or its length invalid
            NotThisFormatError: If the magic keyword is missing
            MalformedVersionError: If the version triple is malformed
        """
        return VersionInfo.parse(decode_field(VERSION_FIELD_WIDTH, src))

    def read_header(self, src: BinaryIO) -> StreamHeader:
        """
        Read and validate a stream header, leaving src at the payload.

        Raises:
            FramingError: If either field is truncated or its length invalid
            NotThisFormatError: If the magic keyword is missing
            MalformedVersionError: If the version triple is malformed
            VersionMismatchError: If major.minor differs from this version
        """
        version_info = self.read_version_info(src)
        reference = self._reference_version()
        if not version_info.is_compatible(reference):
            raise VersionMismatchError(version_info.version, reference.version)
        _logger.debug("Version accepted: stream=%s current=%s", version_info.version, reference.version)

        raw_key = decode_field(KEY_FIELD_WIDTH, src)
        try:
            wrapped = raw_key.decode("ascii")
        except UnicodeDecodeError as e:
            raise UnwrapError("decryption failed") from e
        return StreamHeader(version_info=version_info, wrapped_key=wrapped)

    def decrypt(self, private_key: Any, src: BinaryIO, dst: BinaryIO) -> VersionInfo:
        """
        Decrypt src into dst.

        Args:
            private_key: Provider key handle (see CryptoProvider.private_key_handle)
            src: Binary stream positioned at the header
            dst: Binary stream receiving the plaintext

        Returns:
            VersionInfo of the stream

        Raises:
            FramingError: If the header is truncated or malformed
            VersionError: If the header is not this format or version
            UnwrapError: If the private key does not open the wrapped key
            StreamCryptoError: If the payload does not decrypt
        """
        header = self.read_header(src)
        with OneTimeKey(self.provider.asymmetric_unwrap(private_key, header.wrapped_key)) as key:
            _logger.debug("One-time key unwrapped: key_bits=%d", len(key) * 8)
            self.provider.symmetric_decrypt(key.reveal(), src, dst)
        _logger.debug("Decryption complete")
        return header.version_info

    def encrypt_bytes(self, public_key: Any, plaintext: bytes) -> bytes:
        """Encrypt an in-memory payload."""
        out = io.BytesIO()
        self.encrypt(public_key, io.BytesIO(plaintext), out)
        return out.getvalue()

    def decrypt_bytes(self, private_key: Any, data: bytes) -> bytes:
        """Decrypt an in-memory stream."""
        out = io.BytesIO()
        self.decrypt(private_key, io.BytesIO(data), out)
        return out.getvalue()
