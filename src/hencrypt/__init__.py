"""
Hybrid (RSA + AES) encryption of arbitrarily large byte streams.

Each stream gets a fresh one-time symmetric key. The key is wrapped with
the recipient's RSA public key and written, together with version
metadata, in a length-prefixed header; the payload is then streamed
through the symmetric cipher without being buffered whole.

Usage:
    from hencrypt.cipher import HybridCipher, HybridConfig

    cipher = HybridCipher(HybridConfig(one_time_key_bits=256))
    provider = cipher.provider
    encrypted = cipher.encrypt_bytes(provider.public_key_handle("key.pem.pub"), b"hello world")
    plaintext = cipher.decrypt_bytes(provider.private_key_handle("key.pem"), encrypted)

Command line:
    hencrypt -g key.pem
    hencrypt -e key.pem.pub < notes.txt > notes.txt.henc
    hencrypt -d key.pem < notes.txt.henc > notes.txt
"""

from hencrypt.constants import KEY_FIELD_WIDTH, MAGIC, VERSION_FIELD_WIDTH
from hencrypt.exceptions import (
    BugError,
    ConfigError,
    FieldTooLargeError,
    FramingEofError,
    FramingError,
    HencryptError,
    InvalidLengthError,
    KeyGenError,
    KeyHandlingError,
    MalformedVersionError,
    MissingKeyFileError,
    NotThisFormatError,
    StreamCryptoError,
    UnwrapError,
    VersionError,
    VersionMismatchError,
    WrapError,
)

__all__ = [
    # Constants
    "KEY_FIELD_WIDTH",
    "MAGIC",
    "VERSION_FIELD_WIDTH",
    # Exceptions
    "BugError",
    "ConfigError",
    "FieldTooLargeError",
    "FramingEofError",
    "FramingError",
    "HencryptError",
    "InvalidLengthError",
    "KeyGenError",
    "KeyHandlingError",
    "MalformedVersionError",
    "MissingKeyFileError",
    "NotThisFormatError",
    "StreamCryptoError",
    "UnwrapError",
    "VersionError",
    "VersionMismatchError",
    "WrapError",
]

__version__ = "0.1.0"
