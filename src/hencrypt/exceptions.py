"""
Exception hierarchy for hencrypt.

All errors inherit from HencryptError so callers can catch one type and
render it as a single line.
"""


class HencryptError(Exception):
    """Base exception for all hencrypt errors."""


# =============================================================================
# Framing
# =============================================================================


class FramingError(HencryptError):
    """The stream header is not correctly length-prefixed."""


class FramingEofError(FramingError):
    """Stream ended before a header field was complete.

    The message names the step that ran out of input:
    "reading length field" or "reading field".
    """

    def __init__(self, step: str) -> None:
        self.step = step
        super().__init__(f"unexpected end of input {step}")


class InvalidLengthError(FramingError):
    """Length prefix contains something other than ASCII decimal digits."""

    def __init__(self, raw: bytes) -> None:
        self.raw = raw
        super().__init__(f"invalid length field: {raw!r}")


class FieldTooLargeError(FramingError):
    """Field payload does not fit its fixed-width length prefix."""

    def __init__(self, size: int, width: int) -> None:
        self.size = size
        self.width = width
        super().__init__(f"field of {size} bytes does not fit a {width}-digit length prefix")


# =============================================================================
# Version metadata
# =============================================================================


class VersionError(HencryptError):
    """Version metadata rejected."""


class NotThisFormatError(VersionError):
    """Input does not start with the hencrypt magic keyword."""


class MalformedVersionError(VersionError):
    """Version metadata has the magic keyword but no valid version triple."""


class VersionMismatchError(VersionError):
    """Stream was written by an incompatible version."""

    def __init__(self, found: str, expected: str) -> None:
        self.found = found
        self.expected = expected
        super().__init__(f"incompatible version: input was written by {found}, this is {expected}")


# =============================================================================
# Keys and ciphers
# =============================================================================


class KeyHandlingError(HencryptError):
    """Problem with key files or key material."""


class MissingKeyFileError(KeyHandlingError):
    """Key file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"no such file: {path}")


class KeyGenError(KeyHandlingError):
    """Could not generate key material."""


class WrapError(KeyHandlingError):
    """Could not wrap the one-time key with the public key."""


class StreamCryptoError(HencryptError):
    """Symmetric encryption or decryption failed.

    Deliberately generic: wrong key, corrupted ciphertext and truncated
    ciphertext all raise the same error with the same message.
    """


class UnwrapError(KeyHandlingError, StreamCryptoError):
    """Could not unwrap the one-time key with the private key.

    Also a StreamCryptoError, so a mismatched private key is reported the
    same way as any other decryption failure.
    """


# =============================================================================
# Misuse
# =============================================================================


class ConfigError(HencryptError):
    """Invalid configuration value."""


class BugError(HencryptError):
    """Internal contract violation. Never caused by user input."""
