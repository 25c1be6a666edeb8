"""
Text codec for wrapped keys.

Wrapped keys travel as standard base64 (RFC 4648 §4) so the header stays
printable. Decoding is strict: stray characters are rejected, not skipped.
"""

import base64
import binascii

__all__ = [
    "b64_decode",
    "b64_encode",
]


def b64_encode(data: bytes) -> str:
    """
    Encode bytes to a padded base64 string.

    Args:
        data: Raw bytes to encode

    Returns:
        base64 string (ASCII)
    """
    return base64.b64encode(data).decode("ascii")


def b64_decode(s: str) -> bytes:
    """
    Decode a padded base64 string.

    Args:
        s: base64 string

    Returns:
        Decoded bytes

    Raises:
        ValueError: If the string is not valid base64
    """
    try:
        return base64.b64decode(s, validate=True)
    except binascii.Error as e:
        raise ValueError("Invalid base64 encoding") from e
