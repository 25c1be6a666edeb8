"""
Length-prefixed header fields.

Field format:
┌─────────────────────────┬──────────────────┐
│ length (width digits)   │ payload (length) │
└─────────────────────────┴──────────────────┘

The length is left-zero-padded decimal, so a 2-digit field holds at most
99 bytes and a 4-digit field at most 9999.
"""

from typing import BinaryIO

from hencrypt.exceptions import FieldTooLargeError, FramingEofError, InvalidLengthError

__all__ = [
    "decode_field",
    "encode_field",
    "read_exact",
    "write_field",
]

_ASCII_DIGITS = frozenset(b"0123456789")


def encode_field(width: int, data: bytes) -> bytes:
    """
    Encode a length-prefixed field.

    Args:
        width: Number of decimal digits in the length prefix
        data: Field payload

    Returns:
        length prefix || data

    Raises:
        FieldTooLargeError: If len(data) > 10**width - 1
    """
    if len(data) > 10**width - 1:
        raise FieldTooLargeError(len(data), width)
    return str(len(data)).zfill(width).encode("ascii") + data


def write_field(out: BinaryIO, width: int, data: bytes) -> None:
    """Encode a field and write it to a binary stream."""
    out.write(encode_field(width, data))


def read_exact(stream: BinaryIO, n: int) -> bytes:
    """
    Read up to n bytes, retrying short reads.

    Pipes and sockets may return fewer bytes than requested before EOF;
    this keeps reading until n bytes arrive or the stream is exhausted.

    Returns:
        The bytes read; shorter than n only at end of stream
    """
    buf = bytearray()
    while len(buf) < n:
        chunk = stream.read(n - len(buf))
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)


def decode_field(width: int, stream: BinaryIO) -> bytes:
    """
    Read one length-prefixed field from a stream.

    Consumes exactly width + length bytes and nothing more, so the
    stream is left positioned at the next field.

    Args:
        width: Number of decimal digits in the length prefix
        stream: Binary stream positioned at the length prefix

    Returns:
        Field payload

    Raises:
        FramingEofError: If the stream ends inside the prefix or payload
        InvalidLengthError: If the prefix is not all ASCII digits
    """
    raw_len = read_exact(stream, width)
    if len(raw_len) < width:
        raise FramingEofError("reading length field")
    # int() would also accept signs, spaces, underscores and non-ASCII digits
    if not all(b in _ASCII_DIGITS for b in raw_len):
        raise InvalidLengthError(raw_len)

    length = int(raw_len)
    data = read_exact(stream, length)
    if len(data) < length:
        raise FramingEofError("reading field")
    return data
