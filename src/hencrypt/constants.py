"""
Protocol constants for the hencrypt stream format.

Stream layout:
┌────┬─────────────┬──────┬─────────────┬───────────────┐
│ NN │ versioninfo │ NNNN │ wrapped-key │ cipher-stream │
└────┴─────────────┴──────┴─────────────┴───────────────┘

NN and NNNN are left-zero-padded ASCII decimal lengths of the field that
follows them. Everything after the wrapped key is symmetric cipher output.
"""

from typing import Final

# Literal first token of the version field
MAGIC: Final[str] = "hencrypt"

# Width in ASCII digits of each length prefix
VERSION_FIELD_WIDTH: Final[int] = 2
KEY_FIELD_WIDTH: Final[int] = 4

# Largest payload each field can carry (10**width - 1)
VERSION_FIELD_MAX: Final[int] = 10**VERSION_FIELD_WIDTH - 1
KEY_FIELD_MAX: Final[int] = 10**KEY_FIELD_WIDTH - 1

# Key size defaults (bits)
DEFAULT_ONE_TIME_KEY_BITS: Final[int] = 256
DEFAULT_RSA_KEY_BITS: Final[int] = 4096
MIN_RSA_KEY_BITS: Final[int] = 1024

# Streaming chunk size for the symmetric cipher
CHUNK_SIZE: Final[int] = 64 * 1024

# AES-256-CBC parameters
AES_KEY_SIZE: Final[int] = 32
AES_BLOCK_SIZE: Final[int] = 16
SALT_SIZE: Final[int] = 16
SALT_PREFIX: Final[bytes] = b"Salted__"
KEY_CHECK_SIZE: Final[int] = 8
HKDF_INFO: Final[bytes] = b"hencrypt aes-256-cbc"

# Suffix appended to a private key path for its public half
PUBLIC_KEY_SUFFIX: Final[str] = ".pub"

# Provider version lines are cut to this length to keep the version field small
PROVIDER_LINE_MAX: Final[int] = 40
