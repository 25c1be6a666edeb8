"""
Crypto provider interface and one-time key ownership.

HybridCipher never touches a primitive directly. Everything goes through a
CryptoProvider, so the same framing and key orchestration runs over the
in-process provider (hencrypt.native) or the openssl binary
(hencrypt.openssl).

Providers must never pass secret material through process arguments or
environment variables.
"""

from __future__ import annotations

import types
from typing import Any, BinaryIO, Protocol

from typing_extensions import Self

from hencrypt.exceptions import BugError

__all__ = [
    "CryptoProvider",
    "OneTimeKey",
]


class CryptoProvider(Protocol):
    """Primitives consumed by HybridCipher.

    Key handles are provider specific: NativeProvider takes loaded
    `cryptography` key objects, OpenSSLProvider takes key file paths.
    """

    def public_key_handle(self, path: str) -> Any:
        """Resolve a key file to a handle accepted by asymmetric_wrap.

        Raises:
            MissingKeyFileError: If the file does not exist
        """
        ...

    def private_key_handle(self, path: str) -> Any:
        """Resolve a key file to a handle accepted by asymmetric_unwrap."""
        ...

    def random_bytes(self, n: int) -> bytes:
        """Return n cryptographically random bytes.

        Raises:
            KeyGenError: If randomness is unavailable
        """
        ...

    def asymmetric_wrap(self, public_key: Any, key: bytes) -> str:
        """Encrypt key with the public key and text-encode the result.

        Raises:
            WrapError: If the public key is unusable
        """
        ...

    def asymmetric_unwrap(self, private_key: Any, wrapped: str) -> bytes:
        """Reverse asymmetric_wrap.

        Raises:
            UnwrapError: If the private key is unusable or does not match
        """
        ...

    def symmetric_encrypt(self, key: bytes, src: BinaryIO, dst: BinaryIO) -> None:
        """Stream src through the symmetric cipher into dst.

        Raises:
            StreamCryptoError: On any cipher failure
        """
        ...

    def symmetric_decrypt(self, key: bytes, src: BinaryIO, dst: BinaryIO) -> None:
        """Stream the rest of src through the symmetric decipher into dst.

        Raises:
            StreamCryptoError: On any cipher failure, without saying which
        """
        ...

    def versions(self) -> tuple[str, str]:
        """Two version lines recorded in the stream header."""
        ...


class OneTimeKey:
    """
    Owner of a one-time symmetric key.

    Holds the key in a bytearray so it can be overwritten in place. Use as a
    context manager: the key is wiped on exit whether or not the block
    raised. Copies handed to providers as bytes cannot be wiped; keep them
    local to the provider call.
    """

    __slots__ = ("_key",)

    def __init__(self, key: bytes | bytearray) -> None:
        self._key = bytearray(key)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.wipe()

    def __len__(self) -> int:
        return len(self._key)

    def __repr__(self) -> str:
        state = "wiped" if self.wiped else f"{len(self._key)} bytes"
        return f"OneTimeKey(<{state}>)"

    @property
    def wiped(self) -> bool:
        """True once the key has been destroyed."""
        return not self._key

    def reveal(self) -> bytes:
        """Return the key bytes for a single provider call."""
        if self.wiped:
            raise BugError("one-time key used after wipe")
        return bytes(self._key)

    def wipe(self) -> None:
        """Overwrite the key with zeros and drop it."""
        for i in range(len(self._key)):
            self._key[i] = 0
        self._key.clear()
