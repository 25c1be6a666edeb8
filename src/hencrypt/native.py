"""
In-process crypto provider built on `cryptography`.

Key wrapping: RSA-OAEP (SHA-256, MGF1-SHA-256), base64 text.

Cipher stream:
┌──────────┬──────────┬───────────────┬────────────────────────┐
│ Salted__ │ salt     │ key check     │ AES-256-CBC ciphertext │
│ (8B)     │ (16B)    │ (8B)          │ (PKCS7 padded, N*16B)  │
└──────────┴──────────┴───────────────┴────────────────────────┘

AES key, IV and key check are derived from the one-time key and salt with
HKDF-SHA256. The key check only confirms the one-time key matches the
stream (it catches headers stitched onto another stream's payload); it is
not a MAC and says nothing about payload integrity.
"""

import hmac
import secrets
from typing import Any, BinaryIO

import cryptography
from cryptography.hazmat.backends.openssl import backend as openssl_backend
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from hencrypt._logging import get_logger
from hencrypt.constants import (
    AES_BLOCK_SIZE,
    AES_KEY_SIZE,
    CHUNK_SIZE,
    HKDF_INFO,
    KEY_CHECK_SIZE,
    PROVIDER_LINE_MAX,
    SALT_PREFIX,
    SALT_SIZE,
)
from hencrypt.encoding import b64_decode, b64_encode
from hencrypt.exceptions import KeyGenError, StreamCryptoError, UnwrapError, WrapError
from hencrypt.framing import read_exact
from hencrypt.keys import load_private_key, load_public_key

__all__ = [
    "NativeProvider",
]

_logger = get_logger(__name__)

_OAEP = asym_padding.OAEP(
    mgf=asym_padding.MGF1(algorithm=hashes.SHA256()),
    algorithm=hashes.SHA256(),
    label=None,
)

# Same message for every decrypt failure
_DECRYPT_FAILED = "decryption failed"


def _derive(key: bytes, salt: bytes) -> tuple[bytes, bytes, bytes]:
    """Derive (aes_key, iv, key_check) from the one-time key and salt."""
    okm = HKDF(
        algorithm=hashes.SHA256(),
        length=AES_KEY_SIZE + AES_BLOCK_SIZE + KEY_CHECK_SIZE,
        salt=salt,
        info=HKDF_INFO,
    ).derive(key)
    return (
        okm[:AES_KEY_SIZE],
        okm[AES_KEY_SIZE : AES_KEY_SIZE + AES_BLOCK_SIZE],
        okm[AES_KEY_SIZE + AES_BLOCK_SIZE :],
    )


class NativeProvider:
    """CryptoProvider using `cryptography` RSA key objects as key handles."""

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    def public_key_handle(self, path: str) -> rsa.RSAPublicKey:
        return load_public_key(path)

    def private_key_handle(self, path: str) -> rsa.RSAPrivateKey:
        return load_private_key(path)

    def random_bytes(self, n: int) -> bytes:
        try:
            return secrets.token_bytes(n)
        except (OSError, ValueError) as e:
            raise KeyGenError("could not generate one-time key") from e

    def asymmetric_wrap(self, public_key: Any, key: bytes) -> str:
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise WrapError("public key is not an RSA public key")
        try:
            wrapped = public_key.encrypt(key, _OAEP)
        except ValueError as e:
            raise WrapError(
                f"one-time key of {len(key) * 8} bits is too large for a {public_key.key_size}-bit public key"
            ) from e
        return b64_encode(wrapped)

    def asymmetric_unwrap(self, private_key: Any, wrapped: str) -> bytes:
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise UnwrapError("private key is not an RSA private key")
        try:
            return private_key.decrypt(b64_decode(wrapped), _OAEP)
        except ValueError as e:
            raise UnwrapError(_DECRYPT_FAILED) from e

    def symmetric_encrypt(self, key: bytes, src: BinaryIO, dst: BinaryIO) -> None:
        salt = secrets.token_bytes(SALT_SIZE)
        aes_key, iv, key_check = _derive(key, salt)
        dst.write(SALT_PREFIX + salt + key_check)

        encryptor = Cipher(algorithms.AES(aes_key), modes.CBC(iv)).encryptor()
        padder = padding.PKCS7(AES_BLOCK_SIZE * 8).padder()
        total = 0
        try:
            while chunk := src.read(self.chunk_size):
                total += len(chunk)
                dst.write(encryptor.update(padder.update(chunk)))
            dst.write(encryptor.update(padder.finalize()) + encryptor.finalize())
        except ValueError as e:
            raise StreamCryptoError("encryption failed") from e
        _logger.debug("Payload encrypted: bytes=%d", total)

    def symmetric_decrypt(self, key: bytes, src: BinaryIO, dst: BinaryIO) -> None:
        prefix_len = len(SALT_PREFIX)
        head = read_exact(src, prefix_len + SALT_SIZE + KEY_CHECK_SIZE)
        if len(head) < prefix_len + SALT_SIZE + KEY_CHECK_SIZE or not head.startswith(SALT_PREFIX):
            raise StreamCryptoError(_DECRYPT_FAILED)

        salt = head[prefix_len : prefix_len + SALT_SIZE]
        aes_key, iv, key_check = _derive(key, salt)
        if not hmac.compare_digest(key_check, head[prefix_len + SALT_SIZE :]):
            raise StreamCryptoError(_DECRYPT_FAILED)

        decryptor = Cipher(algorithms.AES(aes_key), modes.CBC(iv)).decryptor()
        unpadder = padding.PKCS7(AES_BLOCK_SIZE * 8).unpadder()
        try:
            while chunk := src.read(self.chunk_size):
                dst.write(unpadder.update(decryptor.update(chunk)))
            # finalize() rejects partial blocks, unpadder rejects bad padding
            dst.write(unpadder.update(decryptor.finalize()) + unpadder.finalize())
        except ValueError as e:
            raise StreamCryptoError(_DECRYPT_FAILED) from e

    def versions(self) -> tuple[str, str]:
        return (
            f"cryptography {cryptography.__version__}"[:PROVIDER_LINE_MAX],
            openssl_backend.openssl_version_text()[:PROVIDER_LINE_MAX],
        )
