"""
Key files.

A key pair is stored as two PEM files:
    <path>       PKCS8 private key, mode 0600
    <path>.pub   SubjectPublicKeyInfo public key

Encryption accepts either file: given a private key, the public half is
derived from it.
"""

import os
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from hencrypt._logging import get_logger
from hencrypt.constants import MIN_RSA_KEY_BITS, PUBLIC_KEY_SUFFIX
from hencrypt.exceptions import ConfigError, KeyGenError, MissingKeyFileError, UnwrapError, WrapError

__all__ = [
    "generate_keypair",
    "load_private_key",
    "load_public_key",
    "public_key_path",
]

_logger = get_logger(__name__)

StrPath = str | os.PathLike[str]


def public_key_path(path: StrPath) -> Path:
    """Path of the public key file belonging to a private key file."""
    path = Path(path)
    return path.with_name(path.name + PUBLIC_KEY_SUFFIX)


def _read_key_file(path: StrPath) -> bytes:
    try:
        return Path(path).read_bytes()
    except FileNotFoundError as e:
        raise MissingKeyFileError(os.fspath(path)) from e


def load_public_key(path: StrPath) -> rsa.RSAPublicKey:
    """
    Load an RSA public key for encryption.

    Accepts a public key PEM, or a private key PEM whose public half is used.

    Raises:
        MissingKeyFileError: If the file does not exist
        WrapError: If the file holds no usable RSA key
    """
    data = _read_key_file(path)
    try:
        if b"PRIVATE KEY" in data:
            key = serialization.load_pem_private_key(data, password=None).public_key()
        else:
            key = serialization.load_pem_public_key(data)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise WrapError(f"not a usable public key: {os.fspath(path)}") from e

    if not isinstance(key, rsa.RSAPublicKey):
        raise WrapError(f"not an RSA key: {os.fspath(path)}")
    _logger.debug("Public key loaded: path=%s bits=%d", path, key.key_size)
    return key


def load_private_key(path: StrPath) -> rsa.RSAPrivateKey:
    """
    Load an RSA private key for decryption.

    Raises:
        MissingKeyFileError: If the file does not exist
        UnwrapError: If the file holds no usable RSA private key
    """
    data = _read_key_file(path)
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise UnwrapError(f"not a usable private key: {os.fspath(path)}") from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise UnwrapError(f"not an RSA key: {os.fspath(path)}")
    _logger.debug("Private key loaded: path=%s bits=%d", path, key.key_size)
    return key


def generate_keypair(path: StrPath, bits: int) -> rsa.RSAPrivateKey:
    """
    Generate an RSA key pair and write it to path and path.pub.

    Args:
        path: Private key file to create
        bits: RSA modulus size

    Returns:
        The generated private key

    Raises:
        ConfigError: If bits is below the minimum
        KeyGenError: If either file already exists or cannot be written
    """
    if bits < MIN_RSA_KEY_BITS:
        raise ConfigError(f"RSA key size must be at least {MIN_RSA_KEY_BITS} bits")

    private_path = Path(path)
    public_path = public_key_path(private_path)
    for p in (private_path, public_path):
        if p.exists():
            raise KeyGenError(f"refusing to overwrite existing file: {p}")

    key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    try:
        # Create with 0600 so the private key is never world-readable
        fd = os.open(private_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    except OSError as e:
        raise KeyGenError(f"could not write key file: {e}") from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(private_pem)
        public_path.write_bytes(public_pem)
    except OSError as e:
        # Half a key pair would block every retry
        private_path.unlink(missing_ok=True)
        raise KeyGenError(f"could not write key file: {e}") from e

    _logger.debug("Key pair generated: path=%s bits=%d", private_path, bits)
    return key
