"""
Crypto provider that shells out to the openssl command line tool.

Produces streams compatible with the original shell tool:
- key wrap: ``openssl pkeyutl`` with RSA-OAEP/SHA-256, key bytes on stdin
- payload: ``openssl enc -aes-256-cbc -pbkdf2``, whose output starts with
  ``Salted__`` and an 8-byte salt

The one-time key reaches ``openssl enc`` as a base64 passphrase through
``-pass fd:N`` on a pipe inherited only by that child. It never appears in
argv or the environment.
"""

from __future__ import annotations

import os
import platform
import shutil
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

from hencrypt._logging import get_logger
from hencrypt.constants import CHUNK_SIZE, PROVIDER_LINE_MAX
from hencrypt.encoding import b64_decode, b64_encode
from hencrypt.exceptions import (
    ConfigError,
    HencryptError,
    KeyGenError,
    MissingKeyFileError,
    StreamCryptoError,
    UnwrapError,
    WrapError,
)

__all__ = [
    "OpenSSLKey",
    "OpenSSLProvider",
]

_logger = get_logger(__name__)

_OAEP_OPTS = [
    "-pkeyopt",
    "rsa_padding_mode:oaep",
    "-pkeyopt",
    "rsa_oaep_md:sha256",
    "-pkeyopt",
    "rsa_mgf1_md:sha256",
]

_ENC_OPTS = ["-aes-256-cbc", "-pbkdf2", "-md", "sha256"]


@dataclass(frozen=True)
class OpenSSLKey:
    """Key file handle for OpenSSLProvider."""

    path: Path
    private: bool


def _key_file(path: str) -> OpenSSLKey:
    p = Path(path)
    try:
        data = p.read_bytes()
    except FileNotFoundError as e:
        raise MissingKeyFileError(os.fspath(path)) from e
    return OpenSSLKey(path=p, private=b"PRIVATE KEY" in data)


class OpenSSLProvider:
    """CryptoProvider backed by an ``openssl`` executable."""

    def __init__(self, binary: str = "openssl", chunk_size: int = CHUNK_SIZE) -> None:
        resolved = shutil.which(binary)
        if resolved is None:
            raise ConfigError(f"openssl executable not found: {binary}")
        self.binary = resolved
        self.chunk_size = chunk_size

    def _run(self, args: list[str], data: bytes, error: type[HencryptError], message: str) -> bytes:
        """Run openssl with data on stdin; map failure to the given error."""
        try:
            proc = subprocess.run(
                [self.binary, *args],
                input=data,
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise error(message) from e
        if proc.returncode != 0:
            _logger.debug("openssl %s failed: returncode=%d", args[0], proc.returncode)
            raise error(message)
        return proc.stdout

    def public_key_handle(self, path: str) -> OpenSSLKey:
        return _key_file(path)

    def private_key_handle(self, path: str) -> OpenSSLKey:
        key = _key_file(path)
        if not key.private:
            raise UnwrapError(f"not a private key: {path}")
        return key

    def random_bytes(self, n: int) -> bytes:
        out = self._run(["rand", str(n)], b"", KeyGenError, "could not generate one-time key")
        if len(out) != n:
            raise KeyGenError("could not generate one-time key")
        return out

    def asymmetric_wrap(self, public_key: Any, key: bytes) -> str:
        if not isinstance(public_key, OpenSSLKey):
            raise WrapError("public key is not a key file")
        args = ["pkeyutl", "-encrypt", "-inkey", os.fspath(public_key.path)]
        if not public_key.private:
            args.append("-pubin")
        wrapped = self._run(args + _OAEP_OPTS, key, WrapError, f"could not wrap key with {public_key.path}")
        return b64_encode(wrapped)

    def asymmetric_unwrap(self, private_key: Any, wrapped: str) -> bytes:
        if not isinstance(private_key, OpenSSLKey):
            raise UnwrapError("private key is not a key file")
        try:
            raw = b64_decode(wrapped)
        except ValueError as e:
            raise UnwrapError("decryption failed") from e
        args = ["pkeyutl", "-decrypt", "-inkey", os.fspath(private_key.path), *_OAEP_OPTS]
        return self._run(args, raw, UnwrapError, "decryption failed")

    def symmetric_encrypt(self, key: bytes, src: BinaryIO, dst: BinaryIO) -> None:
        self._enc(["-e"], key, src, dst, "encryption failed")

    def symmetric_decrypt(self, key: bytes, src: BinaryIO, dst: BinaryIO) -> None:
        self._enc(["-d"], key, src, dst, "decryption failed")

    def _enc(self, mode: list[str], key: bytes, src: BinaryIO, dst: BinaryIO, message: str) -> None:
        """Pump src through ``openssl enc`` into dst.

        A feeder thread writes stdin while this thread drains stdout, so
        neither pipe can fill up and deadlock.
        """
        read_fd, write_fd = os.pipe()
        try:
            # Passphrase is tiny, so it fits the pipe buffer before the child starts
            os.write(write_fd, b64_encode(key).encode("ascii") + b"\n")
        finally:
            os.close(write_fd)

        try:
            proc = subprocess.Popen(
                [self.binary, "enc", *mode, *_ENC_OPTS, "-pass", f"fd:{read_fd}"],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                pass_fds=(read_fd,),
            )
        except OSError as e:
            raise StreamCryptoError(message) from e
        finally:
            os.close(read_fd)

        feed_error: list[Exception] = []

        def feed() -> None:
            assert proc.stdin is not None
            try:
                while chunk := src.read(self.chunk_size):
                    proc.stdin.write(chunk)
            except BrokenPipeError:
                # openssl exited early; its return code reports why
                pass
            except Exception as e:  # noqa: BLE001
                feed_error.append(e)
            finally:
                try:
                    proc.stdin.close()
                except BrokenPipeError:
                    pass

        feeder = threading.Thread(target=feed, name="hencrypt-openssl-feed", daemon=True)
        feeder.start()
        try:
            assert proc.stdout is not None
            while chunk := proc.stdout.read(self.chunk_size):
                dst.write(chunk)
        except BaseException:
            proc.kill()
            raise
        finally:
            feeder.join()
            proc.stdout.close()  # type: ignore[union-attr]
            returncode = proc.wait()

        if feed_error:
            raise feed_error[0]
        if returncode != 0:
            _logger.debug("openssl enc failed: returncode=%d", returncode)
            raise StreamCryptoError(message)

    def versions(self) -> tuple[str, str]:
        out = self._run(["version"], b"", ConfigError, "could not run openssl version")
        first = out.decode("utf-8", "replace").strip().splitlines()
        return (
            (first[0] if first else "OpenSSL")[:PROVIDER_LINE_MAX],
            f"Python {platform.python_version()}"[:PROVIDER_LINE_MAX],
        )
