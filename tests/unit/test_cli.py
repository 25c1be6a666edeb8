"""Command line interface tests.

The CLI is run in-process with stdin/stdout swapped for byte buffers.
"""

import io
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest

from hencrypt import __version__
from hencrypt.cipher import HybridCipher, HybridConfig
from hencrypt.cli import main
from tests.conftest import KeyPairFiles


@dataclass
class CLIResult:
    """Outcome of one CLI run."""

    code: int
    stdout: bytes
    stderr: str


@pytest.fixture
def run_cli(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> Callable[..., CLIResult]:
    """Run hencrypt.cli.main with the given args and stdin bytes."""

    def _run(*args: str, stdin: bytes = b"") -> CLIResult:
        stdout = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(stdin)))
        monkeypatch.setattr(sys, "stdout", stdout)
        try:
            code = main(list(args))
        except SystemExit as e:
            code = int(e.code or 0)
        stdout.flush()
        return CLIResult(code=code, stdout=stdout.buffer.getvalue(), stderr=capsys.readouterr().err)  # type: ignore[attr-defined]

    return _run


class TestRoundTrip:
    """Encrypt and decrypt through the CLI."""

    def test_encrypt_decrypt(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """hello world survives -e then -d."""
        encrypted = run_cli("-e", str(keypair.public_path), stdin=b"hello world")
        decrypted = run_cli("-d", str(keypair.private_path), stdin=encrypted.stdout)

        assert encrypted.code == 0
        assert decrypted.code == 0
        assert decrypted.stdout == b"hello world"
        assert decrypted.stderr == ""

    def test_encrypt_with_private_key_file(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """Encryption accepts the private key file and uses its public half."""
        encrypted = run_cli("--encrypt", str(keypair.private_path), stdin=b"data")
        decrypted = run_cli("--decrypt", str(keypair.private_path), stdin=encrypted.stdout)

        assert decrypted.stdout == b"data"

    def test_one_time_key_bits(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """-k changes the one-time key size."""
        encrypted = run_cli("-e", "-k", "128", str(keypair.public_path), stdin=b"data")
        decrypted = run_cli("-d", str(keypair.private_path), stdin=encrypted.stdout)

        assert decrypted.stdout == b"data"

    def test_info(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """-i prints the version header."""
        encrypted = run_cli("-e", str(keypair.public_path), stdin=b"data")

        result = run_cli("-i", stdin=encrypted.stdout)

        assert result.code == 0
        assert result.stdout.startswith(f"hencrypt {__version__}\n".encode())

    def test_info_other_version(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """-i shows the header of a stream from an incompatible version."""
        future = HybridCipher(HybridConfig(current_version="0.2.0"))
        encrypted = future.encrypt_bytes(keypair.public_key, b"data")

        result = run_cli("-i", stdin=encrypted)

        assert result.code == 0
        assert result.stdout.startswith(b"hencrypt 0.2.0\n")

    def test_rsa_bits_ignored_outside_generate(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """-b only matters for -g, so a small value does not break -e or -d."""
        encrypted = run_cli("-e", "-b", "512", str(keypair.public_path), stdin=b"data")
        decrypted = run_cli("-d", "-b", "512", str(keypair.private_path), stdin=encrypted.stdout)

        assert encrypted.code == 0
        assert decrypted.stdout == b"data"


class TestGenerate:
    """Key generation through the CLI."""

    def test_generate(self, run_cli: Callable[..., CLIResult], tmp_path: Path) -> None:
        """-g writes a usable key pair."""
        key = tmp_path / "k.pem"

        result = run_cli("-g", "-b", "2048", str(key))
        encrypted = run_cli("-e", f"{key}.pub", stdin=b"fresh key")
        decrypted = run_cli("-d", str(key), stdin=encrypted.stdout)

        assert result.code == 0
        assert decrypted.stdout == b"fresh key"

    def test_generate_refuses_overwrite(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """Existing key files are an error."""
        result = run_cli("-g", "-b", "2048", str(keypair.private_path))

        assert result.code == 1
        assert "refusing to overwrite" in result.stderr


class TestErrors:
    """Failures exit 1 with one line on stderr."""

    def test_wrong_key(
        self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles, other_keypair: KeyPairFiles
    ) -> None:
        """Decrypting with an unrelated key is a generic crypto failure, not a crash."""
        encrypted = run_cli("-e", str(keypair.public_path), stdin=b"hello world")

        result = run_cli("-d", str(other_keypair.private_path), stdin=encrypted.stdout)

        assert result.code == 1
        assert result.stdout == b""
        assert result.stderr == "hencrypt: decryption failed\n"

    def test_missing_key_file(self, run_cli: Callable[..., CLIResult], tmp_path: Path) -> None:
        """A missing key file is reported by path."""
        path = tmp_path / "absent.pem"

        result = run_cli("-e", str(path), stdin=b"data")

        assert result.code == 1
        assert result.stderr == f"hencrypt: no such file: {path}\n"

    def test_not_an_encrypted_stream(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """Plain input to -d fails cleanly."""
        result = run_cli("-d", str(keypair.private_path), stdin=b"14not hencrypted0000")

        assert result.code == 1
        assert result.stderr.startswith("hencrypt: not an hencrypt stream")
        assert result.stderr.count("\n") == 1

    def test_truncated_stream(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """Truncated header fails cleanly."""
        result = run_cli("-d", str(keypair.private_path), stdin=b"4")

        assert result.code == 1
        assert "unexpected end of input" in result.stderr


class TestUsage:
    """Argument parsing."""

    def test_version(self, run_cli: Callable[..., CLIResult]) -> None:
        """-v prints the version and exits 0."""
        result = run_cli("-v")

        assert result.code == 0
        assert f"hencrypt {__version__}" in result.stdout.decode()

    @pytest.mark.parametrize(
        "args",
        [
            (),
            ("-e",),
            ("-d",),
            ("-g",),
            ("-e", "-d", "key.pem"),
            ("-e", "key.pem", "extra.pem"),
            ("-i", "key.pem"),
            ("-e", "-k", "0", "key.pem"),
            ("-e", "-k", "-256", "key.pem"),
            ("-e", "-k", "12x", "key.pem"),
            ("-g", "-b", "2048.5", "key.pem"),
        ],
    )
    def test_usage_errors(self, run_cli: Callable[..., CLIResult], args: tuple[str, ...]) -> None:
        """Bad usage exits 2."""
        assert run_cli(*args).code == 2

    def test_key_bits_not_multiple_of_eight(self, run_cli: Callable[..., CLIResult], keypair: KeyPairFiles) -> None:
        """Positive but unusable key sizes fail as errors, not usage."""
        result = run_cli("-e", "-k", "12", str(keypair.public_path), stdin=b"data")

        assert result.code == 1
        assert "multiple of 8" in result.stderr
