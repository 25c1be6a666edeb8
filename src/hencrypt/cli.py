"""
Command line interface.

    hencrypt -g [-b BITS] KEYFILE      generate KEYFILE and KEYFILE.pub
    hencrypt -e [-k BITS] KEYFILE      encrypt stdin to stdout
    hencrypt -d KEYFILE                decrypt stdin to stdout
    hencrypt -i                        show the version header of stdin
    hencrypt -v                        show the version

Exit status is 0 on success, 1 on any failure (with one line on stderr)
and 2 on usage errors.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from hencrypt import __version__
from hencrypt._logging import get_logger
from hencrypt.cipher import HybridCipher, HybridConfig
from hencrypt.constants import DEFAULT_ONE_TIME_KEY_BITS, DEFAULT_RSA_KEY_BITS
from hencrypt.exceptions import HencryptError
from hencrypt.keys import generate_keypair, public_key_path
from hencrypt.native import NativeProvider
from hencrypt.openssl import OpenSSLProvider
from hencrypt.pipeline import STDIO, StreamPipeline
from hencrypt.provider import CryptoProvider

__all__ = [
    "build_parser",
    "main",
]

_logger = get_logger(__name__)

_PROVIDERS = {
    "native": NativeProvider,
    "openssl": OpenSSLProvider,
}


def _positive_int(value: str) -> int:
    if not (value.isascii() and value.isdigit()) or int(value) <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value!r}")
    return int(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hencrypt",
        description="Hybrid RSA + AES encryption of arbitrarily large streams, stdin to stdout.",
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "-g",
        "--generate",
        dest="mode",
        action="store_const",
        const="generate",
        help="generate a key pair: KEYFILE (private) and KEYFILE.pub",
    )
    mode.add_argument(
        "-e",
        "--encrypt",
        dest="mode",
        action="store_const",
        const="encrypt",
        help="encrypt stdin with the public key in KEYFILE",
    )
    mode.add_argument(
        "-d",
        "--decrypt",
        dest="mode",
        action="store_const",
        const="decrypt",
        help="decrypt stdin with the private key in KEYFILE",
    )
    mode.add_argument(
        "-i",
        "--info",
        dest="mode",
        action="store_const",
        const="info",
        help="print the version header of an encrypted stream on stdin",
    )
    mode.add_argument("-v", "--version", action="version", version=f"hencrypt {__version__}")

    parser.add_argument(
        "-k",
        "--key-bits",
        type=_positive_int,
        default=DEFAULT_ONE_TIME_KEY_BITS,
        help=f"one-time key size in bits (default {DEFAULT_ONE_TIME_KEY_BITS})",
    )
    parser.add_argument(
        "-b",
        "--rsa-bits",
        type=_positive_int,
        default=DEFAULT_RSA_KEY_BITS,
        help=f"RSA key size in bits for --generate (default {DEFAULT_RSA_KEY_BITS})",
    )
    parser.add_argument(
        "--provider",
        choices=sorted(_PROVIDERS),
        default="native",
        help="crypto implementation (default native)",
    )
    parser.add_argument("--verbose", action="store_true", help="debug logging on stderr")
    parser.add_argument("keyfile", nargs="?", help="key file")
    return parser


def _run(args: argparse.Namespace) -> None:
    if args.mode == "generate":
        generate_keypair(args.keyfile, args.rsa_bits)
        _logger.debug("Wrote %s and %s", args.keyfile, public_key_path(args.keyfile))
        return

    provider: CryptoProvider = _PROVIDERS[args.provider]()
    config = HybridConfig(one_time_key_bits=args.key_bits, provider=provider)
    pipeline = StreamPipeline(HybridCipher(config), STDIO, STDIO)

    if args.mode == "encrypt":
        pipeline.encrypt(provider.public_key_handle(args.keyfile))
    elif args.mode == "decrypt":
        pipeline.decrypt(provider.private_key_handle(args.keyfile))
    else:
        info = pipeline.read_header_info()
        sys.stdout.write(info.serialize().decode("utf-8") + "\n")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line tool and return its exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode in ("generate", "encrypt", "decrypt") and not args.keyfile:
        parser.error(f"--{args.mode} requires exactly one KEYFILE")
    if args.mode == "info" and args.keyfile:
        parser.error("--info takes no KEYFILE")

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(name)s: %(message)s")

    try:
        _run(args)
    except (HencryptError, OSError) as e:
        print(f"hencrypt: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
