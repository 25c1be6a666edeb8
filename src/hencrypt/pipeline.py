"""
File and standard stream plumbing around HybridCipher.

A source or sink is a path, "-" for stdin/stdout, or an already open
binary stream. Streams the pipeline opened are closed on every exit path;
streams handed in by the caller are flushed but left open.

A sink path is only opened (and truncated) once there is output to write,
so a stream rejected at the header or key stage leaves an existing file
untouched. If an operation fails mid-stream, whatever was already written
stays there: a failed decrypt can leave a truncated output file.
"""

from __future__ import annotations

import contextlib
import io
import os
import sys
from typing import Any, BinaryIO, cast

from hencrypt._logging import get_logger
from hencrypt.cipher import HybridCipher
from hencrypt.version import VersionInfo

__all__ = [
    "STDIO",
    "StreamPipeline",
]

_logger = get_logger(__name__)

STDIO = "-"

Endpoint = str | os.PathLike[str] | BinaryIO


class _LazySink(io.RawIOBase):
    """Writable that opens its path on the first write."""

    def __init__(self, stack: contextlib.ExitStack, path: str | os.PathLike[str]) -> None:
        super().__init__()
        self._stack = stack
        self._path = path
        self._file: BinaryIO | None = None

    def writable(self) -> bool:
        return True

    def open(self) -> BinaryIO:
        if self._file is None:
            _logger.debug("Opening %s: mode=wb", self._path)
            self._file = self._stack.enter_context(open(self._path, "wb"))  # noqa: SIM115
        return self._file

    def write(self, b: Any) -> int:
        return self.open().write(b)

    def flush(self) -> None:
        if self._file is not None and not self._file.closed:
            self._file.flush()


class StreamPipeline:
    """
    Binds a source and a sink to one HybridCipher operation.

    Usage:
        pipeline = StreamPipeline(cipher, "notes.txt", "notes.txt.henc")
        pipeline.encrypt(public_key)
    """

    def __init__(self, cipher: HybridCipher, source: Endpoint = STDIO, sink: Endpoint = STDIO) -> None:
        self.cipher = cipher
        self.source = source
        self.sink = sink

    def _open_source(self, stack: contextlib.ExitStack) -> BinaryIO:
        if isinstance(self.source, (str, os.PathLike)):
            if self.source == STDIO:
                return sys.stdin.buffer
            _logger.debug("Opening %s: mode=rb", self.source)
            return stack.enter_context(open(self.source, "rb"))  # noqa: SIM115
        return self.source

    def _open_sink(self, stack: contextlib.ExitStack) -> BinaryIO:
        if isinstance(self.sink, (str, os.PathLike)):
            if self.sink == STDIO:
                stack.callback(sys.stdout.buffer.flush)
                return sys.stdout.buffer
            return cast(BinaryIO, _LazySink(stack, self.sink))
        stack.callback(self.sink.flush)
        return self.sink

    def _run(self, operation: Any, key: Any) -> Any:
        with contextlib.ExitStack() as stack:
            src = self._open_source(stack)
            dst = self._open_sink(stack)
            result = operation(key, src, dst)
            if isinstance(dst, _LazySink):
                # Empty output still creates or truncates the file
                dst.open()
            return result

    def encrypt(self, public_key: Any) -> None:
        """Encrypt source into sink."""
        self._run(self.cipher.encrypt, public_key)

    def decrypt(self, private_key: Any) -> VersionInfo:
        """Decrypt source into sink."""
        return self._run(self.cipher.decrypt, private_key)

    def read_header_info(self) -> VersionInfo:
        """
        Read only the source's version metadata.

        No compatibility check, so streams from other versions can be inspected.
        """
        with contextlib.ExitStack() as stack:
            return self.cipher.read_version_info(self._open_source(stack))
