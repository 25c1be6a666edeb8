"""
Version metadata carried at the start of every stream.

Serialized form (at most 99 bytes):
    hencrypt <major>.<minor>.<patch>
    <provider line 1>
    <provider line 2>

Lines are joined with a single newline and there is no trailing newline.
Two streams are compatible when major and minor match; the patch number
is free to differ.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from hencrypt.constants import MAGIC, VERSION_FIELD_MAX
from hencrypt.exceptions import BugError, MalformedVersionError, NotThisFormatError

__all__ = [
    "VersionInfo",
    "parse_triple",
]

_TRIPLE_RE = re.compile(r"([0-9]+)\.([0-9]+)\.([0-9]+)")


def parse_triple(version: str) -> tuple[int, int, int] | None:
    """Parse "major.minor.patch" into integers, or None if malformed."""
    match = _TRIPLE_RE.fullmatch(version)
    if match is None:
        return None
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch)


def _first_line(text: str) -> str:
    return text.splitlines()[0].strip() if text.strip() else ""


@dataclass(frozen=True)
class VersionInfo:
    """Parsed version field."""

    major: int
    minor: int
    patch: int
    provider_line_1: str = ""
    provider_line_2: str = ""
    magic: str = MAGIC

    @property
    def version(self) -> str:
        """The "major.minor.patch" string."""
        return f"{self.major}.{self.minor}.{self.patch}"

    @classmethod
    def build(cls, current_version: str, provider_versions: Sequence[str]) -> VersionInfo:
        """
        Build version metadata for a new stream.

        Args:
            current_version: This package's "major.minor.patch" version
            provider_versions: Up to two provider version strings; only the
                first line of each is kept

        Returns:
            VersionInfo for the stream header

        Raises:
            BugError: If current_version is not a triple or the serialized
                form would not fit the 2-digit version field
        """
        triple = parse_triple(current_version)
        if triple is None:
            raise BugError(f"current version is not major.minor.patch: {current_version!r}")

        lines = [_first_line(v) for v in provider_versions[:2]]
        lines += [""] * (2 - len(lines))

        info = cls(*triple, provider_line_1=lines[0], provider_line_2=lines[1])
        size = len(info.serialize())
        if size > VERSION_FIELD_MAX:
            raise BugError(f"version info is {size} bytes, field holds {VERSION_FIELD_MAX}")
        return info

    @classmethod
    def parse(cls, data: bytes) -> VersionInfo:
        """
        Parse the version field of a stream.

        Args:
            data: Version field payload

        Returns:
            Parsed VersionInfo

        Raises:
            NotThisFormatError: If the first token is not the magic keyword
            MalformedVersionError: If the second token is not a version triple
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise NotThisFormatError("not an hencrypt stream") from e

        tokens = text.split()
        if not tokens or tokens[0] != MAGIC:
            raise NotThisFormatError("not an hencrypt stream")

        triple = parse_triple(tokens[1]) if len(tokens) > 1 else None
        if triple is None:
            raise MalformedVersionError("malformed version in stream header")

        lines = text.split("\n", 2)
        lines += [""] * (3 - len(lines))
        return cls(*triple, provider_line_1=lines[1], provider_line_2=lines[2])

    def serialize(self) -> bytes:
        """Encode as the version field payload."""
        return f"{self.magic} {self.version}\n{self.provider_line_1}\n{self.provider_line_2}".encode()

    def is_compatible(self, reference: VersionInfo) -> bool:
        """True if major and minor match the reference; patch is ignored."""
        return (self.major, self.minor) == (reference.major, reference.minor)
