"""Semantic version arithmetic.

The single source of truth for parsing, bumping and comparing the version a
module is released under. Versions look like `1.4.2`, optionally prefixed
with `v` or `V`; the prefix is carried through bumps and ignored when
ordering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from modrel.core.result import Err, Ok, Result
from modrel.platform.files import atomic_write_text
from modrel.release.contracts import VersionControl
from modrel.release.errors import ReleaseError, vcs_failed
from modrel.release.model import ReleaseKind

_VERSION_RE = re.compile(
    r"(?P<prefix>[vV]?)(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)", re.ASCII
)


class Ordering(Enum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


@dataclass(frozen=True, slots=True)
class SemanticVersion:
    major: int
    minor: int
    patch: int
    prefix: str = ""

    def __str__(self) -> str:
        return f"{self.prefix}{self.major}.{self.minor}.{self.patch}"

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def bump(self, level: ReleaseKind) -> SemanticVersion:
        """Return the next version for `level`.

        A trial release reuses the current version unchanged.
        """
        match level:
            case ReleaseKind.MAJOR:
                return SemanticVersion(self.major + 1, 0, 0, self.prefix)
            case ReleaseKind.MINOR:
                return SemanticVersion(self.major, self.minor + 1, 0, self.prefix)
            case ReleaseKind.PATCH:
                return SemanticVersion(self.major, self.minor, self.patch + 1, self.prefix)
            case ReleaseKind.TRIAL:
                return self

    def __lt__(self, other: SemanticVersion) -> bool:
        return self.key < other.key

    def __le__(self, other: SemanticVersion) -> bool:
        return self.key <= other.key

    def __gt__(self, other: SemanticVersion) -> bool:
        return self.key > other.key

    def __ge__(self, other: SemanticVersion) -> bool:
        return self.key >= other.key


def parse(text: str) -> Result[SemanticVersion, ReleaseError]:
    """Parse a version string.

    The whole string must match: no surrounding whitespace, no extra
    components, no pre-release suffix.
    """
    m = _VERSION_RE.fullmatch(text)
    if m is None:
        return Err(
            ReleaseError(
                kind="invalid_version_format",
                message=f"invalid version: {text!r}",
                hint="Expected MAJOR.MINOR.PATCH, optionally prefixed with v",
            )
        )
    return Ok(
        SemanticVersion(
            major=int(m.group("major")),
            minor=int(m.group("minor")),
            patch=int(m.group("patch")),
            prefix=m.group("prefix"),
        )
    )


def bump(version: SemanticVersion, level: ReleaseKind) -> SemanticVersion:
    return version.bump(level)


def compare(a: SemanticVersion, b: SemanticVersion) -> Ordering:
    """Order two versions by (major, minor, patch); the prefix is ignored."""
    if a.key < b.key:
        return Ordering.LESS
    if a.key > b.key:
        return Ordering.GREATER
    return Ordering.EQUAL


def exists_as_tag(version: SemanticVersion, vcs: VersionControl) -> Result[bool, ReleaseError]:
    """Check whether a release tag named after `version` already exists."""
    return vcs.tag_exists(str(version)).map_err(
        lambda e: vcs_failed(f"failed to look up tag {version}", e)
    )


def read_version_file(path: Path) -> Result[SemanticVersion, ReleaseError]:
    """Read the single-line version file.

    Only the line terminator is dropped; any other whitespace makes the
    version invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"failed to read version file: {e}",
                hint=str(path),
            )
        )

    line = text.removesuffix("\n").removesuffix("\r")
    return parse(line)


def write_version_file(path: Path, version: SemanticVersion) -> Result[None, ReleaseError]:
    try:
        atomic_write_text(path, f"{version}\n")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"failed to write version file: {e}",
                hint=str(path),
            )
        )
    return Ok(None)
