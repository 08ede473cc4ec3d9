"""Error payload for the release pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from modrel.git.repository import GitError

ReleaseErrorKind = Literal[
    "invalid_input",
    "invalid_version_format",
    "precondition_failed",
    "duplicate_version",
    "io_failure",
    "vcs_failed",
    "editor_aborted",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Every step reports failure through this type so the CLI can render it and
    pick an exit code without knowing which step produced it.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def vcs_failed(message: str, error: GitError) -> ReleaseError:
    """Wrap a git failure, keeping git's own diagnostic as the hint."""
    return ReleaseError(kind="vcs_failed", message=message, hint=error.message or None)
