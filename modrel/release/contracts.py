"""Cross-layer contracts for the release pipeline.

The sequencer talks to version control only through `VersionControl`;
`modrel.git.Repository` is the production implementation and tests pass a
recording fake.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from modrel.core.result import Result
from modrel.git.repository import GitError


class VersionControl(Protocol):
    path: Path

    def is_clean(self, *, ignore_submodules: bool = True) -> Result[bool, GitError]: ...

    def clean(
        self, path: Path, *, include_ignored: bool, keep: Sequence[str] = ()
    ) -> Result[None, GitError]: ...

    def log_since(self, ref: str | None) -> Result[list[str], GitError]: ...

    def tag_exists(self, name: str) -> Result[bool, GitError]: ...

    def is_ignored(self, path: Path) -> Result[bool, GitError]: ...

    def create_tag(self, name: str, message: str) -> Result[None, GitError]: ...

    def add(self, paths: Sequence[Path]) -> Result[None, GitError]: ...

    def commit(self, message: str) -> Result[None, GitError]: ...

    def push(self, *, with_tags: bool) -> Result[None, GitError]: ...

    def is_up_to_date_with_remote(self) -> Result[bool, GitError]: ...

    def default_editor(self) -> Result[str, GitError]: ...
