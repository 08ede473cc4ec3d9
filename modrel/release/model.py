from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from modrel.core.config import ReleaseConfig
from modrel.core.result import Err, Ok, Result
from modrel.release.errors import ReleaseError

if TYPE_CHECKING:
    from modrel.release.semver import SemanticVersion


_MODULE_NAME_RE = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9 ]*[A-Za-z0-9])?", re.ASCII)


class ReleaseKind(Enum):
    TRIAL = "trial"
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    def __str__(self) -> str:
        return self.value

    @property
    def is_trial(self) -> bool:
        return self == ReleaseKind.TRIAL


class RehearsalMode(Enum):
    """Whether steps perform their effects or only report them."""

    LIVE = "live"
    REHEARSAL = "rehearsal"

    @property
    def is_rehearsal(self) -> bool:
        return self == RehearsalMode.REHEARSAL


class ReleaseState(Enum):
    START = "start"
    PREFLIGHT_CHECKED = "preflight-checked"
    STAGED = "staged"
    ARCHIVE_BUILT = "archive-built"
    INSTALLED = "installed"
    CHANGELOG_WRITTEN = "changelog-written"
    VERSION_PERSISTED = "version-persisted"
    COMMITTED = "committed"
    TAGGED = "tagged"
    PUSHED = "pushed"
    DONE = "done"

    def __str__(self) -> str:
        return self.value


RELEASE_KINDS: tuple[str, ...] = tuple(k.value for k in ReleaseKind)


def parse_release_kind(raw: str) -> Result[ReleaseKind, ReleaseError]:
    try:
        return Ok(ReleaseKind(raw.strip().lower()))
    except ValueError:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"invalid release kind: {raw!r}",
                hint=f"Expected one of: {', '.join(RELEASE_KINDS)}",
            )
        )


def validate_module_name(raw: str) -> Result[str, ReleaseError]:
    if _MODULE_NAME_RE.fullmatch(raw) is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"invalid module name: {raw!r}",
                hint="Use letters, digits and spaces; start and end with a letter or digit.",
            )
        )
    return Ok(raw)


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """What the operator asked for. Validated once, then never changes."""

    module_name: str
    kind: ReleaseKind
    allow_dirty: bool = False

    @classmethod
    def create(
        cls, module_name: str, kind: str | ReleaseKind, allow_dirty: bool = False
    ) -> Result[ReleaseRequest, ReleaseError]:
        name = validate_module_name(module_name)
        if isinstance(name, Err):
            return name

        if isinstance(kind, ReleaseKind):
            parsed_kind: ReleaseKind = kind
        else:
            parsed = parse_release_kind(kind)
            if isinstance(parsed, Err):
                return parsed
            parsed_kind = parsed.value

        return Ok(cls(module_name=name.value, kind=parsed_kind, allow_dirty=allow_dirty))

    @property
    def mode(self) -> RehearsalMode:
        # The dirty-tree override doubles as the rehearsal switch.
        return RehearsalMode.REHEARSAL if self.allow_dirty else RehearsalMode.LIVE


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """State of one release run, threaded through every sequencer step.

    Steps never mutate a context; they return a new one with `state` advanced
    and any produced values (archive path, changelog, commit message) filled in.
    """

    request: ReleaseRequest
    config: ReleaseConfig
    repository_root: Path
    current_version: SemanticVersion
    target_version: SemanticVersion
    state: ReleaseState = ReleaseState.START
    archive_path: Path | None = None
    installed_path: Path | None = None
    changelog_entries: tuple[str, ...] = ()
    commit_message: str | None = None

    @property
    def mode(self) -> RehearsalMode:
        return self.request.mode

    @property
    def staging_directory(self) -> Path:
        return self.repository_root / self.config.release.release_dir

    @property
    def version_file(self) -> Path:
        return self.repository_root / self.config.release.version_file

    @property
    def changelog_path(self) -> Path:
        return self.staging_directory / self.config.release.changelog_file

    @property
    def archive_name(self) -> str:
        return f"{self.request.module_name}{self.config.release.archive_extension}"

    @property
    def tag_name(self) -> str:
        return str(self.target_version)

    @property
    def release_title(self) -> str:
        return f"Release {self.target_version}"


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    """What a finished run produced, for the CLI to report."""

    kind: ReleaseKind
    mode: RehearsalMode
    version: str
    archive_path: Path
    installed_path: Path | None = None
    tag: str | None = None
