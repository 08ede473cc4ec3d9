"""Release entry points.

`prepare_release` validates the request, resolves the repository and its
config, computes current and target versions, and hands a fresh
`ReleaseContext` to the sequencer. `plan_versions` answers "what would each
kind of release produce" without touching anything.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from modrel.core.config import ReleaseConfig, load_repo_config
from modrel.core.result import Err, Ok, Result
from modrel.git.repository import Repository, resolve_root
from modrel.output.console import ConsoleProtocol, Style
from modrel.release.contracts import VersionControl
from modrel.release.errors import ReleaseError, vcs_failed
from modrel.release.model import (
    ReleaseContext,
    ReleaseKind,
    ReleaseOutcome,
    ReleaseRequest,
)
from modrel.release.semver import SemanticVersion, read_version_file
from modrel.release.sequencer import ReleaseSequencer

VcsFactory = Callable[[Path], VersionControl]

# Stand-in for an unreadable version file during a rehearsal.
REHEARSAL_FALLBACK_VERSION = SemanticVersion(0, 0, 0)


@dataclass(frozen=True, slots=True)
class RepoSetup:
    root: Path
    config: ReleaseConfig


@dataclass(frozen=True, slots=True)
class VersionPlan:
    current: SemanticVersion
    targets: tuple[tuple[ReleaseKind, SemanticVersion], ...]


def _open_repo(cwd: Path, config_path: Path | None) -> Result[RepoSetup, ReleaseError]:
    root = resolve_root(cwd)
    if isinstance(root, Err):
        return Err(vcs_failed("not inside a git repository", root.error))

    config = load_repo_config(root.value, config_path)
    if isinstance(config, Err):
        e = config.error
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=e.message,
                hint=str(e.path) if e.path is not None else None,
            )
        )

    return Ok(RepoSetup(root=root.value, config=config.value))


def _current_version(
    setup: RepoSetup,
    *,
    rehearsal: bool,
    console: ConsoleProtocol,
) -> Result[SemanticVersion, ReleaseError]:
    path = setup.root / setup.config.release.version_file
    version = read_version_file(path)
    if isinstance(version, Err) and rehearsal:
        console.warning(
            f"rehearsal: {version.error.message}; using {REHEARSAL_FALLBACK_VERSION}"
        )
        return Ok(REHEARSAL_FALLBACK_VERSION)
    return version


def prepare_release(
    module_name: str,
    kind: str | ReleaseKind,
    allow_dirty: bool = False,
    *,
    cwd: Path,
    console: ConsoleProtocol,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    vcs_factory: VcsFactory = Repository,
) -> Result[ReleaseOutcome, ReleaseError]:
    """Run one release of `module_name`.

    Args:
        module_name: Module to release; also names the archive.
        kind: "trial", "major", "minor" or "patch".
        allow_dirty: Rehearse: refusals become warnings and nothing in the
            repository is written, committed, tagged or pushed.
        cwd: Any directory inside the repository.
        console: Output sink.
        config_path: Explicit config file instead of `<root>/modrel.toml`.
        env: Environment for editor and install-dir lookup (default: os.environ).
        vcs_factory: Builds the version-control collaborator for the root.

    Returns:
        Ok(ReleaseOutcome) on success, Err(ReleaseError) from the first failed step.
    """
    request = ReleaseRequest.create(module_name, kind, allow_dirty)
    if isinstance(request, Err):
        return request
    req = request.value

    setup = _open_repo(cwd, config_path)
    if isinstance(setup, Err):
        return setup

    current = _current_version(
        setup.value, rehearsal=req.mode.is_rehearsal, console=console
    )
    if isinstance(current, Err):
        return current

    ctx = ReleaseContext(
        request=req,
        config=setup.value.config,
        repository_root=setup.value.root,
        current_version=current.value,
        target_version=current.value.bump(req.kind),
    )

    mode = " (rehearsal)" if req.mode.is_rehearsal else ""
    console.header(f"{req.module_name}: {req.kind} release {ctx.target_version}{mode}")
    console.print(f"current version {ctx.current_version}", Style.DIM)

    sequencer = ReleaseSequencer(
        vcs=vcs_factory(ctx.repository_root),
        console=console,
        env=dict(os.environ) if env is None else env,
    )
    finished = sequencer.run(ctx)
    if isinstance(finished, Err):
        return finished

    done = finished.value
    if done.archive_path is None:
        return Err(ReleaseError(kind="invalid_input", message="release produced no archive"))

    return Ok(
        ReleaseOutcome(
            kind=req.kind,
            mode=req.mode,
            version=str(done.target_version),
            archive_path=done.archive_path,
            installed_path=done.installed_path,
            tag=None if req.kind.is_trial else done.tag_name,
        )
    )


def plan_versions(
    *,
    cwd: Path,
    config_path: Path | None = None,
) -> Result[VersionPlan, ReleaseError]:
    """Current version and the target each release kind would produce."""
    setup = _open_repo(cwd, config_path)
    if isinstance(setup, Err):
        return setup

    current = read_version_file(setup.value.root / setup.value.config.release.version_file)
    if isinstance(current, Err):
        return current

    targets = tuple((kind, current.value.bump(kind)) for kind in ReleaseKind)
    return Ok(VersionPlan(current=current.value, targets=targets))
