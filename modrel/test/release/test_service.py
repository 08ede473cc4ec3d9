"""Tests for modrel.release.service."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

import modrel.release.sequencer as sequencer
import modrel.release.service as service
from modrel.core.result import Err, Ok, Result
from modrel.git.repository import GitError
from modrel.output.console import MockConsole
from modrel.release.changelog import EDITOR_ENV
from modrel.release.errors import ReleaseError
from modrel.release.install import INSTALL_DIR_ENV
from modrel.release.model import ReleaseKind
from modrel.release.semver import SemanticVersion
from modrel.test.release._fakes import FakeVcs, write_module_repo


@pytest.fixture
def repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "repo").mkdir()
    root = write_module_repo(tmp_path / "repo")
    monkeypatch.setattr(service, "resolve_root", lambda cwd: Ok(root))

    def accept(path: Path, editor_cmd: Sequence[str], *, cwd: Path) -> Result[None, ReleaseError]:
        return Ok(None)

    monkeypatch.setattr(sequencer, "edit_changelog", accept)
    return root


def _env(tmp_path: Path) -> dict[str, str]:
    return {EDITOR_ENV: "fake-editor", INSTALL_DIR_ENV: str(tmp_path / "mods")}


class TestPrepareRelease:
    def test_patch_release(self, repo: Path, tmp_path: Path) -> None:
        vcs = FakeVcs(path=repo)
        console = MockConsole()

        result = service.prepare_release(
            "Road Trip",
            "patch",
            cwd=repo,
            console=console,
            env=_env(tmp_path),
            vcs_factory=lambda root: vcs,
        )

        assert isinstance(result, Ok)
        outcome = result.value
        assert outcome.kind == ReleaseKind.PATCH
        assert outcome.version == "1.4.3"
        assert outcome.tag == "1.4.3"
        assert outcome.installed_path is None
        assert outcome.archive_path == repo / "release" / "Road Trip.mod"
        assert console.find("Road Trip: patch release 1.4.3")
        assert vcs.created_tags == [("1.4.3", "Release 1.4.3")]

    def test_trial_release(self, repo: Path, tmp_path: Path) -> None:
        vcs = FakeVcs(path=repo)

        result = service.prepare_release(
            "Road Trip",
            ReleaseKind.TRIAL,
            cwd=repo,
            console=MockConsole(),
            env=_env(tmp_path),
            vcs_factory=lambda root: vcs,
        )

        assert isinstance(result, Ok)
        assert result.value.version == "1.4.2"
        assert result.value.tag is None
        assert result.value.installed_path == tmp_path / "mods" / "Road Trip.mod"
        assert vcs.commits == []

    def test_invalid_request_checked_first(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        def boom(cwd: Path) -> Result[Path, GitError]:
            raise AssertionError("repository must not be resolved")

        monkeypatch.setattr(service, "resolve_root", boom)

        result = service.prepare_release("Road-Trip", "patch", cwd=tmp_path, console=MockConsole())

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"

    def test_outside_repository(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(
            service,
            "resolve_root",
            lambda cwd: Err(GitError("rev-parse", "fatal: not a git repository", 128)),
        )

        result = service.prepare_release("Mod", "minor", cwd=tmp_path, console=MockConsole())

        assert isinstance(result, Err)
        assert result.error.kind == "vcs_failed"
        assert result.error.hint == "fatal: not a git repository"

    def test_bad_config(self, repo: Path) -> None:
        (repo / "modrel.toml").write_text("[release\n", encoding="utf-8")

        result = service.prepare_release(
            "Road Trip", "patch", cwd=repo, console=MockConsole(), vcs_factory=FakeVcs
        )

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"

    def test_invalid_version_file(self, repo: Path) -> None:
        (repo / "VERSION").write_text("1.4\n", encoding="utf-8")

        result = service.prepare_release(
            "Road Trip", "patch", cwd=repo, console=MockConsole(), vcs_factory=FakeVcs
        )

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_version_format"

    def test_rehearsal_falls_back_on_unreadable_version(self, repo: Path, tmp_path: Path) -> None:
        (repo / "VERSION").unlink()
        vcs = FakeVcs(path=repo)
        console = MockConsole()

        result = service.prepare_release(
            "Road Trip",
            "patch",
            True,
            cwd=repo,
            console=console,
            env=_env(tmp_path),
            vcs_factory=lambda root: vcs,
        )

        assert isinstance(result, Ok)
        assert result.value.version == "0.0.1"
        assert result.value.mode.is_rehearsal
        assert console.find("using 0.0.0")
        assert not (repo / "VERSION").exists()
        assert vcs.commits == []

    def test_explicit_config_path(self, repo: Path, tmp_path: Path) -> None:
        (repo / "VERSION").rename(repo / "VERSION.txt")
        config = tmp_path / "custom.toml"
        config.write_text('[release]\nversion_file = "VERSION.txt"\n', encoding="utf-8")
        vcs = FakeVcs(path=repo)

        result = service.prepare_release(
            "Road Trip",
            "major",
            cwd=repo,
            console=MockConsole(),
            config_path=config,
            env=_env(tmp_path),
            vcs_factory=lambda root: vcs,
        )

        assert isinstance(result, Ok)
        assert (repo / "VERSION.txt").read_text(encoding="utf-8") == "2.0.0\n"


class TestPlanVersions:
    def test_targets_per_kind(self, repo: Path) -> None:
        result = service.plan_versions(cwd=repo)

        assert isinstance(result, Ok)
        plan = result.value
        assert plan.current == SemanticVersion(1, 4, 2)
        assert dict(plan.targets) == {
            ReleaseKind.TRIAL: SemanticVersion(1, 4, 2),
            ReleaseKind.MAJOR: SemanticVersion(2, 0, 0),
            ReleaseKind.MINOR: SemanticVersion(1, 5, 0),
            ReleaseKind.PATCH: SemanticVersion(1, 4, 3),
        }

    def test_missing_version_file(self, repo: Path) -> None:
        (repo / "VERSION").unlink()
        result = service.plan_versions(cwd=repo)
        assert isinstance(result, Err)
        assert result.error.kind == "io_failure"
