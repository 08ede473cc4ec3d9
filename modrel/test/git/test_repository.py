"""Tests for git/repository.py."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from modrel.core.result import Err, Ok
from modrel.git.repository import GitStatus, Repository, StatusEntry, resolve_root

# =============================================================================
# GitStatus Tests
# =============================================================================


class TestGitStatus:
    def test_up_to_date_requires_upstream(self) -> None:
        assert GitStatus(branch="main").is_up_to_date is False
        assert GitStatus(branch="main", upstream="origin/main").is_up_to_date is True

    def test_ahead_is_still_up_to_date(self) -> None:
        status = GitStatus(branch="main", upstream="origin/main", ahead=1)
        assert status.is_up_to_date is True

    def test_behind_is_not_up_to_date(self) -> None:
        status = GitStatus(branch="main", upstream="origin/main", behind=2)
        assert status.is_up_to_date is False

    def test_is_clean(self) -> None:
        status = GitStatus(
            branch="main",
            entries=(
                StatusEntry("M ", "a"),
                StatusEntry(" M", "b"),
                StatusEntry("??", "c"),
            ),
        )
        assert status.is_clean is False
        assert GitStatus(branch="main").is_clean is True


# =============================================================================
# Repository Tests - Mocked subprocess
# =============================================================================


def make_completed_process(
    stdout: str = "",
    stderr: str = "",
    returncode: int = 0,
) -> subprocess.CompletedProcess[str]:
    """Create a mock CompletedProcess."""
    return subprocess.CompletedProcess(
        args=[],
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
    )


def _git_args(mock_run: MagicMock) -> list[str]:
    """Arguments after `git -C <path>` of the last call."""
    cmd = mock_run.call_args.args[0]
    assert cmd[:2] == ["git", "-C"]
    return cmd[3:]


class TestRepository:
    @patch("subprocess.run")
    def test_status_ahead_behind(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stdout="## main...origin/main [ahead 3, behind 2]\n M mod.lua\n?? new.png\n"
        )

        result = Repository(tmp_path).status()

        assert isinstance(result, Ok)
        status = result.unwrap()
        assert status.branch == "main"
        assert status.upstream == "origin/main"
        assert (status.ahead, status.behind) == (3, 2)
        assert [e.path for e in status.entries] == ["mod.lua", "new.png"]

    @patch("subprocess.run")
    def test_status_error(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stderr="fatal: not a git repository", returncode=128
        )

        result = Repository(tmp_path).status()

        assert isinstance(result, Err)
        assert result.error.command == "status"
        assert result.error.returncode == 128
        assert "not a git repository" in result.error.message

    @patch("subprocess.run")
    def test_is_clean(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="")
        assert Repository(tmp_path).is_clean() == Ok(True)
        assert _git_args(mock_run) == ["status", "--porcelain", "--ignore-submodules"]

        mock_run.return_value = make_completed_process(stdout=" M mod.lua\n")
        assert Repository(tmp_path).is_clean(ignore_submodules=False) == Ok(False)
        assert _git_args(mock_run) == ["status", "--porcelain"]

    @patch("subprocess.run")
    def test_clean_uses_relative_pathspec(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        result = Repository(tmp_path).clean(tmp_path / "release", include_ignored=True)

        assert result == Ok(None)
        assert _git_args(mock_run) == ["clean", "-f", "-d", "-x", "--", "release"]

    @patch("subprocess.run")
    def test_clean_excludes_kept_names(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        repo = Repository(tmp_path)

        repo.clean(tmp_path / "release", include_ignored=True, keep=("NOTES.txt",))

        args = _git_args(mock_run)
        assert args == ["clean", "-f", "-d", "-x", "-e", "NOTES.txt", "--", "release"]

    @patch("subprocess.run")
    def test_log_since_tag(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="Fix jump\n\nAdd level 2\n")

        result = Repository(tmp_path).log_since("1.0.0")

        assert result == Ok(["Fix jump", "Add level 2"])
        assert _git_args(mock_run) == ["log", "--reverse", "--pretty=format:%s", "1.0.0..HEAD"]

    @patch("subprocess.run")
    def test_log_full_history(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="Initial\n")

        Repository(tmp_path).log_since(None)

        assert _git_args(mock_run) == ["log", "--reverse", "--pretty=format:%s"]

    @patch("subprocess.run")
    def test_tag_exists_exact_match(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="1.2.0\n")
        assert Repository(tmp_path).tag_exists("1.2.0") == Ok(True)

        mock_run.return_value = make_completed_process(stdout="")
        assert Repository(tmp_path).tag_exists("1.3.0") == Ok(False)

    @patch("subprocess.run")
    def test_is_ignored_exit_codes(self, mock_run: MagicMock, tmp_path: Path) -> None:
        repo = Repository(tmp_path)

        mock_run.return_value = make_completed_process()
        assert repo.is_ignored(tmp_path / "release" / "Mod.mod") == Ok(True)
        assert _git_args(mock_run) == ["check-ignore", "-q", "--", "release/Mod.mod"]

        mock_run.return_value = make_completed_process(returncode=1)
        assert repo.is_ignored(tmp_path / "release" / "Mod.mod") == Ok(False)

        mock_run.return_value = make_completed_process(
            stderr="fatal: not a git repository", returncode=128
        )
        result = repo.is_ignored(tmp_path / "release" / "Mod.mod")
        assert isinstance(result, Err)
        assert result.error.command == "check-ignore"
        assert result.error.returncode == 128

    @patch("subprocess.run")
    def test_create_tag_is_annotated(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        Repository(tmp_path).create_tag("1.3.0", "Release 1.3.0")

        assert _git_args(mock_run) == ["tag", "-a", "1.3.0", "-m", "Release 1.3.0"]

    @patch("subprocess.run")
    def test_add_and_commit(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        repo = Repository(tmp_path)

        repo.add([tmp_path / "VERSION"])
        assert _git_args(mock_run) == ["add", "--", "VERSION"]

        repo.commit("Release 1.3.0\n")
        assert _git_args(mock_run) == ["commit", "-m", "Release 1.3.0\n"]

    @patch("subprocess.run")
    def test_push_follow_tags(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        Repository(tmp_path).push(with_tags=True)

        assert _git_args(mock_run) == ["push", "--follow-tags"]
        assert mock_run.call_args.kwargs["timeout"] == 180.0

    @patch("subprocess.run")
    def test_push_failure(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stderr="! [rejected] main -> main (fetch first)", returncode=1
        )

        result = Repository(tmp_path).push(with_tags=True)

        assert isinstance(result, Err)
        assert "rejected" in result.error.message

    @patch("subprocess.run")
    def test_up_to_date_with_remote(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = [
            make_completed_process(),
            make_completed_process(stdout="## main...origin/main [ahead 1]\n"),
        ]
        assert Repository(tmp_path).is_up_to_date_with_remote() == Ok(True)

    @patch("subprocess.run")
    def test_not_up_to_date_without_upstream(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = [
            make_completed_process(),
            make_completed_process(stdout="## main\n"),
        ]
        assert Repository(tmp_path).is_up_to_date_with_remote() == Ok(False)

    @patch("subprocess.run")
    def test_fetch_failure_propagates(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stderr="fatal: unable to access", returncode=128
        )

        result = Repository(tmp_path).is_up_to_date_with_remote()

        assert isinstance(result, Err)
        assert result.error.command == "fetch"
        assert mock_run.call_count == 1

    @patch("subprocess.run")
    def test_default_editor(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="vim\n")
        assert Repository(tmp_path).default_editor() == Ok("vim")

    @patch("subprocess.run")
    def test_resolve_root(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout=f"{tmp_path}\n")
        assert resolve_root(tmp_path / "sub") == Ok(tmp_path.resolve())

    @patch("subprocess.run")
    def test_resolve_root_outside_repo(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stderr="", returncode=128)

        result = resolve_root(tmp_path)

        assert isinstance(result, Err)
        assert "not a git repository" in result.error.message


# =============================================================================
# Repository Tests - real git
# =============================================================================


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


@pytest.fixture
def repo(tmp_path: Path) -> Repository:
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    _git(tmp_path, "init", "-q")
    _git(tmp_path, "config", "user.email", "dev@example.com")
    _git(tmp_path, "config", "user.name", "Dev")
    _git(tmp_path, "config", "commit.gpgsign", "false")
    _git(tmp_path, "config", "tag.gpgsign", "false")
    (tmp_path / ".gitignore").write_text("release/*\n!release/.gitignore\n", encoding="utf-8")
    (tmp_path / "VERSION").write_text("1.0.0\n", encoding="utf-8")
    _git(tmp_path, "add", ".")
    _git(tmp_path, "commit", "-q", "-m", "Initial")
    return Repository(tmp_path)


class TestRepositoryWithGit:
    def test_commit_tag_and_log(self, repo: Repository) -> None:
        assert repo.create_tag("1.0.0", "Release 1.0.0") == Ok(None)
        assert repo.tag_exists("1.0.0") == Ok(True)
        assert repo.tag_exists("1.0") == Ok(False)

        (repo.path / "VERSION").write_text("1.1.0\n", encoding="utf-8")
        assert repo.is_clean() == Ok(False)
        assert repo.add([repo.path / "VERSION"]) == Ok(None)
        assert repo.commit("Release 1.1.0\n") == Ok(None)
        assert repo.is_clean() == Ok(True)

        assert repo.log_since("1.0.0") == Ok(["Release 1.1.0"])
        assert repo.log_since(None) == Ok(["Initial", "Release 1.1.0"])

    def test_duplicate_tag_fails(self, repo: Repository) -> None:
        assert repo.create_tag("1.0.0", "Release 1.0.0") == Ok(None)
        assert isinstance(repo.create_tag("1.0.0", "again"), Err)

    def test_ignored_release_dir_keeps_tree_clean(self, repo: Repository) -> None:
        release = repo.path / "release"
        release.mkdir()
        (release / "mod.lua").write_text("x", encoding="utf-8")
        assert repo.is_clean() == Ok(True)

        assert repo.clean(release, include_ignored=True) == Ok(None)
        assert not (release / "mod.lua").exists()

    def test_clean_leaves_kept_names(self, repo: Repository) -> None:
        release = repo.path / "release"
        release.mkdir()
        (release / "mod.lua").write_text("x", encoding="utf-8")
        (release / "NOTES.txt").write_text("hand-written", encoding="utf-8")

        assert repo.clean(release, include_ignored=True, keep=("NOTES.txt",)) == Ok(None)

        assert not (release / "mod.lua").exists()
        assert (release / "NOTES.txt").exists()

    def test_is_ignored_follows_gitignore(self, repo: Repository) -> None:
        assert repo.is_ignored(repo.path / "release" / "Mod.mod") == Ok(True)
        assert repo.is_ignored(repo.path / "release" / ".gitignore") == Ok(False)
        assert repo.is_ignored(repo.path / "VERSION") == Ok(False)

    def test_no_upstream_is_not_up_to_date(self, repo: Repository) -> None:
        assert repo.status().map(lambda s: s.is_up_to_date) == Ok(False)
