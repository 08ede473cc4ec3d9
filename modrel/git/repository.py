"""Git repository abstraction.

`Repository` is the version-control collaborator of a release: it answers
questions about the working tree and performs the commit, tag and push.
All operations return Result types; nothing here raises on a failed git
command.

Usage:
    match resolve_root(Path.cwd()):
        case Ok(root):
            repo = Repository(root)
        case Err(e):
            print(f"not a repository: {e.message}")

    match repo.status():
        case Ok(status):
            print(f"Branch: {status.branch}, behind {status.behind}")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from modrel.core.result import Err, Ok, Result
from modrel.platform.process import ProcessError
from modrel.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
    "resolve_root",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed `git status --porcelain=v1 -b`.

    Attributes:
        branch: Current branch name
        upstream: Upstream branch (e.g., "origin/main"), None if not set
        ahead: Number of commits ahead of upstream
        behind: Number of commits behind upstream
        entries: All status entries (staged, unstaged, untracked)
    """

    branch: str
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0

    @property
    def is_up_to_date(self) -> bool:
        """True if an upstream is configured and it has nothing we lack.

        Being ahead is allowed: unpushed local commits go out with the push.
        """
        return self.upstream is not None and self.behind == 0


def resolve_root(cwd: Path) -> Result[Path, GitError]:
    """Resolve the top-level directory of the repository containing `cwd`."""
    result = run_process(
        ["git", "rev-parse", "--show-toplevel"],
        cwd=cwd,
        timeout=_GIT_TIMEOUT_SECONDS,
    )
    match result:
        case Err(e):
            return Err(
                GitError(
                    command="rev-parse --show-toplevel",
                    message=e.stderr.strip() or f"not a git repository: {cwd}",
                    returncode=e.returncode,
                )
            )
        case Ok(stdout):
            return Ok(Path(stdout.strip()).resolve())


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def status(self) -> Result[GitStatus, GitError]:
        """Get repository status.

        Runs `git status --porcelain=v1 -b` and parses the output.
        """
        result = self._git(["status", "--porcelain=v1", "-b"], "status")
        match result:
            case Err():
                return result
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def is_clean(self, *, ignore_submodules: bool = True) -> Result[bool, GitError]:
        """Check for staged, modified or untracked files.

        Ignored files do not count.
        """
        args = ["status", "--porcelain"]
        if ignore_submodules:
            args.append("--ignore-submodules")
        return self._git(args, "status --porcelain").map(lambda out: out.strip() == "")

    def clean(
        self, path: Path, *, include_ignored: bool, keep: Sequence[str] = ()
    ) -> Result[None, GitError]:
        """Remove untracked files and directories under `path`.

        With `include_ignored`, ignored files go too (`git clean -x`).
        Tracked files and names in `keep` are never touched.
        """
        args = ["clean", "-f", "-d"]
        if include_ignored:
            args.append("-x")
        for name in keep:
            args += ["-e", name]
        args += ["--", self._pathspec(path)]
        return self._git(args, "clean").map(lambda _: None)

    def log_since(self, ref: str | None) -> Result[list[str], GitError]:
        """One-line commit summaries after `ref`, oldest first.

        With `ref=None` the entire history of HEAD is listed.
        """
        args = ["log", "--reverse", "--pretty=format:%s"]
        if ref is not None:
            args.append(f"{ref}..HEAD")
        return self._git(args, "log").map(
            lambda out: [line.strip() for line in out.splitlines() if line.strip()]
        )

    def tag_exists(self, name: str) -> Result[bool, GitError]:
        return self._git(["tag", "--list", name], "tag --list").map(
            lambda out: name in (line.strip() for line in out.splitlines())
        )

    def is_ignored(self, path: Path) -> Result[bool, GitError]:
        """Whether `git check-ignore` matches `path` (exit 1 means not ignored)."""
        match self._run(["check-ignore", "-q", "--", self._pathspec(path)]):
            case Ok():
                return Ok(True)
            case Err(e) if e.returncode == 1:
                return Ok(False)
            case Err(e):
                return Err(
                    GitError(
                        command="check-ignore",
                        message=e.detail() or "git check-ignore failed",
                        returncode=e.returncode,
                    )
                )

    def create_tag(self, name: str, message: str) -> Result[None, GitError]:
        """Create an annotated tag on HEAD. Fails if the tag exists."""
        return self._git(["tag", "-a", name, "-m", message], "tag -a").map(lambda _: None)

    def add(self, paths: Sequence[Path]) -> Result[None, GitError]:
        args = ["add", "--", *(self._pathspec(p) for p in paths)]
        return self._git(args, "add").map(lambda _: None)

    def commit(self, message: str) -> Result[None, GitError]:
        return self._git(["commit", "-m", message], "commit").map(lambda _: None)

    def push(self, *, with_tags: bool) -> Result[None, GitError]:
        """Push the current branch.

        With `with_tags`, annotated tags reachable from the pushed commits go
        out in the same operation (`--follow-tags`).
        """
        args = ["push", "--follow-tags"] if with_tags else ["push"]
        return self._git(args, " ".join(args)).map(lambda _: None)

    def fetch(self) -> Result[str, GitError]:
        return self._git(["fetch"], "fetch").map(lambda out: out.strip())

    def is_up_to_date_with_remote(self) -> Result[bool, GitError]:
        """Fetch, then check the branch has an upstream and is not behind it."""
        fetched = self.fetch()
        if isinstance(fetched, Err):
            return fetched
        return self.status().map(lambda s: s.is_up_to_date)

    def default_editor(self) -> Result[str, GitError]:
        """The editor git itself would launch (GIT_EDITOR, core.editor, VISUAL, EDITOR)."""
        return self._git(["var", "GIT_EDITOR"], "var GIT_EDITOR").map(lambda out: out.strip())

    def _pathspec(self, path: Path) -> str:
        """Express `path` relative to the repository root when possible."""
        try:
            return path.relative_to(self.path).as_posix() or "."
        except ValueError:
            return str(path)

    def _git(self, args: list[str], label: str) -> Result[str, GitError]:
        result = self._run(args)
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=label,
                        message=e.detail() or f"git {label} failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)

    def _parse_status(self, output: str) -> GitStatus:
        lines = [ln for ln in output.splitlines() if ln.strip()]

        if not lines:
            return GitStatus(branch="")

        # First line is branch info: ## branch...upstream [ahead N, behind M]
        branch_line = lines[0]
        branch, upstream = self._parse_branch_line(branch_line)
        ahead, behind = self._parse_ahead_behind(branch_line)

        entries: list[StatusEntry] = []
        for line in lines[1:]:
            entry = self._parse_entry(line)
            if entry:
                entries.append(entry)

        return GitStatus(
            branch=branch,
            upstream=upstream,
            ahead=ahead,
            behind=behind,
            entries=tuple(entries),
        )

    def _parse_branch_line(self, line: str) -> tuple[str, str | None]:
        s = line.strip()
        if s.startswith("##"):
            s = s[2:].lstrip()

        s = s.split(" [", 1)[0].strip()

        if "..." in s:
            left, right = s.split("...", 1)
            return (left.strip(), right.strip())

        return (s, None)

    def _parse_ahead_behind(self, line: str) -> tuple[int, int]:
        match = re.search(r"\[([^\]]+)\]", line)
        if not match:
            return (0, 0)

        inside = match.group(1)
        ahead_match = re.search(r"ahead\s+(\d+)", inside)
        behind_match = re.search(r"behind\s+(\d+)", inside)

        ahead = int(ahead_match.group(1)) if ahead_match else 0
        behind = int(behind_match.group(1)) if behind_match else 0
        return (ahead, behind)

    def _parse_entry(self, line: str) -> StatusEntry | None:
        if len(line) < 4:
            return None

        return StatusEntry(xy=line[:2], path=line[3:])
