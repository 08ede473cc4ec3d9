"""Git operations.

Usage:
    from modrel.git import Repository, resolve_root

    root = resolve_root(Path.cwd()).unwrap()
    repo = Repository(root)
    match repo.tag_exists("1.4.3"):
        case Ok(True):
            print("already released")
        case Err(error):
            print(error.detail())
"""

from modrel.git.repository import (
    GitError,
    GitStatus,
    Repository,
    StatusEntry,
    resolve_root,
)

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
    "resolve_root",
]
