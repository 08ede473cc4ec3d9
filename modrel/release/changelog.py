"""Changelog drafting and interactive editing.

The draft is the commit list since the previous release tag, one bullet per
commit, under a `# Release <version>` heading. The operator revises it in an
editor; the edited text then becomes the release commit message.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping, Sequence
from pathlib import Path

from modrel.core.result import Err, Ok, Result
from modrel.platform.files import atomic_write_text
from modrel.platform.process import run_interactive
from modrel.release.contracts import VersionControl
from modrel.release.errors import ReleaseError, vcs_failed

EDITOR_ENV = "MODREL_EDITOR"

HEADING_MARKER = "#"


def render_draft(title: str, entries: Sequence[str]) -> str:
    lines = [f"{HEADING_MARKER} {title}", ""]
    lines.extend(f"- {entry}" for entry in entries)
    return "\n".join(lines).rstrip() + "\n"


def write_draft(path: Path, text: str) -> Result[Path, ReleaseError]:
    try:
        atomic_write_text(path, text)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"failed to write changelog: {e}",
                hint=str(path),
            )
        )
    return Ok(path)


def read_changelog(path: Path) -> Result[str, ReleaseError]:
    try:
        return Ok(path.read_text(encoding="utf-8"))
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"failed to read changelog: {e}",
                hint=str(path),
            )
        )


def resolve_editor(env: Mapping[str, str], vcs: VersionControl) -> Result[list[str], ReleaseError]:
    """Pick the editor command: MODREL_EDITOR, else git's configured editor."""
    raw = env.get(EDITOR_ENV, "").strip()
    if not raw:
        configured = vcs.default_editor()
        if isinstance(configured, Err):
            return Err(vcs_failed("failed to resolve the git editor", configured.error))
        raw = configured.value.strip()

    try:
        cmd = shlex.split(raw)
    except ValueError as e:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"invalid editor command: {raw!r} ({e})",
                hint=f"Set {EDITOR_ENV} or git config core.editor",
            )
        )

    if not cmd:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="no editor configured",
                hint=f"Set {EDITOR_ENV} or git config core.editor",
            )
        )
    return Ok(cmd)


def edit(path: Path, editor_cmd: Sequence[str], *, cwd: Path) -> Result[None, ReleaseError]:
    """Open `path` in the editor and block until it exits."""
    result = run_interactive([*editor_cmd, str(path)], cwd=cwd)
    if isinstance(result, Err):
        e = result.error
        return Err(
            ReleaseError(
                kind="editor_aborted",
                message=f"editor exited with status {e.returncode}",
                hint=e.stderr.strip() or "Release aborted; nothing was committed.",
            )
        )
    return Ok(None)


def commit_message_from(text: str) -> Result[str, ReleaseError]:
    """Turn the edited changelog into a commit message.

    The heading marker is stripped from the first line, so a draft starting
    with `# Release 1.4.3` yields a subject of `Release 1.4.3`.
    """
    lines = text.strip().splitlines()
    if lines and lines[0].startswith(HEADING_MARKER):
        lines[0] = lines[0].lstrip(HEADING_MARKER).strip()

    message = "\n".join(lines).strip()
    if not message:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="changelog is empty",
                hint="Release aborted; write at least a title line.",
            )
        )
    return Ok(message + "\n")
