from __future__ import annotations

from pathlib import Path

import typer

from modrel.cli.context import build_context
from modrel.core.result import Err
from modrel.output.console import Style
from modrel.output.errors import print_release_error, release_error_exit_code
from modrel.release.model import RELEASE_KINDS
from modrel.release.service import prepare_release


def release(
    module: str = typer.Argument(..., help="Module name (letters, digits and spaces)."),
    kind: str = typer.Argument(..., help=f"Release kind: {', '.join(RELEASE_KINDS)}."),
    allow_dirty: bool = typer.Option(
        False,
        "--allow-dirty",
        "--rehearse",
        help="Rehearse: report refusals as warnings; write, commit, tag and push nothing.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: modrel.toml at the repository root).",
    ),
) -> None:
    """Stage, package and release a module."""
    ctx = build_context()
    console = ctx.console

    result = prepare_release(
        module,
        kind,
        allow_dirty,
        cwd=ctx.cwd,
        console=console,
        config_path=config,
    )
    if isinstance(result, Err):
        print_release_error(result.error, console)
        raise typer.Exit(code=release_error_exit_code(result.error))

    outcome = result.value
    console.newline()
    console.print(f"archive: {outcome.archive_path}", Style.DIM)
    if outcome.installed_path is not None:
        console.success(f"trial {outcome.version} installed: {outcome.installed_path}")
    elif outcome.mode.is_rehearsal:
        console.success(f"rehearsal of {outcome.version} complete; repository untouched")
    else:
        console.success(f"released {outcome.tag}")
