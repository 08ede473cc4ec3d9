from __future__ import annotations

from pathlib import Path

import typer

from modrel.cli.context import build_context
from modrel.core.result import Err
from modrel.output.console import Style
from modrel.output.errors import print_release_error, release_error_exit_code
from modrel.release.service import plan_versions


def version(
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: modrel.toml at the repository root).",
    ),
) -> None:
    """Show the current version and what each release kind would produce."""
    ctx = build_context()
    console = ctx.console

    result = plan_versions(cwd=ctx.cwd, config_path=config)
    if isinstance(result, Err):
        print_release_error(result.error, console)
        raise typer.Exit(code=release_error_exit_code(result.error))

    plan = result.value
    console.print(f"current: {plan.current}", Style.BOLD)
    for kind, target in plan.targets:
        console.print(f"{kind.value:>6}: {target}")
