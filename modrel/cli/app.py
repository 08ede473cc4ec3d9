from __future__ import annotations

import typer

from modrel import __version__
from modrel.cli.commands.release_cmd import release
from modrel.cli.commands.version_cmd import version

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


app.command()(release)
app.command()(version)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    show_version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Prepare and publish releases of a single-file module."""
    del show_version


def main() -> None:
    app()
