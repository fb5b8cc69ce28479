"""Typer application behind the ``postkit`` command."""

from __future__ import annotations

from typing import Annotated

import typer

from postkit import meta
from postkit.cli.commands.check import check
from postkit.cli.commands.send import send
from postkit.cli.common import console

__all__ = ["app", "main"]

app = typer.Typer(
    name=meta.__app_name__,
    help=meta.__description__,
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{meta.__app_name__} {meta.__version__}")
        raise typer.Exit()


@app.callback()
def _root(  # pylint: disable=unused-argument
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = False,
) -> None:
    """Build email messages once, send them over SMTP."""


app.command("send")(send)
app.command("check")(check)


def main() -> None:
    """Entry point of the ``postkit`` console script."""
    app()
