"""Shared console helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

__all__ = ["console", "exit_error", "verbosity_level"]

console = Console()

_VERBOSITY_LEVELS = {0: None, 1: "INFO", 2: "DEBUG"}


def exit_error(message: str, code: int = 1) -> NoReturn:
    """Print *message* in red and stop the command with *code*."""
    console.print(f"[red]Error:[/] {escape(message)}")
    raise typer.Exit(code=code)


def verbosity_level(verbose: int) -> str | None:
    """Map a repeated ``-v`` count to a log level name.

    Examples:
        >>> verbosity_level(0) is None
        True
        >>> verbosity_level(3)
        'TRACE'
    """
    return _VERBOSITY_LEVELS.get(verbose, "TRACE")
