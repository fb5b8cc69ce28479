"""Logging levels, presets and Rich console handler setup."""

from __future__ import annotations

import logging
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

from rich.logging import RichHandler

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "FALLBACK_PRESETS",
    "LOGGER_NAME",
    "LOGGING_LEVEL",
    "TRACE_LEVEL",
    "build_console_handler",
    "resolve_level",
]

LOGGER_NAME = "postkit"

# Below DEBUG: protocol-level detail (SMTP dialogue, TLS session info).
TRACE_LEVEL = 5

logging.addLevelName(TRACE_LEVEL, "TRACE")

LOGGING_LEVEL = SimpleNamespace(
    TRACE=TRACE_LEVEL,
    DEBUG=logging.DEBUG,
    INFO=logging.INFO,
    WARNING=logging.WARNING,
    ERROR=logging.ERROR,
    CRITICAL=logging.CRITICAL,
)

FALLBACK_PRESETS: dict[str, dict[str, Any]] = {
    "dev": {"level": "TRACE", "show_path": True},
    "default": {"level": "WARNING", "show_path": False},
    "quiet": {"level": "ERROR", "show_path": False},
}


def resolve_level(level: int | str) -> int:
    """Translate a level name or number into a numeric logging level.

    Args:
        level: Numeric level, or a name such as ``"TRACE"`` or ``"info"``.

    Returns:
        The numeric level.

    Raises:
        ValueError: If the name is not a known level.

    Examples:
        >>> resolve_level("trace")
        5
        >>> resolve_level(20)
        20
    """
    if isinstance(level, int):
        return level
    value = getattr(LOGGING_LEVEL, level.strip().upper(), None)
    if value is None:
        raise ValueError(f"Unknown log level: {level!r}")
    return int(value)


def build_console_handler(
    level: int,
    *,
    show_path: bool = False,
    console: Console | None = None,
) -> RichHandler:
    """Create the Rich handler used for console output.

    Args:
        level: Minimum level the handler emits.
        show_path: Whether to print the emitting module path.
        console: Rich console to write to (defaults to stderr).
    """
    if console is None:
        import sys

        from rich.console import Console

        console = Console(file=sys.stderr)
    handler = RichHandler(
        level=level,
        console=console,
        show_path=show_path,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    return handler
