"""Logging setup for postkit.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves. Applications (and the ``postkit`` CLI) call
:func:`init_logging` once to route the ``postkit`` logger to a Rich console
handler.

Examples:
    >>> from postkit.logging import init_logging
    >>> logger = init_logging(preset="dev")  # doctest: +SKIP
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from postkit.logging.manager import (
    FALLBACK_PRESETS,
    LOGGER_NAME,
    LOGGING_LEVEL,
    TRACE_LEVEL,
    build_console_handler,
    resolve_level,
)

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "FALLBACK_PRESETS",
    "LOGGING_LEVEL",
    "TRACE_LEVEL",
    "get_logger",
    "init_logging",
]

_root_logger: logging.Logger | None = None


def init_logging(
    level: int | str | None = None,
    *,
    preset: str | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """Configure the ``postkit`` logger with a Rich console handler.

    Calling it again replaces the handler installed by the previous call.

    Args:
        level: Explicit level (name or number). Wins over the preset level.
        preset: One of :data:`FALLBACK_PRESETS` (``dev``, ``default``,
            ``quiet``). Defaults to ``default``.
        console: Rich console to write to (defaults to stderr).

    Returns:
        The configured ``postkit`` logger.

    Raises:
        ValueError: If the preset or level name is unknown.
    """
    global _root_logger  # pylint: disable=global-statement

    preset_name = preset or "default"
    if preset_name not in FALLBACK_PRESETS:
        raise ValueError(f"Unknown logging preset: {preset_name!r}. Available: {sorted(FALLBACK_PRESETS)}")
    settings = FALLBACK_PRESETS[preset_name]
    numeric_level = resolve_level(level if level is not None else settings["level"])

    logger = logging.getLogger(LOGGER_NAME)
    if _root_logger is not None:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

    logger.addHandler(build_console_handler(numeric_level, show_path=settings["show_path"], console=console))
    logger.setLevel(numeric_level)
    logger.propagate = False
    _root_logger = logger
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``postkit`` logger, or one of its children.

    Args:
        name: Child name, with or without the ``postkit.`` prefix.
    """
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
