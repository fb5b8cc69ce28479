"""Shared pytest fixtures for the postkit test suite."""

from __future__ import annotations

# Disable Rich colors and force wide terminal BEFORE any imports
# Rich checks these at import time
import os

os.environ["NO_COLOR"] = "1"
os.environ["TERM"] = "dumb"
os.environ["FORCE_COLOR"] = "0"
os.environ["COLUMNS"] = "200"  # Prevent text wrapping in CLI output

import logging
import pathlib
import shutil
from collections.abc import Callable, Iterator
from email.message import EmailMessage
from pathlib import Path
from typing import Any

import pytest

# Import private internals for testing purposes
import postkit.config.loader as _cfg_loader
import postkit.logging as _postkit_logging
from postkit.config import CONFIG_ENV_VAR
from postkit.mail.transport import MailTransport

# pylint: disable=redefined-outer-name


class FakeTransport(MailTransport):
    """In-memory transport used for assertions in tests."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []

    def send(self, message: EmailMessage) -> None:
        """Store the message in the sent list."""
        self.sent.append(message)


@pytest.fixture(scope="session")
def fixtures_root() -> Path:
    """Return the root directory containing persistent test fixtures."""

    return pathlib.Path(__file__).parent / "fixtures"


@pytest.fixture
def get_fixture_path(fixtures_root: Path) -> Callable[[str], Path]:
    """Build a path helper bound to the shared fixtures directory."""

    def _get(subdir: str) -> Path:
        """Return the absolute path for a given fixture subdirectory."""

        return fixtures_root / subdir

    return _get


@pytest.fixture
def copy_fixture(
    get_fixture_path: Callable[[str], Path],
    tmp_path: Path,
) -> Callable[[str, str, str | None], Path]:
    """Copy a fixture file into the pytest temp directory."""

    def _copy(subdir: str, fixture_name: str, dest_name: str | None = None) -> Path:
        """Copy the requested fixture file and return the destination path."""

        src = get_fixture_path(subdir) / fixture_name
        dst = tmp_path / (dest_name or fixture_name)
        shutil.copyfile(src, dst)
        return dst

    return _copy


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Provide a fresh in-memory transport."""
    return FakeTransport()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep config lookup away from the developer's own files."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path / "home"))


@pytest.fixture(autouse=True)
def reset_postkit_logger() -> Iterator[None]:
    """Undo handlers and levels installed by ``init_logging`` during a test."""
    logger = logging.getLogger("postkit")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate
    _postkit_logging._root_logger = None


# ============================================================================
# CONFIG MODULE PRIVATE INTERNALS - For testing purposes only
# ============================================================================


@pytest.fixture
def cfg_loader() -> Any:
    """Expose config.loader module for testing private methods.

    This fixture provides access to internal implementation details
    that are not part of the public API. Used for unit testing only.

    Returns:
        Module object containing private config loader internals.
    """
    return _cfg_loader
