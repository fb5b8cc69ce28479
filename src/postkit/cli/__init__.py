"""Command-line interface for postkit."""

from postkit.cli.app import app, main

__all__ = ["app", "main"]
