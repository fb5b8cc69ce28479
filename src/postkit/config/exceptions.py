"""Exceptions raised by the postkit configuration layer.

``PostkitError`` is the root of every postkit exception, so callers can
catch anything raised by the library with a single ``except`` clause.

Exception hierarchy::

    PostkitError
        ConfigError (base for configuration errors)
            ConfigFileNotFoundError (also FileNotFoundError)
            ConfigFormatError (also ValueError)
            EnvVarError
"""

from __future__ import annotations


class PostkitError(Exception):
    """Base exception for all postkit errors."""


class ConfigError(PostkitError):
    """Base exception for configuration loading errors."""


class ConfigFileNotFoundError(ConfigError, FileNotFoundError):
    """An explicitly requested configuration file does not exist."""


class ConfigFormatError(ConfigError, ValueError):
    """A configuration file could not be parsed into a mapping."""


class EnvVarError(ConfigError):
    """A required environment variable referenced by the config is not set.

    Attributes:
        var_name: Name of the missing variable.
        source: Configuration file that referenced it, if known.
    """

    def __init__(self, var_name: str, source: str | None = None) -> None:
        """Initialize EnvVarError.

        Args:
            var_name: Name of the missing variable.
            source: Configuration file that referenced it, if known.
        """
        location = f" (referenced in {source})" if source else ""
        super().__init__(f"Environment variable '{var_name}' is not set{location}")
        self.var_name = var_name
        self.source = source


__all__ = [
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "EnvVarError",
    "PostkitError",
]
