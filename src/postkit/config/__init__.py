"""Configuration loading for postkit."""

from postkit.config.exceptions import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigFormatError,
    EnvVarError,
    PostkitError,
)
from postkit.config.loader import CONFIG_ENV_VAR, CONFIG_FILENAME, DEFAULT_CONFIG, load_config, load_from_file

__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "EnvVarError",
    "PostkitError",
    "load_config",
    "load_from_file",
]
