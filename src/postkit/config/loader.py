"""Load postkit configuration from YAML files.

Lookup order for :func:`load_config` (first match wins):

1. An explicit ``path`` argument.
2. The file named by the ``POSTKIT_CONFIG`` environment variable.
3. ``postkit.conf.yml`` in the current working directory.
4. ``~/.config/postkit/postkit.conf.yml``.
5. ``~/postkit.conf.yml``.

The file is deep-merged over :data:`DEFAULT_CONFIG` and returned as a
:class:`box.Box`, so values are reachable as attributes
(``config.mail.host``). String values may reference environment variables
with ``${VAR}`` (required) or ``${VAR:-default}`` (optional)::

    mail:
      host: smtp.example.com
      port: 587
      starttls: true
      username: ${SMTP_USER}
      password: ${SMTP_PASSWORD}
      from: "Build Bot <bot@example.com>"
"""

from __future__ import annotations

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from box import Box

from postkit.config.exceptions import ConfigFileNotFoundError, ConfigFormatError, EnvVarError

__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "load_config",
    "load_from_file",
]

log = logging.getLogger(__name__)

CONFIG_FILENAME = "postkit.conf.yml"
CONFIG_ENV_VAR = "POSTKIT_CONFIG"

DEFAULT_CONFIG: dict[str, Any] = {
    "mail": {
        "host": None,
        "port": 25,
        "ssl_port": 465,
        "ssl": False,
        "starttls": False,
        "starttls_required": False,
        "check_server_identity": False,
        "connection_timeout": 60000,
        "timeout": 60000,
        "charset": None,
        "from": None,
        "bounce": None,
        "username": None,
        "password": None,
    },
    "logging": {
        "preset": "default",
    },
}

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([a-zA-Z_][a-zA-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(value: str, source: str | None = None) -> str:
    """Expand environment variables in a string value.

    Raises:
        EnvVarError: If a required variable is not set.

    Examples:
        >>> import os
        >>> os.environ["POSTKIT_DOC_HOST"] = "smtp.example.com"
        >>> _expand_env_vars("${POSTKIT_DOC_HOST}:${POSTKIT_DOC_PORT:-25}")
        'smtp.example.com:25'
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default_value = match.group(2)

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value
        if default_value is not None:
            return default_value
        raise EnvVarError(var_name, source)

    return _ENV_VAR_PATTERN.sub(replacer, value)


def _expand_env_vars_recursive(data: Any, source: str | None = None) -> Any:
    """Apply :func:`_expand_env_vars` to every string in nested dicts and lists."""
    if isinstance(data, dict):
        return {k: _expand_env_vars_recursive(v, source) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars_recursive(item, source) for item in data]
    if isinstance(data, str):
        return _expand_env_vars(data, source)
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return *base* updated recursively with *override* (override wins)."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _search_paths() -> list[Path]:
    home = Path.home()
    return [
        Path.cwd() / CONFIG_FILENAME,
        home / ".config" / "postkit" / CONFIG_FILENAME,
        home / CONFIG_FILENAME,
    ]


def _find_config_file() -> Path | None:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.is_file():
            raise ConfigFileNotFoundError(f"Config file from {CONFIG_ENV_VAR} not found: {path}")
        return path
    for candidate in _search_paths():
        if candidate.is_file():
            return candidate
    return None


def load_from_file(path: str | Path) -> Box:
    """Load one YAML file merged over the defaults.

    Args:
        path: Path to the YAML file.

    Returns:
        The merged configuration.

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
        ConfigFormatError: If the file is not valid YAML or not a mapping.
        EnvVarError: If a required ``${VAR}`` is not set.
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise ConfigFileNotFoundError(f"Config file not found: {file_path}")

    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigFormatError(f"Invalid YAML in {file_path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigFormatError(f"Invalid config format in {file_path}: expected a mapping")

    data = _expand_env_vars_recursive(data, source=str(file_path))
    log.debug("Loaded configuration from %s", file_path)
    return Box(_deep_merge(DEFAULT_CONFIG, data))


def load_config(path: str | Path | None = None) -> Box:
    """Load the postkit configuration using the documented lookup order.

    Args:
        path: Explicit file to load. Skips the search when given.

    Returns:
        The merged configuration, or the defaults when no file is found.
    """
    if path is not None:
        return load_from_file(path)

    found = _find_config_file()
    if found is None:
        log.debug("No %s found, using defaults", CONFIG_FILENAME)
        return Box(copy.deepcopy(DEFAULT_CONFIG))
    return load_from_file(found)
