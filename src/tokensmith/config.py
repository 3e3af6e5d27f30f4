"""Configuration loading with XDG paths, environment overrides, and credential sources.

This module turns files and environment variables into a frozen
:class:`~tokensmith.models.Settings`:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.tokensmith/`` on macOS and Windows. See :func:`get_config_dir`.
* **Precedence resolution** -- :func:`load_settings` picks the first
  configuration file found among an explicit path, ``$TOKENSMITH_CONFIG``,
  project-local ``./tokensmith.json`` and the user config file, then layers
  ``TOKENSMITH_*`` environment variables on top.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or interactive prompts, so the config file never
  needs to hold a literal client secret.
"""

from __future__ import annotations

import copy
import getpass
import json
import os
import platform
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic.alias_generators import to_camel

from tokensmith.exceptions import ConfigurationError
from tokensmith.models import Settings
from tokensmith.output import debug

_APP_NAME = "tokensmith"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "tokensmith.json"

# Environment variable -> (section, key) in the configuration mapping.
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "TOKENSMITH_TOKEN_HOST": ("auth", "token_host"),
    "TOKENSMITH_CLIENT_ID": ("client", "id"),
    "TOKENSMITH_CLIENT_SECRET": ("client", "secret"),
    "TOKENSMITH_AUTHORIZATION_METHOD": ("options", "authorization_method"),
    "TOKENSMITH_BODY_FORMAT": ("options", "body_format"),
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory. It is not created.

    On Linux/BSD: ``$XDG_CONFIG_HOME/tokensmith/`` (default ``~/.config/tokensmith/``).
    On macOS/Windows: ``~/.tokensmith/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


# --- Settings loading ---


def find_config_file(path: Optional[str | Path] = None) -> Optional[Path]:
    """Locate the configuration file by precedence.

    Precedence (high to low):
        1. *path* (e.g. the ``--config`` CLI flag)
        2. ``$TOKENSMITH_CONFIG``
        3. Project config (``./tokensmith.json``)
        4. User config (``<config dir>/config.json``)

    Returns:
        The path to use, or ``None`` if only environment variables are
        available.

    Raises:
        ConfigurationError: If an explicitly requested file does not exist.
    """
    explicit = path or os.environ.get("TOKENSMITH_CONFIG")
    if explicit:
        candidate = Path(explicit).expanduser()
        if not candidate.is_file():
            raise ConfigurationError(f"Config file not found: {candidate}")
        return candidate

    for candidate in (Path.cwd() / _PROJECT_CONFIG_FILENAME, get_config_dir() / _CONFIG_FILENAME):
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON configuration mapping from *path*.

    Raises:
        ConfigurationError: If the file is unreadable, not JSON, or not an object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Invalid config file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file at {path} must contain a JSON object")
    return data


def apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *data* with ``TOKENSMITH_*`` environment variables applied."""
    merged = copy.deepcopy(data)
    for var, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            debug(f"Config override from {var}")
            target = merged.setdefault(section, {})
            target.pop(to_camel(key), None)
            target[key] = value
    return merged


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Build :class:`~tokensmith.models.Settings` from file and environment.

    ``client.id`` and ``client.secret`` may be credential sources
    (``env:VAR``, ``file:/path``, ``prompt``); they are resolved here.

    Raises:
        ConfigurationError: If no configuration is found, a file is
            invalid, a credential cannot be resolved, or validation fails.
    """
    config_path = find_config_file(path)
    data: dict[str, Any] = {}
    if config_path is not None:
        debug(f"Loading config from {config_path}")
        data = load_config_file(config_path)

    data = apply_env_overrides(data)
    if not data:
        raise ConfigurationError(
            "No configuration found. Pass --config, set TOKENSMITH_CONFIG, "
            f"or create {get_config_dir() / _CONFIG_FILENAME}"
        )

    client = data.get("client")
    if isinstance(client, dict):
        for key in ("id", "secret"):
            if isinstance(client.get(key), str):
                client[key] = resolve_credential(client[key])

    return Settings.from_mapping(data)


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)
        - anything else -- returned unchanged as a literal value

    Raises:
        ConfigurationError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigurationError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigurationError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    return source
