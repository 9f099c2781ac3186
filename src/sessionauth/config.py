"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for sessionauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.sessionauth/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **Config file** -- A single :class:`~sessionauth.models.AppConfig`
  JSON file holding every profile, provider overrides, and the login
  timeout. See :func:`load_config` and :func:`save_config`.
* **Profiles** -- :func:`default_profile` locates the default profile and
  :func:`edit_profile` applies a change to one profile by name.
* **Precedence resolution** -- :func:`resolve_provider` and
  :func:`resolve_timeout` merge CLI flags, environment variables, the
  config file, and built-in defaults.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) with ``0o600`` permissions, since the config file
holds session tokens.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from sessionauth.exceptions import ConfigError, ConfigWriteError
from sessionauth.models import AppConfig, Profile, ProviderConfig

_APP_NAME = "sessionauth"
_CONFIG_FILENAME = "config.json"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/sessionauth/`` (default
    ``~/.config/sessionauth/``). On macOS/Windows: ``~/.sessionauth/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/sessionauth/`` (default
    ``~/.local/share/sessionauth/``). On macOS/Windows: ``~/.sessionauth/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_path(cli_path: Optional[str] = None) -> Path:
    """Return the config file path.

    Precedence: the ``--config`` flag, then ``SESSIONAUTH_CONFIG``, then
    ``<config_dir>/config.json``.
    """
    if cli_path:
        return Path(cli_path).expanduser()
    env_path = os.environ.get("SESSIONAUTH_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. Permissions are
    restricted to the owner before any content is written. On any failure
    the temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        os.chmod(tmp_path, 0o600)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Config file ---


def load_config(path: Path) -> AppConfig:
    """Load the configuration file.

    Args:
        path: Location of the JSON config file.

    Returns:
        The deserialised :class:`~sessionauth.models.AppConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    if not path.is_file():
        return AppConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return AppConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: AppConfig, path: Path) -> None:
    """Rewrite the whole configuration file atomically.

    Args:
        config: The configuration to save.
        path: Destination file.

    Raises:
        ConfigWriteError: If the file cannot be written.
    """
    data = config.model_dump(mode="json")
    try:
        _atomic_write(path, json.dumps(data, indent=2) + "\n")
    except OSError as exc:
        raise ConfigWriteError(f"error saving config file: {exc}") from exc


# --- Profiles ---


def default_profile(profiles: dict[str, Profile]) -> tuple[Optional[str], Optional[Profile]]:
    """Return the name and value of the default profile.

    When several profiles are marked default, the first in sorted name order
    wins so the choice is stable across runs.

    Returns:
        ``(name, profile)``, or ``(None, None)`` if no profile is the default.
    """
    for name in sorted(profiles):
        if profiles[name].default:
            return name, profiles[name]
    return None, None


def edit_profile(
    name: str,
    profiles: dict[str, Profile],
    change: Callable[[Profile], None],
) -> tuple[dict[str, Profile], bool]:
    """Apply *change* to a copy of the named profile.

    The input mapping is not modified; the caller installs the returned
    mapping only when the edit succeeded.

    Returns:
        ``(updated_profiles, True)`` on success, or ``(profiles, False)``
        if the profile does not exist or the change leaves it invalid.
    """
    current = profiles.get(name)
    if current is None:
        return profiles, False
    edited = current.model_copy(deep=True)
    change(edited)
    try:
        edited = Profile.model_validate(edited.model_dump())
    except ValidationError:
        return profiles, False
    updated = dict(profiles)
    updated[name] = edited
    return updated, True


def set_default_profile(name: str, profiles: dict[str, Profile]) -> dict[str, Profile]:
    """Mark *name* as the only default profile.

    Raises:
        ConfigError: If the profile does not exist.
    """
    if name not in profiles:
        raise ConfigError(f"Profile '{name}' not found")
    updated: dict[str, Profile] = {}
    for key, profile in profiles.items():
        updated[key] = profile.model_copy(update={"default": key == name})
    return updated


# --- Precedence resolution ---


def _env_int(var: str) -> Optional[int]:
    value = os.environ.get(var)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Environment variable '{var}' must be an integer, got: {value}") from None


def resolve_provider(
    config: AppConfig,
    cli_auth_url: Optional[str] = None,
    cli_client_id: Optional[str] = None,
    cli_audience: Optional[str] = None,
    cli_port: Optional[int] = None,
) -> ProviderConfig:
    """Resolve the identity provider settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_auth_url``, ``cli_client_id``, ``cli_audience``,
           ``cli_port``)
        2. Environment variables (``SESSIONAUTH_AUTH_URL``,
           ``SESSIONAUTH_CLIENT_ID``, ``SESSIONAUTH_AUDIENCE``,
           ``SESSIONAUTH_CALLBACK_PORT``)
        3. The ``provider`` section of the config file
        4. Defaults

    Raises:
        ConfigError: If an environment value is malformed or the merged
            settings fail validation.
    """
    values: dict[str, object] = {}

    # 3. Config file
    for key, value in config.provider.model_dump(exclude_none=True).items():
        values[key] = value

    # 2. Environment
    env_values: dict[str, object] = {
        "auth_base_url": os.environ.get("SESSIONAUTH_AUTH_URL"),
        "client_id": os.environ.get("SESSIONAUTH_CLIENT_ID"),
        "audience": os.environ.get("SESSIONAUTH_AUDIENCE"),
        "callback_port": _env_int("SESSIONAUTH_CALLBACK_PORT"),
    }
    for key, value in env_values.items():
        if value:
            values[key] = value

    # 1. CLI flags
    cli_values: dict[str, object] = {
        "auth_base_url": cli_auth_url,
        "client_id": cli_client_id,
        "audience": cli_audience,
        "callback_port": cli_port,
    }
    for key, value in cli_values.items():
        if value is not None:
            values[key] = value

    try:
        return ProviderConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid identity provider settings: {exc}") from exc


def resolve_timeout(config: AppConfig, cli_timeout: Optional[int] = None) -> Optional[float]:
    """Resolve how long to wait for the browser login.

    Precedence: ``--timeout``, ``SESSIONAUTH_AUTH_TIMEOUT``, the config
    file's ``auth_timeout``. A value of ``0`` means wait forever.

    Returns:
        The timeout in seconds, or ``None`` to wait forever.
    """
    timeout: int = config.auth_timeout
    env_timeout = _env_int("SESSIONAUTH_AUTH_TIMEOUT")
    if env_timeout is not None:
        timeout = env_timeout
    if cli_timeout is not None:
        timeout = cli_timeout
    if timeout < 0:
        raise ConfigError(f"Timeout must not be negative, got: {timeout}")
    return float(timeout) if timeout else None
