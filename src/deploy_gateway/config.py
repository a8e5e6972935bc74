"""Configuration resolution with XDG paths, atomic writes, and precedence rules.

This module turns flags, environment variables, a ``.env`` file, and the
user settings file into one :class:`~deploy_gateway.models.GatewayConfig`:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.deploy-gateway/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **User settings** -- a :class:`~deploy_gateway.models.UserSettings` JSON
  file holding non-secret defaults (server URL, timeout, TLS verification).
  Credentials are never written to disk.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables (optionally seeded from ``./.env``), user settings
  and defaults.
* **Credential resolution** -- :func:`resolve_credential` reads the token
  from an env var, a file, or an interactive prompt.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, ValidationError

from deploy_gateway.exceptions import ConfigError
from deploy_gateway.models import GatewayConfig, UserSettings

_APP_NAME = "deploy-gateway"
_CONFIG_FILENAME = "config.json"

TOKEN_ENV_VARS = ("DOD_ACCESS_TOKEN", "DEPLOY_TOKEN", "TEST_ACCESS_TOKEN")
"""Environment variables searched for the credential, highest priority first."""

SERVER_URL_ENV_VARS = ("DOD_SERVER_URL", "DEPLOY_SERVER_URL", "TEST_SERVER_URL")
"""Environment variables searched for the server URL, highest priority first."""

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/deploy-gateway/`` (default
    ``~/.config/deploy-gateway/``). On macOS/Windows: ``~/.deploy-gateway/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/deploy-gateway/`` (default
    ``~/.local/share/deploy-gateway/``). On macOS/Windows:
    ``~/.deploy-gateway/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
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
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- User settings ---


def _settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_user_settings() -> UserSettings:
    """Load non-secret defaults from the XDG config directory.

    Returns:
        The deserialised :class:`~deploy_gateway.models.UserSettings`, or a
        default (all ``None``) instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but is not valid JSON or fails
            validation.
    """
    path = _settings_path()
    if not path.is_file():
        return UserSettings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return UserSettings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings file at {path}: {exc}") from exc


def save_user_settings(settings: UserSettings) -> Path:
    """Persist *settings* atomically and return the file path."""
    path = _settings_path()
    data = settings.model_dump(mode="json", exclude_none=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Precedence resolution ---


def _first_env(env: Mapping[str, str], names: tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = env.get(name)
        if value:
            return value
    return None


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Environment variable '{name}' must be true or false, got '{value}'")


def resolve_config(
    cli_token: Optional[str] = None,
    cli_server_url: Optional[str] = None,
    cli_token_source: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    load_env_file: bool = True,
) -> GatewayConfig:
    """Resolve the effective configuration with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_token`` / ``cli_token_source``, ``cli_server_url``)
        2. Environment variables (``./.env`` is loaded first without
           overriding variables that are already set)
        3. User settings (``~/.config/deploy-gateway/config.json``)
        4. Defaults

    Args:
        cli_token: Credential passed on the command line.
        cli_server_url: Server URL passed on the command line.
        cli_token_source: A :func:`resolve_credential` source descriptor,
            used when ``cli_token`` is not given.
        env: Environment mapping; defaults to :data:`os.environ`.
        load_env_file: Whether to load ``./.env`` into the environment.

    Returns:
        The resolved :class:`~deploy_gateway.models.GatewayConfig`.

    Raises:
        ConfigError: If no server URL or no token can be found, or a value
            fails validation.
    """
    if env is None:
        if load_env_file:
            load_dotenv(Path.cwd() / ".env", override=False)
        env = os.environ

    settings = load_user_settings()

    token = cli_token
    if token is None and cli_token_source is not None:
        token = resolve_credential(cli_token_source, env=env)
    if token is None:
        token = _first_env(env, TOKEN_ENV_VARS)

    server_url = cli_server_url or _first_env(env, SERVER_URL_ENV_VARS) or settings.server_url

    if not server_url:
        raise ConfigError(
            "Server URL is required. Set DEPLOY_SERVER_URL or use --server-url."
        )
    if not token:
        raise ConfigError(
            "Access token is required. Set DEPLOY_TOKEN or use --token."
        )

    values: dict[str, Any] = {"server_url": server_url, "token": SecretStr(token)}

    if "USE_SIMPLE_TOKEN_AUTH" in env:
        values["use_token_exchange"] = _parse_bool(
            "USE_SIMPLE_TOKEN_AUTH", env["USE_SIMPLE_TOKEN_AUTH"]
        )
    elif settings.use_token_exchange is not None:
        values["use_token_exchange"] = settings.use_token_exchange

    exchange_url = env.get("DEPLOY_EXCHANGE_URL") or settings.exchange_url
    if exchange_url:
        values["exchange_url"] = exchange_url

    timeout = env.get("DEPLOY_TIMEOUT")
    if timeout:
        values["timeout"] = timeout
    elif settings.timeout is not None:
        values["timeout"] = settings.timeout

    if "DEPLOY_VERIFY_SSL" in env:
        values["verify_ssl"] = _parse_bool("DEPLOY_VERIFY_SSL", env["DEPLOY_VERIFY_SSL"])
    elif settings.verify_ssl is not None:
        values["verify_ssl"] = settings.verify_ssl

    try:
        return GatewayConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str, env: Optional[Mapping[str, str]] = None) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads the environment variable
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if env is None:
        env = os.environ

    if source.startswith("env:"):
        var_name = source[4:]
        value = env.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Access token: ")

    raise ConfigError(f"Unknown credential source format: {source}")
