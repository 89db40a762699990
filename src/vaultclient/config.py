"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for the ``vaultclient`` CLI:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.vaultclient/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_data_dir`, :func:`get_profiles_dir`.
* **Global config** -- A single :class:`~vaultclient.models.GlobalConfig`
  JSON file storing the default profile and output format.
* **Profiles** -- One JSON file per vault, each deserialised into a
  :class:`~vaultclient.models.VaultProfile`.
* **Precedence resolution** -- :func:`resolve_profile` picks the active
  profile from the CLI flag, ``VAULTCLIENT_PROFILE``, the global default,
  or the only saved profile.
* **Credential resolution** -- :func:`resolve_credential` reads identity
  values from env vars, files, or interactive prompts, and
  :func:`build_client_config` turns a profile into a
  :class:`~vaultclient.models.ClientConfig`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from vaultclient.exceptions import ConfigError
from vaultclient.models import ClientConfig, GlobalConfig, VaultProfile

_APP_NAME = "vaultclient"
_CONFIG_FILENAME = "config.json"
PROFILE_ENV_VAR = "VAULTCLIENT_PROFILE"


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/vaultclient/`` (default ``~/.config/vaultclient/``).
    On macOS/Windows: ``~/.vaultclient/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/vaultclient/`` (default ``~/.local/share/vaultclient/``).
    On macOS/Windows: ``~/.vaultclient/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    """Return the profiles directory (``<config_dir>/profiles/``), creating it if necessary."""
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
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


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration, or defaults when the file is absent.

    Raises:
        ConfigError: If the file exists but is invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return all saved profile names, sorted alphabetically."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> VaultProfile:
    """Load and validate a profile from disk.

    Raises:
        ConfigError: If the profile does not exist, contains invalid JSON,
            or fails validation.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    try:
        return VaultProfile.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: VaultProfile) -> None:
    """Persist a profile atomically; the file name comes from ``profile.name``."""
    data = profile.model_dump(mode="json")
    _atomic_write(_profile_path(profile.name), json.dumps(data, indent=2) + "\n")


def delete_profile(name: str) -> None:
    """Delete a profile's JSON file.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


# --- Precedence resolution ---


def resolve_profile(cli_profile: Optional[str] = None) -> VaultProfile:
    """Resolve the active profile.

    Precedence (high to low):
        1. ``--profile`` CLI flag
        2. ``VAULTCLIENT_PROFILE`` environment variable
        3. ``default_profile`` in the global config
        4. The only saved profile, if exactly one exists

    Raises:
        ConfigError: If no profile can be determined or it cannot be loaded.
    """
    name = cli_profile or os.environ.get(PROFILE_ENV_VAR) or load_global_config().default_profile
    if name is None:
        profiles = list_profiles()
        if len(profiles) == 1:
            name = profiles[0]
        elif not profiles:
            raise ConfigError("No profiles configured. Run 'vaultclient profile add' first.")
        else:
            raise ConfigError(
                "Several profiles exist; pick one with --profile, "
                f"{PROFILE_ENV_VAR}, or 'vaultclient profile use'."
            )
    return load_profile(name)


# --- Credential source resolution ---


def resolve_credential(
    source: str, allow_literal: bool = False, label: str = "client secret"
) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)

    Args:
        source: The source descriptor string.
        allow_literal: Return *source* itself when it matches no known
            prefix. Used for non-secret values such as the client id.
        label: Name of the value, shown in the interactive prompt.

    Raises:
        ConfigError: If the source cannot be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
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
        return getpass.getpass(f"Enter {label}: ")

    if allow_literal:
        return source
    raise ConfigError(f"Unknown credential source format: {source}")


def build_client_config(profile: VaultProfile) -> ClientConfig:
    """Resolve a profile's credential sources into a :class:`ClientConfig`."""
    return ClientConfig(
        client_id=resolve_credential(
            profile.client_id_source, allow_literal=True, label="client id"
        ),
        client_secret=resolve_credential(profile.client_secret_source),
        tenant_id=profile.tenant_id,
        vault_name=profile.vault_name,
        endpoint_suffix=profile.endpoint_suffix,
        endpoint=profile.endpoint,
        authority_host=profile.authority_host,
        timeout=profile.timeout,
    )
