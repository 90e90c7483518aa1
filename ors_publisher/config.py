"""Configuration for the ORS publisher.

Settings are resolved with the following precedence (highest to lowest):
1. CLI argument / value passed by the host tool
2. Environment variable (ORS_<KEY>)
3. Project config file (.ors/config.yaml)
4. Built-in default

Usage:
    from ors_publisher.config import load_publisher_config, set_setting

    # Build a validated-on-demand PublisherConfig for a project
    config = load_publisher_config(Path("."), channel="beta")

    # Persist a project-level setting
    set_setting(Path("."), "base_url", "https://releases.example.com")

The host tool spelling of keys (baseUrl, chunkSizeInMb, changeLog,
maxConcurrentUploads) is accepted in the config file and normalized.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ors_publisher.errors import (
    ConfigParseError,
    InvalidChannelError,
    InvalidChunkSizeError,
    InvalidConcurrencyError,
    MissingCredentialsError,
)
from ors_publisher.models.release import ReleaseChannel

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = ".ors"
CONFIG_FILENAME = "config.yaml"

DEFAULT_CHUNK_SIZE_MB: float = 10
DEFAULT_CHANGE_LOG = "Electron Forge Release"
DEFAULT_TRANSPORT_RETRIES = 2

KNOWN_SETTINGS: frozenset[str] = frozenset(
    {
        "base_url",
        "username",
        "password",
        "channel",
        "chunk_size_in_mb",
        "change_log",
        "max_concurrent_uploads",
        "transport_retries",
    }
)

# Settings never echoed back in listings
SECRET_SETTINGS: frozenset[str] = frozenset({"password"})

KEY_ALIASES: dict[str, str] = {
    "baseUrl": "base_url",
    "chunkSizeInMb": "chunk_size_in_mb",
    "changeLog": "change_log",
    "maxConcurrentUploads": "max_concurrent_uploads",
    "transportRetries": "transport_retries",
}


@dataclass(frozen=True)
class PublisherConfig:
    """Options recognized by the ORS publisher.

    Attributes:
        base_url: Release server root; the API lives under {base_url}/api.
        username: Login user name.
        password: Login password.
        channel: Explicit channel, overriding the one derived from the version.
        chunk_size_in_mb: Upload chunk size in MiB.
        change_log: Change log sent when a release record is created.
        max_concurrent_uploads: Worker cap per make-result; None runs every
            artifact at once.
        transport_retries: Connection retries applied by the HTTP transport.
    """

    base_url: str = ""
    username: str = ""
    password: str = ""
    channel: ReleaseChannel | None = None
    chunk_size_in_mb: float = DEFAULT_CHUNK_SIZE_MB
    change_log: str = DEFAULT_CHANGE_LOG
    max_concurrent_uploads: int | None = None
    transport_retries: int = DEFAULT_TRANSPORT_RETRIES

    def __post_init__(self) -> None:
        """Check the non-credential options; credentials are checked by validate().

        A channel given as a string is normalized to a ReleaseChannel.
        """
        if self.channel is not None:
            object.__setattr__(self, "channel", _coerce_channel(self.channel))
        if isinstance(self.chunk_size_in_mb, bool) or not isinstance(
            self.chunk_size_in_mb, (int, float)
        ):
            raise InvalidChunkSizeError(self.chunk_size_in_mb)
        if not math.isfinite(self.chunk_size_in_mb):
            raise InvalidChunkSizeError(self.chunk_size_in_mb)
        if self.chunk_size_in_mb <= 0 or self.chunk_size_bytes <= 0:
            raise InvalidChunkSizeError(self.chunk_size_in_mb)
        if self.max_concurrent_uploads is not None and (
            isinstance(self.max_concurrent_uploads, bool)
            or not isinstance(self.max_concurrent_uploads, int)
            or self.max_concurrent_uploads < 1
        ):
            raise InvalidConcurrencyError(self.max_concurrent_uploads)

    @property
    def chunk_size_bytes(self) -> int:
        return int(self.chunk_size_in_mb * 1024 * 1024)

    @property
    def api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api"

    def missing_credentials(self) -> list[str]:
        """Names of required options that are empty."""
        return [
            key
            for key, value in (
                ("base_url", self.base_url),
                ("username", self.username),
                ("password", self.password),
            )
            if not value or not str(value).strip()
        ]

    def validate(self) -> None:
        """Raise if base_url, username or password is missing.

        Raises:
            MissingCredentialsError: Listing every missing option.
        """
        missing = self.missing_credentials()
        if missing:
            raise MissingCredentialsError(missing)


def get_config_path(project_path: Path) -> Path:
    """Path to .ors/config.yaml under a project root."""
    return project_path / CONFIG_DIRNAME / CONFIG_FILENAME


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {KEY_ALIASES.get(key, key): value for key, value in data.items()}


def load_config(project_path: Path) -> dict[str, Any]:
    """Load the project config file.

    Returns:
        Config dictionary with normalized keys; empty if the file is missing.

    Raises:
        ConfigParseError: If the file is not valid YAML or not a mapping.
    """
    config_file = get_config_path(project_path)

    if not config_file.exists():
        return {}

    content = config_file.read_text(encoding="utf-8")
    if not content.strip():
        return {}

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigParseError(str(config_file), str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(str(config_file), "top-level value must be a mapping")
    return _normalize_keys(data)


def save_config(project_path: Path, config: dict[str, Any]) -> None:
    """Write the project config file, creating .ors/ if needed."""
    config_dir = project_path / CONFIG_DIRNAME
    config_dir.mkdir(parents=True, exist_ok=True)

    content = yaml.safe_dump(config, default_flow_style=False, sort_keys=False)
    (config_dir / CONFIG_FILENAME).write_text(content, encoding="utf-8")


def _get_env_var_name(key: str) -> str:
    """Setting key to environment variable name (base_url -> ORS_BASE_URL)."""
    return f"ORS_{key.upper()}"


def get_setting(
    key: str,
    cli_value: Any | None = None,
    project_path: Path | None = None,
) -> Any | None:
    """Resolve a setting with full precedence.

    Args:
        key: Setting key (e.g. "base_url"); host-tool aliases are accepted.
        cli_value: Value passed explicitly (highest precedence).
        project_path: Project root holding .ors/config.yaml.

    Returns:
        Resolved value, or None if not set at any level.
    """
    key = KEY_ALIASES.get(key, key)

    if cli_value is not None:
        return cli_value

    env_value = os.environ.get(_get_env_var_name(key))
    if env_value is not None:
        return env_value

    if project_path is None:
        return None

    return load_config(project_path).get(key)


def set_setting(project_path: Path, key: str, value: Any) -> None:
    """Persist a project-level setting."""
    config = load_config(project_path)
    config[KEY_ALIASES.get(key, key)] = value
    save_config(project_path, config)


def unset_setting(project_path: Path, key: str) -> bool:
    """Remove a project-level setting.

    Returns:
        True if the key existed and was removed, False otherwise.
    """
    key = KEY_ALIASES.get(key, key)
    config = load_config(project_path)
    if key not in config:
        return False
    del config[key]
    save_config(project_path, config)
    return True


def _get_setting_source(key: str, project_path: Path | None) -> str:
    if _get_env_var_name(key) in os.environ:
        return "env"
    if project_path is not None and key in load_config(project_path):
        return "project"
    return "default"


def list_settings(project_path: Path | None = None) -> dict[str, dict[str, Any]]:
    """List resolved settings with their sources.

    Secret settings are masked as "********" when set.

    Returns:
        Dict mapping setting keys to {"value": ..., "source": ...}
    """
    config = load_config(project_path) if project_path else {}
    all_keys = set(config.keys()) | set(KNOWN_SETTINGS)

    result: dict[str, dict[str, Any]] = {}
    for key in sorted(all_keys):
        value = get_setting(key, project_path=project_path)
        source = _get_setting_source(key, project_path)
        if value is None and source == "default":
            continue
        if key in SECRET_SETTINGS:
            value = "********"
        result[key] = {"value": value, "source": source}
    return result


def _coerce_channel(value: Any) -> ReleaseChannel | None:
    if value is None or value == "":
        return None
    try:
        return ReleaseChannel.parse(value)
    except (ValueError, AttributeError) as e:
        raise InvalidChannelError(str(value)) from e


def _coerce_chunk_size(value: Any) -> float:
    if value is None:
        return DEFAULT_CHUNK_SIZE_MB
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidChunkSizeError(value) from e


def _coerce_optional_int(key: str, value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigParseError(key, f"expected an integer, got {value!r}") from e


def load_publisher_config(project_path: Path | None = None, **cli_values: Any) -> PublisherConfig:
    """Resolve every known setting and build a PublisherConfig.

    Credentials are not checked here; call PublisherConfig.validate() (the
    publisher does) before any network call.

    Args:
        project_path: Project root holding .ors/config.yaml, if any.
        **cli_values: Explicit values (None means "not given").

    Raises:
        InvalidChannelError: If the resolved channel is unknown.
        InvalidChunkSizeError: If the resolved chunk size is not positive.
    """
    unknown = set(cli_values) - KNOWN_SETTINGS
    if unknown:
        raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")

    def resolve(key: str) -> Any | None:
        return get_setting(key, cli_value=cli_values.get(key), project_path=project_path)

    retries = _coerce_optional_int("transport_retries", resolve("transport_retries"))
    config = PublisherConfig(
        base_url=str(resolve("base_url") or ""),
        username=str(resolve("username") or ""),
        password=str(resolve("password") or ""),
        channel=_coerce_channel(resolve("channel")),
        chunk_size_in_mb=_coerce_chunk_size(resolve("chunk_size_in_mb")),
        change_log=str(resolve("change_log") or DEFAULT_CHANGE_LOG),
        max_concurrent_uploads=_coerce_optional_int(
            "max_concurrent_uploads", resolve("max_concurrent_uploads")
        ),
        transport_retries=DEFAULT_TRANSPORT_RETRIES if retries is None else retries,
    )
    logger.debug(
        "Resolved publisher config: base_url=%s channel=%s chunk_size_in_mb=%s",
        config.base_url,
        config.channel.value if config.channel else None,
        config.chunk_size_in_mb,
    )
    return config
