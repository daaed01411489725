"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. Explicit overrides (CLI-style dict)
2. Environment variables (DEPSTORE_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from depstore.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


@dataclass(frozen=True)
class LoggingPolicy:
    """Resolved, immutable logging policy.

    Resolver-level only; applied by depstore.core.logging.apply_logging_policy.
    """

    level_name: str  # quiet | normal | verbose | debug
    emit_info: bool
    emit_verbose: bool
    emit_debug: bool
    source: ConfigSource


def _flatten_keys(data: dict[str, Any], prefix: str = "") -> set[str]:
    keys: set[str] = set()
    for key, value in data.items():
        key_path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            keys.update(_flatten_keys(value, key_path))
        else:
            keys.add(key_path)
    return keys


class ConfigResolver:
    """Resolve configuration with strict 4-level priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'store': {'dir': '/srv/deps'}},
            user_config_path=Path('~/.config/depstore/config.yaml')
        )

        store_dir, source = resolver.resolve('store.dir')
        # store_dir = '/srv/deps', source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Explicit overrides (highest priority)
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/depstore/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/depstore/config.yaml")
        self.defaults = self._default_config() if defaults is None else defaults

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'store.dir')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._from_cli(key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._from_user_config(key)
        if value is not None:
            return value, "user_config"

        value = self._from_system_config(key)
        if value is not None:
            return value, "system_config"

        value = self._from_defaults(key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_optional(self, key: str) -> Any | None:
        """Resolve a key, returning None when no source provides it."""
        try:
            value, _src = self.resolve(key)
        except ConfigError:
            return None
        return value

    def resolve_bool(self, key: str, default: bool) -> bool:
        """Resolve a boolean key.

        Environment values arrive as strings and are normalized here.

        Raises:
            ConfigError: If the value cannot be read as a bool.
        """
        value = self.resolve_optional(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        s = str(value).strip().lower()
        if s in _TRUE_VALUES:
            return True
        if s in _FALSE_VALUES:
            return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r}")

    def resolve_int(self, key: str, default: int) -> int:
        """Resolve a positive integer key.

        Raises:
            ConfigError: If the value is not a positive integer.
        """
        value = self.resolve_optional(key)
        if value is None:
            return default
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be an int")
        if isinstance(value, str):
            if not value.strip().isdigit():
                raise ConfigError(f"Config key '{key}' must be an int, got {value!r}")
            value = int(value.strip())
        if not isinstance(value, int) or value <= 0:
            raise ConfigError(f"Config key '{key}' must be a positive int, got {value!r}")
        return value

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Allowed values (after normalization):
            quiet | normal | verbose | debug

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        level, _src = self._resolve_logging_level_and_source()
        return level

    def resolve_logging_policy(self) -> LoggingPolicy:
        """Resolve canonical logging policy (side-effect free)."""
        level_name, src = self._resolve_logging_level_and_source()
        return LoggingPolicy(
            level_name=level_name,
            emit_info=level_name != "quiet",
            emit_verbose=level_name in ("verbose", "debug"),
            emit_debug=level_name == "debug",
            source=src,
        )

    def _resolve_logging_level_and_source(self) -> tuple[str, ConfigSource]:
        key = "logging.level"
        try:
            value, source = self.resolve(key)
        except ConfigError:
            default = ConfigSource(value=DEFAULT_LOGGING_LEVEL, source="default")
            return DEFAULT_LOGGING_LEVEL, default

        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")

        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")

        return norm, ConfigSource(value=norm, source=source)

    def resolve_all(self) -> dict[str, ConfigSource]:
        """Resolve every key present in defaults, overrides or config files.

        Returns:
            Dict of key -> ConfigSource, sorted by key
        """
        all_keys: set[str] = set()
        all_keys.update(_flatten_keys(self.defaults))
        all_keys.update(_flatten_keys(self.cli_args))
        all_keys.update(_flatten_keys(self._get_user_config()))
        all_keys.update(_flatten_keys(self._get_system_config()))

        result: dict[str, ConfigSource] = {}
        for key in sorted(all_keys):
            try:
                value, source = self.resolve(key)
            except ConfigError:
                continue
            result[key] = ConfigSource(value=value, source=source)
        return result

    def _from_cli(self, key: str) -> Any | None:
        value = self.cli_args.get(key)
        if value is not None:
            return value
        return self._get_nested(self.cli_args, key)

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: DEPSTORE_KEY_NAME
        Example: DEPSTORE_STORE_DIR, DEPSTORE_LOGGING_LEVEL
        """
        env_key = f"DEPSTORE_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _from_user_config(self, key: str) -> Any | None:
        return self._get_nested(self._get_user_config(), key)

    def _from_system_config(self, key: str) -> Any | None:
        return self._get_nested(self._get_system_config(), key)

    def _from_defaults(self, key: str) -> Any | None:
        return self._get_nested(self.defaults, key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'store': {'dir': '/srv/deps'}}
            _get_nested(data, 'store.dir') -> '/srv/deps'
        """
        current: Any = data

        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            "store": {
                "dir": str(Path.home() / ".depstore" / "store"),
                # None -> workspaces are created inside store.dir
                "workspace_dir": None,
                "hash_chunk_size": 1024 * 1024,
            },
            "archives": {
                "strip_single_root": True,
            },
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
                "color": True,
            },
            "diagnostics": {
                "enabled": False,
                "path": str(Path.home() / ".depstore" / "diagnostics.jsonl"),
            },
        }
