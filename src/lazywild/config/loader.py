"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (LAZYWILD__SECTION__KEY)
3. User config (<root>/.lazywild/config.yaml) - minimal user-facing options
4. Global config (~/.config/lazywild/config.yaml) - full nested sections
5. Built-in defaults (lowest priority)

User-facing config (config.yaml) only contains:
- datadump_enabled / datadump_folder / wildcard_dir
- large_file_threshold_mb
- log_level
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from lazywild.config.constants import CACHE_DIR_NAME, CONFIG_FILE_NAME, DATA_DIR_NAME
from lazywild.config.models import (
    DatadumpConfig,
    IndexConfig,
    LazyWildConfig,
    LoggingConfig,
    SamplingConfig,
)
from lazywild.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/lazywild/config.yaml").expanduser()


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "expected a mapping of settings")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source (thread-safe)."""

    class LazyWildSettings(BaseSettings):
        """Root config. Env vars: LAZYWILD__LOGGING__LEVEL, LAZYWILD__DATADUMP__FOLDER, etc."""

        model_config = SettingsConfigDict(
            env_prefix="LAZYWILD__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        datadump: DatadumpConfig = DatadumpConfig()
        index: IndexConfig = IndexConfig()
        sampling: SamplingConfig = SamplingConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return LazyWildSettings


LazyWildSettings = _make_settings_class({})


# Flat user-file keys and where they land in the nested sections
_USER_KEYS: dict[str, tuple[str, str]] = {
    "datadump_enabled": ("datadump", "enabled"),
    "datadump_folder": ("datadump", "folder"),
    "wildcard_dir": ("datadump", "wildcard_dir"),
    "large_file_threshold_mb": ("datadump", "large_file_threshold_mb"),
    "log_level": ("logging", "level"),
}
_BLANK_MEANS_UNSET = frozenset({"datadump_folder", "wildcard_dir"})


def _user_config_to_yaml(path: Path) -> dict[str, Any]:
    """Map the flat user file onto the nested internal sections.

    Only keys actually present in the user file are mapped, so that global
    YAML values are not masked by user-config defaults. Values are passed on
    as written and validated with the rest of the settings.
    """
    data = _load_yaml(path)
    result: dict[str, Any] = {}
    for key, (section, name) in _USER_KEYS.items():
        if key not in data:
            continue
        value = data[key]
        if key in _BLANK_MEANS_UNSET and not value:
            continue
        result.setdefault(section, {})[name] = value
    return result


def user_config_path(root: Path) -> Path:
    return root / DATA_DIR_NAME / CONFIG_FILE_NAME


def load_config(root: Path | None = None, **kwargs: Any) -> LazyWildConfig:
    """Load config: defaults < global yaml < user config < env vars < kwargs.

    Args:
        root: Directory holding the .lazywild/ folder.
              Defaults to current working directory.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    root = root or Path.cwd()
    path = user_config_path(root)

    yaml_config = _user_config_to_yaml(path)

    global_config = _load_yaml(GLOBAL_CONFIG_PATH)
    if global_config:
        yaml_config = _deep_merge(global_config, yaml_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        raise ConfigError.from_validation(e) from e
    return LazyWildConfig.model_validate(settings.model_dump())


def get_cache_dir(config: LazyWildConfig, root: Path | None = None) -> Path:
    """Cache directory for index blobs, respecting config.index.cache_dir."""
    if config.index.cache_dir:
        return Path(config.index.cache_dir).expanduser()
    root = root or Path.cwd()
    return root / DATA_DIR_NAME / CACHE_DIR_NAME
