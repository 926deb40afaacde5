from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, MutableMapping, Optional, Sequence

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from saltbox_cli.config.models import AppConfig, ConfigLoadRequest, MotdConfig
from saltbox_cli.errors import ConfigError

logger = logging.getLogger(__name__)


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping, got: {type(data).__name__}")
    return data


def _merge(base: MutableMapping[str, Any], override: MutableMapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _load_dotenv_if_present(dotenv_path: Path) -> None:
    if not dotenv_path.exists():
        return
    load_dotenv(dotenv_path=dotenv_path, override=False)


def _env_var_name_to_segments(env_var_name: str, prefix: str) -> Sequence[str]:
    remainder = env_var_name[len(prefix) :]
    parts = [p for p in remainder.split("__") if p]
    if not parts:
        raise ConfigError(f"Invalid environment variable override name: {env_var_name}")
    return [p.lower() for p in parts]


def _get_parent_mapping(config: MutableMapping[str, Any], path: Sequence[str]) -> MutableMapping[str, Any]:
    cur: MutableMapping[str, Any] = config
    for segment in path[:-1]:
        if segment not in cur:
            dotted = ".".join(path)
            raise ConfigError(f"Unknown configuration key path: {dotted}")
        next_value = cur[segment]
        if not isinstance(next_value, dict):
            dotted = ".".join(path)
            raise ConfigError(f"Configuration key path does not point to a mapping: {dotted}")
        cur = next_value
    return cur


def _apply_env_overrides(config: MutableMapping[str, Any], env_prefix: str) -> None:
    for name, value in os.environ.items():
        if not name.startswith(env_prefix):
            continue

        segments = _env_var_name_to_segments(name, env_prefix)
        parent = _get_parent_mapping(config, segments)
        leaf = segments[-1]
        dotted = ".".join(segments)

        if leaf not in parent:
            raise ConfigError(f"Unknown configuration key path: {dotted}")

        # Pydantic coerces the string during validation.
        parent[leaf] = value
        logger.debug("config.env_override key=%s", dotted)


class YamlConfigLoader:
    async def load(self, request: ConfigLoadRequest = ConfigLoadRequest()) -> AppConfig:
        """
        Build the effective AppConfig.

        Precedence, lowest first: model defaults, the settings YAML (optional),
        then environment variables named <prefix>SECTION__KEY. A .env file, when
        given and present, only fills variables not already set.
        """
        config: dict[str, Any] = AppConfig().model_dump()

        yaml_path = Path(request.yaml_path)
        if yaml_path.exists():
            config = _merge(config, _read_yaml_mapping(yaml_path))
        else:
            logger.debug("config.settings_missing path=%s", yaml_path)

        if request.dotenv_path is not None:
            _load_dotenv_if_present(Path(request.dotenv_path))

        _apply_env_overrides(config, request.env_prefix)
        try:
            return AppConfig.model_validate(config)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {yaml_path}: {e}") from e


def load_motd_config(path: str | Path) -> Optional[MotdConfig]:
    """
    Load the motd application endpoints.

    Returns None when the file does not exist so the report can simply omit
    the application sections.
    """
    config_path = Path(path)
    if not config_path.exists():
        logger.debug("motd.config_missing path=%s", config_path)
        return None
    data = _read_yaml_mapping(config_path)
    try:
        return MotdConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid motd configuration in {config_path}: {e}") from e
