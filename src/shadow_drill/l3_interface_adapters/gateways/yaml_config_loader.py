"""Gateway: YAML configuration loader — layers built-in defaults, the config file and CLI overrides."""

from __future__ import annotations

import copy
import logging
from pathlib import Path

import yaml

from shadow_drill.l1_entities.config import AppConfig
from shadow_drill.l3_interface_adapters.gateways.paths import DEFAULT_CONFIG_PATHS

log = logging.getLogger('shd.config')


class YamlConfigLoader:
    """Builds a validated AppConfig; later layers win key by key, lists are replaced whole."""

    def __init__(self, defaults: dict) -> None:
        self._defaults = defaults

    def load(self, config_path: str | None = None, overrides: dict | None = None) -> AppConfig:
        path = find_config_file(config_path)
        file_data = read_config_file(path) if path is not None else {}
        return AppConfig.model_validate(merge_layers(self._defaults, file_data, overrides))


def find_config_file(config_path: str | None = None) -> Path | None:
    """Explicit path (must exist), else the first existing default location, else None."""
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f'Config file not found: {path}')
        return path
    return next((p for p in DEFAULT_CONFIG_PATHS if p.exists()), None)


def read_config_file(path: Path) -> dict:
    data = yaml.safe_load(path.read_text(encoding='utf-8')) or {}
    if not isinstance(data, dict):
        raise ValueError(f'{path}: expected a mapping at the top level, got {type(data).__name__}')
    log.info('Config loaded from %s', path)
    return data


def merge_layers(*layers: dict | None) -> dict:
    merged: dict = {}
    for layer in layers:
        if layer:
            deep_merge(merged, copy.deepcopy(layer))
    return merged


def deep_merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base
