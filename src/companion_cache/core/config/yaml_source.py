"""YAML settings source layering base files and per-environment overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic_settings import PydanticBaseSettingsSource


if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


CONFIG_DIR_ENV_VAR = "COMPANION_CACHE_CONFIG_DIR"
YAML_SUFFIXES = ("*.yaml", "*.yml")


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``.

    Nested mappings are merged key by key; any other value in ``override``
    replaces the value in ``base``.

    Args:
        base: Mapping providing default values.
        override: Mapping whose values win on conflict.

    Returns:
        New merged mapping. Neither input is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_yaml_directory(directory: Path) -> dict[str, Any]:
    """Load and merge every YAML file in ``directory`` in name order.

    Args:
        directory: Directory to scan. A missing directory yields ``{}``.

    Returns:
        Merged contents of all YAML files found.
    """
    if not directory.is_dir():
        return {}

    files = sorted(
        {path for pattern in YAML_SUFFIXES for path in directory.glob(pattern)}
    )
    merged: dict[str, Any] = {}
    for yaml_file in files:
        with yaml_file.open(encoding="utf-8") as f:
            merged = deep_merge(merged, yaml.safe_load(f) or {})
    return merged


class MultiYamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source reading ``config/base`` then ``config/environments/{APP_ENV}``.

    The config directory defaults to ``<project root>/config`` and can be
    redirected with the ``COMPANION_CACHE_CONFIG_DIR`` environment variable,
    which is how embedding applications ship their own YAML.
    """

    def __init__(self, settings_cls: type[Any]) -> None:
        super().__init__(settings_cls)
        self._config_dir = self._find_config_dir()
        self._app_env = os.getenv("APP_ENV", "development")
        self._yaml_data = self._load()

    @staticmethod
    def _find_config_dir() -> Path:
        override = os.getenv(CONFIG_DIR_ENV_VAR)
        if override:
            return Path(override)
        # src/companion_cache/core/config/yaml_source.py -> project root
        return Path(__file__).resolve().parents[4] / "config"

    def _load(self) -> dict[str, Any]:
        base = load_yaml_directory(self._config_dir / "base")
        env = load_yaml_directory(self._config_dir / "environments" / self._app_env)
        return deep_merge(base, env)

    def get_field_value(
        self,
        _field: FieldInfo,
        field_name: str,
    ) -> tuple[Any, str, bool]:
        """Return the YAML value for one top-level settings field."""
        value = self._yaml_data.get(field_name)
        return value, field_name, isinstance(value, (dict, list))

    def __call__(self) -> dict[str, Any]:
        return self._yaml_data
