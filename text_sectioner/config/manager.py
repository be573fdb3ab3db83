from __future__ import annotations

"""Configuration loading and access helpers.

Loads the YAML files packaged with *text_sectioner* and merges them with
user overrides, looked up in this order:

1. ``$SECTIONER_CONFIG_DIR/*.yml`` if the variable is set
2. On Windows: ``%LOCALAPPDATA%\\TextSectioner\\config\\*.yml``
3. On Unix: ``~/.text_sectioner/*.yml``

Overrides are shallow-merged per file: a top-level key in the user file
replaces the packaged one.
"""

import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager", "get_user_config_dir"]


def get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    explicit = os.environ.get("SECTIONER_CONFIG_DIR")
    if explicit:
        return Path(explicit)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "TextSectioner" / "config"
        return Path.home() / "AppData" / "Local" / "TextSectioner" / "config"
    return Path.home() / ".text_sectioner"


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance

    def reset(cls) -> None:
        """Forget the cached instance so the next call reloads from disk."""
        cls._instance = None


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "logging": "logging.yml",
        "editor": "editor.yml",
    }

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    def get_editor_config(self) -> Dict[str, Any]:
        return self._data.get("editor", {})

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        startup_summary = []
        user_config_dir = get_user_config_dir()

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}

            # 1. load packaged default
            try:
                text = pkg_resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")
                merged_cfg.update(yaml.safe_load(text) or {})
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
                status = "missing"
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                status = "invalid"

            # 2. load user overrides
            user_path = user_config_dir / filename
            if user_path.exists():
                try:
                    user_data = yaml.safe_load(user_path.read_text(encoding="utf-8")) or {}
                    if isinstance(user_data, dict):
                        merged_cfg.update(user_data)
                        if status == "loaded":
                            status = "loaded+overrides"
                    else:
                        logger.error("Ignoring user config %s: top level is not a mapping", user_path)
                except (OSError, yaml.YAMLError) as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))
