"""Configuration files (YAML) and helpers.

`ConfigManager` reads the default files from this folder and merges them with
user overrides.
"""

from .manager import ConfigManager, get_user_config_dir

__all__ = [
    "ConfigManager",
    "get_user_config_dir",
]
