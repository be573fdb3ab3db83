"""Test configuration and fixtures for Text Sectioner tests.

Shared fixtures live here so every test module builds forests and isolates
configuration the same way.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from text_sectioner.config import ConfigManager
from text_sectioner.core.models import SectionNode

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user config lookups at an empty temp dir and reset the singleton."""
    config_dir = tmp_path / "user_config"
    config_dir.mkdir()
    monkeypatch.setenv("SECTIONER_CONFIG_DIR", str(config_dir))
    ConfigManager.reset()
    yield config_dir
    ConfigManager.reset()


@pytest.fixture
def node():
    """Factory for detached nodes: ``node("text", child, "more", label="L")``."""
    def factory(*content, label=""):
        return SectionNode(label=label, content=list(content))
    return factory
