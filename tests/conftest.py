"""
Pytest configuration and fixtures
"""

import urllib.error
from unittest.mock import Mock

import pytest
import yaml

from dockwidgets.platforms.base import Platform
from dockwidgets.utils.errors import NoDataError

DOCK_APPS_OUTPUT = """(
        {
        GUID = 1001;
        "tile-data" =         {
            "file-label" = Safari;
        };
        "tile-type" = "file-tile";
    },
        {
        GUID = 1002;
        "tile-data" =         {
            "file-label" = Music;
        };
        "tile-type" = "file-tile";
    },
        {
        GUID = 1003;
        "tile-data" =         {
            "file-label" = Terminal;
        };
        "tile-type" = "file-tile";
    }
)"""

DOCK_OTHERS_OUTPUT = """(
        {
        GUID = 2001;
        "tile-data" =         {
            "file-label" = Downloads;
        };
        "tile-type" = "directory-tile";
    }
)"""


class FakePlatform(Platform):
    """Platform double answering from canned preferences and a script handler"""

    name = "fake"

    def __init__(self, preferences=None, script_handler=None):
        super().__init__(runner=Mock())
        self.preferences = dict(preferences or {})
        self.script_handler = script_handler
        self.preference_reads = []
        self.scripts = []

    def detect(self):
        return True

    def read_preference(self, domain, key):
        self.preference_reads.append((domain, key))
        value = self.preferences.get(key)
        if value is None:
            raise NoDataError(f"{domain} {key} is not set")
        if isinstance(value, Exception):
            raise value
        return value

    def run_script(self, script):
        self.scripts.append(script)
        if self.script_handler is None:
            raise NoDataError("no script handler")
        return self.script_handler(script)


@pytest.fixture
def sample_config():
    """Sample configuration for testing"""
    return {
        "screen": {"x": 0, "y": 0, "width": 1920, "height": 1080, "scale_factor": 1.0},
        "dock": {"interval": 1.0},
        "media": {"interval": 2.0, "sources": ["Music", "Spotify"]},
        "weather": {
            "interval": 600,
            "api_key": "test-key",
            "location": "Lisbon",
            "max_retries": 0,
            "retry_delay": 0,
        },
        "layout": {"widget_spacing": 140, "auto_recompute": False},
    }


@pytest.fixture
def config_file(tmp_path, sample_config):
    """Create a temporary config file"""
    config_path = tmp_path / "test_config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture
def dock_preferences():
    """Dock preferences: 3 apps, 1 other, 48pt tiles"""
    return {
        "tilesize": "48",
        "persistent-apps": DOCK_APPS_OUTPUT,
        "persistent-others": DOCK_OTHERS_OUTPUT,
    }


@pytest.fixture
def fake_platform(dock_preferences):
    """Platform double with dock preferences and no running players"""
    return FakePlatform(preferences=dock_preferences, script_handler=lambda script: "false")


@pytest.fixture
def make_platform():
    """Factory for custom platform doubles"""
    return FakePlatform


@pytest.fixture(autouse=True)
def no_external_calls(monkeypatch):
    """Prevent actual subprocess and network calls during testing"""
    monkeypatch.setattr(
        "subprocess.run", Mock(return_value=Mock(returncode=0, stdout="", stderr=""))
    )
    monkeypatch.setattr(
        "urllib.request.urlopen", Mock(side_effect=urllib.error.URLError("network disabled in tests"))
    )
