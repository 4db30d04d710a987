#!/usr/bin/env python3
"""Unit tests for config.py functions."""

import json
import os
from unittest.mock import patch

import pytest

from tootle.config import (
    DEFAULT_CONFIG,
    get_config,
    get_output_config,
    get_playback_config,
    save_config,
)


@pytest.fixture
def tootle_dir(tmp_path):
    """Point TOOTLE_DIR at a temporary directory."""
    with patch.dict(os.environ, {"TOOTLE_DIR": str(tmp_path)}):
        yield tmp_path


class TestGetConfig:
    """Tests for get_config function."""

    def test_get_config_returns_defaults(self, tootle_dir):
        """Test a fresh directory yields the defaults."""
        assert get_config() == DEFAULT_CONFIG

    def test_get_config_creates_file(self, tootle_dir):
        """Test the default config is written on first use."""
        get_config()
        config_file = tootle_dir / "config" / "config.json"
        assert config_file.exists()
        with open(config_file) as f:
            assert json.load(f) == DEFAULT_CONFIG

    def test_get_config_merges_with_defaults(self, tootle_dir):
        """Test partial sections are merged with defaults."""
        save_config({"playback": {"tempo": 90}})
        config = get_config()
        assert config["playback"]["tempo"] == 90
        assert config["playback"]["tuning"] == 440.0
        assert config["output"] == DEFAULT_CONFIG["output"]

    def test_get_config_corrupt_file(self, tootle_dir):
        """Test an unreadable file falls back to defaults."""
        config_file = tootle_dir / "config" / "config.json"
        config_file.parent.mkdir(parents=True)
        config_file.write_text("{not json")
        assert get_config() == DEFAULT_CONFIG

    def test_get_config_does_not_share_defaults(self, tootle_dir):
        """Test mutating a returned config leaves the defaults alone."""
        config = get_config()
        config["playback"]["tempo"] = 1
        assert DEFAULT_CONFIG["playback"]["tempo"] == 120.0


class TestSaveConfig:
    """Tests for save_config function."""

    def test_save_config_creates_valid_json(self, tootle_dir):
        """Test that save_config creates valid JSON."""
        save_config({"test": "value"})
        with open(tootle_dir / "config" / "config.json") as f:
            assert json.load(f) == {"test": "value"}


class TestSectionGetters:
    """Tests for section getters."""

    def test_get_playback_config(self, tootle_dir):
        """Test playback section is returned."""
        save_config({"playback": {"fermata_factor": 3.0}})
        playback = get_playback_config()
        assert playback["fermata_factor"] == 3.0
        assert playback["ramp_ms"] == 5.0

    def test_get_output_config(self, tootle_dir):
        """Test output section is returned."""
        save_config({"output": {"device": "Headphones"}})
        output = get_output_config()
        assert output["device"] == "Headphones"
        assert output["blocksize"] == 1024
