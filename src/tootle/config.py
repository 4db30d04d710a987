"""Configuration management for tootle."""

import copy
import json
import logging

from .paths import config_dir, config_file, ensure_dir

log = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "playback": {
        "tempo": 120.0,
        "tuning": 440.0,
        "sample_rate": 48000,
        "fermata_factor": 2.0,  # Multiplier for the last event with --fermata
        "ramp_ms": 5.0,  # Fade in/out at every event boundary
    },
    "output": {
        "device": None,  # None = system default output
        "channels": None,  # None = up to 2, as the device allows
        "blocksize": 1024,  # Frames per audio callback
        "buffer_seconds": 0.5,  # Rendered audio held ahead of the device
    },
}


def get_config() -> dict:
    """Load configuration, creating default if needed."""
    ensure_dir(config_dir())
    cfg_file = config_file()

    if cfg_file.exists():
        try:
            with open(cfg_file) as f:
                config = json.load(f)
            # Merge with defaults for any missing keys
            merged = copy.deepcopy(DEFAULT_CONFIG)
            for key, value in config.items():
                if isinstance(value, dict) and key in merged:
                    merged[key] = {**merged[key], **value}
                else:
                    merged[key] = value
            return merged
        except (json.JSONDecodeError, IOError) as e:
            log.warning("ignoring unreadable config %s: %s", cfg_file, e)
            return copy.deepcopy(DEFAULT_CONFIG)
    else:
        save_config(DEFAULT_CONFIG)
        return copy.deepcopy(DEFAULT_CONFIG)


def save_config(config: dict) -> None:
    """Save configuration to file."""
    ensure_dir(config_dir())
    with open(config_file(), "w") as f:
        json.dump(config, f, indent=2)


def get_playback_config() -> dict:
    """Get defaults for tempo, tuning, sample rate, fermata and ramp."""
    config = get_config()
    return config.get("playback", {})


def get_output_config() -> dict:
    """Get audio output settings."""
    config = get_config()
    return config.get("output", {})
