"""Path management for tootle using platform conventions.

Functions (not constants) so TOOTLE_DIR is checked at call time.
When TOOTLE_DIR is set, the config directory lives under it.
Otherwise, platformdirs determines the OS-appropriate location.
"""

import os
from pathlib import Path

from platformdirs import user_config_dir

_APP_NAME = "tootle"


def _override_root() -> Path | None:
    """Return the TOOTLE_DIR override path, or None."""
    val = os.environ.get("TOOTLE_DIR")
    return Path(val) if val else None


def config_dir() -> Path:
    """Config directory (config.json)."""
    root = _override_root()
    if root:
        return root / "config"
    return Path(user_config_dir(_APP_NAME))


def config_file() -> Path:
    return config_dir() / "config.json"


def ensure_dir(path: Path) -> Path:
    """Create *path* (and parents) if missing, then return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path
