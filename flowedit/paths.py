"""
Path utilities for flowedit.

Handles path resolution for both development mode and frozen (PyInstaller) hosts.
- In development: paths are relative to the project root
- When frozen: paths are relative to the executable location

The FLOWEDIT_CONFIG environment variable points at an explicit config file
and wins over both.
"""

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "flowedit.json"


def get_app_dir() -> Path:
    """
    Get the application directory.

    - In development: the project root (parent of flowedit/)
    - When frozen: the directory containing the executable
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent.parent


def get_config_path() -> Path:
    """Get the path to the editor config file."""
    override = os.environ.get("FLOWEDIT_CONFIG")
    if override:
        return Path(override)
    return get_app_dir() / CONFIG_FILENAME
