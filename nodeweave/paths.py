"""
File locations for NodeWeave.

config.json and .env are looked up in the application directory: the
project root when running from source, the folder holding the executable
when frozen with PyInstaller. Neither file is bundled.
"""

import sys
from pathlib import Path

CONFIG_FILENAME = "config.json"
ENV_FILENAME = ".env"


def get_app_dir() -> Path:
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).resolve().parent.parent


def get_config_path() -> Path:
    """Path of the editor settings file (may not exist)."""
    return get_app_dir() / CONFIG_FILENAME


def get_env_path() -> Path:
    """Path of the optional .env file with NODEWEAVE_* overrides."""
    return get_app_dir() / ENV_FILENAME
