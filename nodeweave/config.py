"""
Configuration management for NodeWeave.

Settings are resolved in three layers, later ones winning:
1. Defaults on EditorSettings
2. Keys stored in config.json (see paths.get_config_path)
3. NODEWEAVE_<FIELD> environment variables (app.py loads .env first)

Invalid values in either layer are skipped with a warning; a broken config
never stops the editor from starting.
"""

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from nodeweave.paths import get_config_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "NODEWEAVE_"


@dataclass(frozen=True)
class EditorSettings:
    canvas_width: int = 1200
    canvas_height: int = 800
    tick_interval: float = 0.03
    proximity_threshold: float = 110.0
    link_distance: float = 150.0
    charge_strength: float = -500.0
    collision_radius: float = 60.0
    center_strength: float = 0.1
    boundary_margin: float = 40.0
    max_iterations: int = 600
    log_level: str = "INFO"


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = config_path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config {config_path}: {e}")
            return {}
        if isinstance(data, dict):
            return data
        logger.warning(f"Ignoring config {config_path}: top level is not an object")
    return {}


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = config_path or get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def _coerce(value: Any, target_type: type) -> Any:
    if target_type is bool:
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if target_type is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected an integer, got {value}")
    if target_type in (int, float) and isinstance(value, str):
        value = float(value)
        if target_type is int:
            if not value.is_integer():
                raise ValueError(f"expected an integer, got {value}")
            return int(value)
        return value
    return target_type(value)


def _apply_overrides(settings: EditorSettings, overrides: Dict[str, Any], source: str) -> EditorSettings:
    types = {f.name: type(getattr(settings, f.name)) for f in fields(settings)}
    changes = {}
    for key, raw in overrides.items():
        if key not in types:
            continue
        try:
            changes[key] = _coerce(raw, types[key])
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring {source} value for {key}: {e}")
    return replace(settings, **changes)


def get_settings(config_path: Optional[Path] = None,
                 environ: Optional[Dict[str, str]] = None) -> EditorSettings:
    """
    Resolve EditorSettings from defaults, config.json and the environment.

    Environment variables are matched case-insensitively after the
    NODEWEAVE_ prefix, e.g. NODEWEAVE_CANVAS_WIDTH=1600.
    """
    environ = os.environ if environ is None else environ
    settings = _apply_overrides(EditorSettings(), load_config(config_path), "config.json")

    env_overrides = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in environ.items()
        if key.startswith(ENV_PREFIX)
    }
    return _apply_overrides(settings, env_overrides, "environment")
