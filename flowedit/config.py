"""
Configuration management for flowedit.

Handles persistent editor settings:
- Undo history depth
- Auto-arrange sizing
- The node created when a dropped connection has no resolver

Config is stored in flowedit.json next to the project root (see flowedit.paths).
Missing or unreadable files fall back to the defaults in flowedit.constants.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from flowedit import constants
from flowedit.layout import LayoutSizing
from flowedit.paths import get_config_path

logger = logging.getLogger(__name__)


def load_config(path: Optional[Path] = None) -> dict:
    """Load configuration from flowedit.json."""
    config_path = path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config {config_path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}
    return {}


def save_config(config: dict, path: Optional[Path] = None) -> None:
    """Save configuration to flowedit.json."""
    config_path = path or get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


@dataclass(frozen=True)
class EditorConfig:
    max_history_size: int = constants.DEFAULT_MAX_HISTORY_SIZE
    node_width: float = constants.NODE_WIDTH
    node_height: float = constants.NODE_HEIGHT
    horizontal_gap: float = constants.HORIZONTAL_GAP
    vertical_gap: float = constants.VERTICAL_GAP
    default_node_type: str = constants.DEFAULT_NODE_TYPE
    default_node_label: str = constants.DEFAULT_NODE_LABEL

    @property
    def sizing(self) -> LayoutSizing:
        return LayoutSizing(
            node_width=self.node_width,
            node_height=self.node_height,
            horizontal_gap=self.horizontal_gap,
            vertical_gap=self.vertical_gap,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorConfig":
        """Build a config from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        if 'max_history_size' in values:
            values['max_history_size'] = int(values['max_history_size'])
            if values['max_history_size'] < 1:
                raise ValueError("max_history_size must be at least 1")
        for key in ('node_width', 'node_height', 'horizontal_gap', 'vertical_gap'):
            if key in values:
                values[key] = float(values[key])
        return cls(**values)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "EditorConfig":
        """
        Load the editor config.

        Priority:
        1. Environment variable FLOWEDIT_MAX_HISTORY (history depth only)
        2. Stored in flowedit.json
        3. Built-in defaults
        """
        data = load_config(path)
        env_depth = os.environ.get("FLOWEDIT_MAX_HISTORY")
        if env_depth:
            data["max_history_size"] = env_depth
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
