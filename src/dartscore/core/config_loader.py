"""
Configuration loader with validation and defaults.
"""
import copy
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from .io_utils import atomic_write_yaml, load_yaml
from .types import BoardGeometry

logger = logging.getLogger(__name__)


class Config:
    """
    Configuration container with game, board and feed defaults.
    """

    DEFAULTS = {
        "game": {
            "mode": "501",  # "501", "301", "countdown", "countup"
            "starting_score": None,  # None = derived from mode name
            "rounds": 8,  # Count-up rounds per player
            "close_policy": "explicit",  # "explicit" (Enter) or "auto"
        },

        # Radius bands in board units, outer edge 170
        "board": {
            "inner_bull_radius": 6.35,
            "outer_bull_radius": 15.9,
            "triple_inner_radius": 107.0,
            "triple_outer_radius": 115.0,
            "double_inner_radius": 162.0,
            "double_outer_radius": 170.0,
        },

        "feed": {
            "queue_size": 0,  # 0 = unbounded, events are never dropped
            "poll_interval_sec": 0.1,
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """
        Load configuration from file or use defaults.

        Args:
            config_path: Path to config YAML (None = use defaults)
        """
        self.data = copy.deepcopy(self.DEFAULTS)

        if config_path and Path(config_path).exists():
            try:
                user_config = load_yaml(Path(config_path))
                self._merge_config(user_config)
                logger.info(f"Configuration loaded from {config_path}")
            except Exception as e:
                logger.warning(f"Failed to load config: {e}, using defaults")
        else:
            logger.info("Using default configuration")

    def _merge_config(self, user_config: Dict[str, Any]) -> None:
        """Merge user config with defaults. Known sections must be mappings."""
        for section, values in user_config.items():
            if section not in self.DEFAULTS:
                self.data[section] = values
            elif isinstance(values, dict):
                self.data[section].update(values)
            elif values is None:
                logger.warning(f"Config section '{section}' is empty, using defaults")
            else:
                logger.warning(
                    f"Config section '{section}' must be a mapping, "
                    f"got {type(values).__name__}; using defaults"
                )

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get config value."""
        return self.data.get(section, {}).get(key, default)

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get entire config section."""
        return self.data.get(section, {})

    def save(self, config_path: Path) -> None:
        """Write the merged configuration back to YAML."""
        atomic_write_yaml(Path(config_path), self.data)
        logger.info(f"Configuration saved to {config_path}")


def build_board_geometry(config: Optional[Config] = None) -> BoardGeometry:
    """
    Construct BoardGeometry from the board section.

    Unknown keys are ignored to remain forward compatible with new YAML fields.
    """
    config = config or Config()
    geometry = BoardGeometry()

    overrides = dict(config.get_section("board") or {})
    for key, value in overrides.items():
        if hasattr(geometry, key):
            setattr(geometry, key, value)
        else:
            logger.debug("Ignoring unknown board key: %s", key)

    # Re-run validation on the overridden values
    geometry.__post_init__()
    return geometry
