"""
YAML reading and writing for game settings.

Settings files are small mappings of sections (game, board, feed). A saved
file is written next to its target first and moved into place, so a crash
mid-write never leaves a truncated settings file behind.
"""
import os
import yaml
import tempfile
from pathlib import Path
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


def atomic_write_yaml(filepath: Path, data: Dict[str, Any]) -> None:
    """
    Save a settings mapping to YAML.

    Sections keep their insertion order in the file.

    Args:
        filepath: Target file, parent directories are created
        data: Settings mapping

    Raises:
        yaml.YAMLError: If the data holds values YAML cannot represent
        OSError: If the file cannot be written
    """
    filepath = Path(filepath)
    text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    filepath.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=filepath.parent,
            prefix=f".{filepath.name}.",
            suffix=".tmp",
            delete=False
    ) as tmp:
        tmp.write(text)

    try:
        os.replace(tmp.name, filepath)
    except OSError:
        Path(tmp.name).unlink()
        raise

    logger.debug(f"Saved settings to {filepath}")


def load_yaml(filepath: Path) -> Dict[str, Any]:
    """
    Read a settings file.

    Args:
        filepath: Path to YAML file

    Returns:
        Top-level mapping (empty for an empty file)

    Raises:
        FileNotFoundError: If file does not exist
        yaml.YAMLError: If file is malformed
        ValueError: If the top level is not a mapping
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"{filepath}: expected a mapping of sections, got {type(data).__name__}"
        )

    logger.debug(f"Loaded {filepath}")
    return data
