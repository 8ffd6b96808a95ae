"""
Core module - shared data types, errors, and configuration.
"""
from .types import (
    HitKind,
    Hit,
    BoardGeometry,
    CodedEvent,
    CoordinateEvent,
    ManualEvent,
    HitEvent,
    MISS_SECTOR,
    OUTER_BULL,
    INNER_BULL,
    MAX_DART_POINTS,
)
from .errors import (
    DartScoreError,
    DecodeError,
    TurnNotCompleteError,
    GameCompletedError,
    CorrectionError,
    RotationInvariantError,
)
from .io_utils import (
    atomic_write_yaml,
    load_yaml,
)
from .config_loader import Config, build_board_geometry

__all__ = [
    # Types
    "HitKind",
    "Hit",
    "BoardGeometry",
    "CodedEvent",
    "CoordinateEvent",
    "ManualEvent",
    "HitEvent",
    "MISS_SECTOR",
    "OUTER_BULL",
    "INNER_BULL",
    "MAX_DART_POINTS",
    # Errors
    "DartScoreError",
    "DecodeError",
    "TurnNotCompleteError",
    "GameCompletedError",
    "CorrectionError",
    "RotationInvariantError",
    # I/O
    "atomic_write_yaml",
    "load_yaml",
    # Config
    "Config",
    "build_board_geometry",
]
