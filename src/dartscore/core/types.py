"""
Core data types for the darts scoring system.
Defines contracts between codecs, the scoring engine and the device feed.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union
import time

from .errors import DecodeError

# Special sector values
MISS_SECTOR = 0
OUTER_BULL = 25
INNER_BULL = 50

# Largest value a single dart can score (T20)
MAX_DART_POINTS = 60


class HitKind(Enum):
    """Classification of a single dart."""
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    BULL = "bull"
    MISS = "miss"


_KIND_BY_MULTIPLIER = {1: HitKind.SINGLE, 2: HitKind.DOUBLE, 3: HitKind.TRIPLE}
_PREFIX_BY_KIND = {HitKind.SINGLE: "S", HitKind.DOUBLE: "D", HitKind.TRIPLE: "T"}


@dataclass(frozen=True)
class Hit:
    """
    A decoded dart throw.

    Hits are never mutated; a correction stores a replacement value in the
    turn history instead.
    """
    sector: int  # 1-20, 25/50 for bulls, 0 for a miss
    multiplier: int  # 1=Single, 2=Double, 3=Triple (always 1 for bull/miss)
    points: int
    kind: HitKind
    label: str

    # Polar coordinates, only set by the coordinate decoder
    radius: Optional[float] = None
    angle: Optional[float] = None

    @classmethod
    def create(
            cls,
            sector: int,
            multiplier: int = 1,
            radius: Optional[float] = None,
            angle: Optional[float] = None
    ) -> "Hit":
        """
        Build a hit from a sector and multiplier.

        Bull and miss ignore the multiplier.

        Raises:
            DecodeError: If sector or multiplier is out of range
        """
        if sector == MISS_SECTOR:
            return cls(MISS_SECTOR, 1, 0, HitKind.MISS, "Miss", radius, angle)
        if sector == OUTER_BULL:
            return cls(OUTER_BULL, 1, 25, HitKind.BULL, "Outer Bull (25)", radius, angle)
        if sector == INNER_BULL:
            return cls(INNER_BULL, 1, 50, HitKind.BULL, "Inner Bull (50)", radius, angle)

        if not 1 <= sector <= 20:
            raise DecodeError(f"sector out of range: {sector}")
        if multiplier not in _KIND_BY_MULTIPLIER:
            raise DecodeError(f"multiplier out of range: {multiplier}")

        kind = _KIND_BY_MULTIPLIER[multiplier]
        label = f"{_PREFIX_BY_KIND[kind]}{sector}"
        return cls(sector, multiplier, sector * multiplier, kind, label, radius, angle)


@dataclass
class BoardGeometry:
    """
    Board geometry in board units (outer edge of the double ring at 170).

    Band edges are exclusive upper bounds: a radius equal to an edge falls
    into the next band outwards.
    """
    inner_bull_radius: float = 6.35  # Inner bull (50 points)
    outer_bull_radius: float = 15.9  # Outer bull (25 points)
    triple_inner_radius: float = 107.0  # Inner single ends, triple starts
    triple_outer_radius: float = 115.0  # Triple ends, outer single starts
    double_inner_radius: float = 162.0  # Outer single ends, double starts
    double_outer_radius: float = 170.0  # Double ends (board edge)

    # Sector configuration
    sector_angle: float = 18.0  # Degrees per sector
    angle_offset: float = 9.0  # Rotation so bucket 0 is centred on 0°
    sector_sequence: Tuple[int, ...] = (20, 1, 18, 4, 13, 6, 10, 15, 2, 17,
                                        3, 19, 7, 16, 8, 11, 14, 9, 12, 5)

    def __post_init__(self):
        radii = (
            self.inner_bull_radius,
            self.outer_bull_radius,
            self.triple_inner_radius,
            self.triple_outer_radius,
            self.double_inner_radius,
            self.double_outer_radius,
        )
        if any(r <= 0 for r in radii):
            raise ValueError("Board radii must be positive")
        if list(radii) != sorted(radii):
            raise ValueError("Board radii must increase outwards")
        if self.sector_angle <= 0:
            raise ValueError("sector_angle must be positive")
        self.sector_sequence = tuple(self.sector_sequence)


# --- Inbound events -------------------------------------------------------

@dataclass(frozen=True)
class CodedEvent:
    """Symbolic hit code from a device, e.g. "T20"."""
    value: str
    device_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def type(self) -> str:
        return "coded"


@dataclass(frozen=True)
class CoordinateEvent:
    """Raw impact coordinate from a device, board centre at (0, 0)."""
    x: float
    y: float
    device_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def type(self) -> str:
        return "coordinate"


@dataclass(frozen=True)
class ManualEvent:
    """Hit entered by hand (board click or keyboard)."""
    sector: int
    multiplier: int = 1
    timestamp: float = field(default_factory=time.time)

    @property
    def device_id(self) -> Optional[str]:
        return None

    @property
    def type(self) -> str:
        return "manual"


HitEvent = Union[CodedEvent, CoordinateEvent, ManualEvent]
