"""
Dartboard geometry calculations and sector mapping.
"""
import numpy as np
from typing import Optional, Tuple
import logging

from dartscore.core import BoardGeometry, Hit, MISS_SECTOR, OUTER_BULL, INNER_BULL

logger = logging.getLogger(__name__)


class CoordinateCodec:
    """
    Maps impact coordinates to dartboard sectors and scores.

    Coordinates are in board units with the bull at (0, 0); the double
    ring ends at radius 170. Angles follow atan2 (0° along +x).
    """

    def __init__(self, board_geometry: Optional[BoardGeometry] = None):
        """
        Initialize coordinate codec.

        Args:
            board_geometry: Board dimensions (default: BoardGeometry())
        """
        self.geometry = board_geometry or BoardGeometry()

        logger.debug(
            f"CoordinateCodec initialized: "
            f"edge={self.geometry.double_outer_radius}, "
            f"sector_angle={self.geometry.sector_angle}°"
        )

    def to_polar(self, x: float, y: float) -> Tuple[float, float]:
        """
        Convert coordinates to polar coordinates.

        Returns:
            (radius, angle) with angle in degrees, -180 to 180
        """
        radius = float(np.sqrt(x ** 2 + y ** 2))
        angle = float(np.degrees(np.arctan2(y, x)))
        return radius, angle

    def angle_to_sector(self, angle: float) -> int:
        """
        Convert angle to sector number.

        Args:
            angle: Angle in degrees, any real value

        Returns:
            Sector number (1-20), 0 if the bucket is outside the table
        """
        sequence = self.geometry.sector_sequence

        # Bucket 0 spans [-offset, sector_angle - offset)
        normalized = (angle + 360 + self.geometry.angle_offset) % 360
        bucket = int(np.floor(normalized / self.geometry.sector_angle))

        if 0 <= bucket < len(sequence):
            return sequence[bucket]
        return 0

    def radius_to_ring(self, radius: float) -> Tuple[str, int]:
        """
        Convert radius to ring name and multiplier.

        Returns:
            (ring_name, multiplier) where ring_name is one of
            "inner_bull", "outer_bull", "inner_single", "triple",
            "outer_single", "double", "miss". Bull multipliers are the
            bull value (50/25), a miss is 0.
        """
        g = self.geometry

        if radius < g.inner_bull_radius:
            return "inner_bull", INNER_BULL
        elif radius < g.outer_bull_radius:
            return "outer_bull", OUTER_BULL
        elif radius < g.triple_inner_radius:
            return "inner_single", 1
        elif radius < g.triple_outer_radius:
            return "triple", 3
        elif radius < g.double_inner_radius:
            # Scores the same as the inner single band
            return "outer_single", 1
        elif radius < g.double_outer_radius:
            return "double", 2
        else:
            return "miss", 0

    def decode(self, x: float, y: float) -> Hit:
        """
        Convert an impact coordinate to a Hit. Never fails.

        Args:
            x: X coordinate in board units
            y: Y coordinate in board units

        Returns:
            Hit with sector, multiplier, points and polar coordinates
        """
        radius, angle = self.to_polar(x, y)
        ring_name, multiplier = self.radius_to_ring(radius)

        if multiplier in (INNER_BULL, OUTER_BULL):
            hit = Hit.create(multiplier, radius=radius, angle=angle)
        elif multiplier == 0:
            hit = Hit.create(MISS_SECTOR, radius=radius, angle=angle)
        else:
            sector = self.angle_to_sector(angle)
            if sector == 0:
                hit = Hit.create(MISS_SECTOR, radius=radius, angle=angle)
            else:
                hit = Hit.create(sector, multiplier, radius=radius, angle=angle)

        logger.debug(
            f"Score: ({x:.1f}, {y:.1f}) → r={radius:.1f}, θ={angle:.1f}° → "
            f"{ring_name} = {hit.points}"
        )

        return hit

    def get_ring_boundaries(self) -> dict:
        """
        Get all ring boundaries.

        Returns:
            Dictionary with ring names and radii
        """
        g = self.geometry
        return {
            "inner_bull": g.inner_bull_radius,
            "outer_bull": g.outer_bull_radius,
            "triple_inner": g.triple_inner_radius,
            "triple_outer": g.triple_outer_radius,
            "double_inner": g.double_inner_radius,
            "double_outer": g.double_outer_radius,
        }
