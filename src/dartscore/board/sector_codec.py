"""
Decoder for the symbolic hit codes sent by Dartsio-style devices.

Codes look like "S03", "D12", "T10", "B25", "B50". A miss arrives as
"S00", "MISS" or "0".
"""
import re
from typing import Optional
import logging

import numpy as np

from dartscore.core import Hit, DecodeError, MISS_SECTOR, OUTER_BULL, INNER_BULL

logger = logging.getLogger(__name__)

_MISS_CODES = frozenset({"S00", "MISS", "0"})
_SECTOR_PATTERN = re.compile(r"^([SDT])([0-9]{2})$")
_BULL_PATTERN = re.compile(r"^B([0-9]{2})$")
_MULTIPLIERS = {"S": 1, "D": 2, "T": 3}

# Codes emitted by the mock device
TEST_CODES = (
    "S20", "S01", "S18", "S04", "S13", "S06", "S10", "S15", "S02", "S17",
    "S03", "S19", "S07", "S16", "S08", "S11", "S14", "S09", "S12", "S05",
    "D20", "D01", "D18", "D04", "D13", "D06", "D10", "D15", "D02", "D17",
    "T20", "T19", "T18", "T17", "T16", "T15", "T14", "T13", "T12", "T11",
    "B25", "B50", "S00",
)


class SectorCodec:
    """Turns a device code into a Hit."""

    def decode(self, code: str) -> Hit:
        """
        Decode a symbolic hit code.

        Args:
            code: Raw code, surrounding whitespace and case are ignored

        Returns:
            Decoded Hit

        Raises:
            DecodeError: If the code is not recognized
        """
        if not isinstance(code, str):
            raise DecodeError(f"unrecognized code: {code!r}")

        data = code.strip().upper()

        if data in _MISS_CODES:
            return Hit.create(MISS_SECTOR)

        match = _SECTOR_PATTERN.match(data)
        if match:
            sector = int(match.group(2))
            if 1 <= sector <= 20:
                return Hit.create(sector, _MULTIPLIERS[match.group(1)])

        match = _BULL_PATTERN.match(data)
        if match:
            value = int(match.group(1))
            if value in (OUTER_BULL, INNER_BULL):
                return Hit.create(value)

        logger.debug(f"Unrecognized code: {code!r}")
        raise DecodeError(f"unrecognized code: {code!r}")


def random_code(rng: Optional[np.random.Generator] = None) -> str:
    """Pick a random valid device code (mock device feed)."""
    rng = rng or np.random.default_rng()
    return TEST_CODES[int(rng.integers(len(TEST_CODES)))]
