"""
Board module - hit decoding from device codes and impact coordinates.
"""
from .geometry import CoordinateCodec
from .sector_codec import SectorCodec, TEST_CODES, random_code

__all__ = [
    "CoordinateCodec",
    "SectorCodec",
    "TEST_CODES",
    "random_code",
]
