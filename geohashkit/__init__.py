"""Geohash encoding, decoding and neighbor lookup."""

from .base32 import ALPHABET  # noqa: F401
from .errors import (  # noqa: F401
    DirectionOutOfRange,
    GeohashError,
    InvalidHashFormat,
    InvalidHashLength,
    LatitudeOutOfRange,
    LongitudeOutOfRange,
    PrecisionOutOfRange,
)
from .geohash import (  # noqa: F401
    BBox,
    Direction,
    Geohash,
    Precision,
    cell_size,
    decode,
    decode_bbox,
    encode,
    neighbor,
    neighbors,
    wrap_coordinates,
)
