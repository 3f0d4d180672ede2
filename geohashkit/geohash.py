"""Geohash encoding, decoding and neighbor lookup.

A geohash is built by bisecting the longitude range [-180, 180] and the
latitude range [-90, 90] independently, interleaving the resulting bits
(longitude first) and writing the combined code in base32, 5 bits per
character. The hash length is its precision: longer hashes name smaller cells.

Example:
    >>> encode(37.7749, -122.4194, Precision.CITY)
    '9q8yy'
    >>> neighbors("9")
    ['c', 'f', 'd', '6', '3', '2', '8', 'b']
"""

import logging
import math
from dataclasses import dataclass
from enum import IntEnum

from .base32 import from_base32, to_base32
from .bits import BITS_PER_CHAR, axis_bits, decode_axis, encode_axis, interlace, split
from .errors import (
    DirectionOutOfRange,
    InvalidHashLength,
    LatitudeOutOfRange,
    LongitudeOutOfRange,
    PrecisionOutOfRange,
)

logger = logging.getLogger(__name__)

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0


class Precision(IntEnum):
    """Named geohash lengths with their approximate cell size."""

    GLOBAL = 1  # ~5000 km x 5000 km
    COUNTRY = 2  # ~1250 km x 625 km
    STATE = 3  # ~156 km x 156 km
    REGION = 4  # ~39 km x 19.5 km
    CITY = 5  # ~4.9 km x 4.9 km
    STREET = 6  # ~1.2 km x 0.61 km
    BUILDING = 7  # ~152 m x 152 m
    BLOCK = 8  # ~38 m x 19 m
    HOUSE = 9  # ~4.8 m x 4.8 m
    ROOM = 10  # ~1.2 m x 0.6 m
    POINT = 11  # ~15 cm x 15 cm
    SUBPOINT = 12  # ~1.9 cm x 1.9 cm


class Direction(IntEnum):
    N = 0
    NE = 1
    E = 2
    SE = 3
    S = 4
    SW = 5
    W = 6
    NW = 7


# (lat, lon) cell-step multipliers, indexed by Direction
_DIRECTION_STEPS = (
    (1, 0),  # N
    (1, 1),  # NE
    (0, 1),  # E
    (-1, 1),  # SE
    (-1, 0),  # S
    (-1, -1),  # SW
    (0, -1),  # W
    (1, -1),  # NW
)


@dataclass(frozen=True)
class BBox:
    """Rectangular cell covered by a geohash."""

    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    @property
    def center(self) -> tuple[float, float]:
        return (
            (self.min_latitude + self.max_latitude) / 2,
            (self.min_longitude + self.max_longitude) / 2,
        )

    def contains(self, lat: float, lon: float) -> bool:
        return (
            self.min_latitude <= lat <= self.max_latitude
            and self.min_longitude <= lon <= self.max_longitude
        )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_precision(precision: int) -> None:
    if not _is_int(precision) or not (
        Precision.GLOBAL <= precision <= Precision.SUBPOINT
    ):
        raise PrecisionOutOfRange(
            f"Precision {precision!r} must be between "
            f"{int(Precision.GLOBAL)} and {int(Precision.SUBPOINT)}"
        )


def _hash_length(geohash: str) -> int:
    # Length in bytes: a multi-byte character counts against the 12 limit.
    return len(geohash.encode("utf-8", "surrogatepass"))


def _check_hash_length(geohash: str) -> None:
    length = _hash_length(geohash)
    if not Precision.GLOBAL <= length <= Precision.SUBPOINT:
        raise InvalidHashLength(
            f"Geohash length {length} must be between "
            f"{int(Precision.GLOBAL)} and {int(Precision.SUBPOINT)}"
        )


def _decode_axes(geohash: str) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    _check_hash_length(geohash)
    bitset, precision = from_base32(geohash)

    lat_bits, lon_bits = axis_bits(precision)
    lat_bitset, lon_bitset = split(bitset, precision * BITS_PER_CHAR)
    lat_axis = decode_axis(lat_bitset, lat_bits, MIN_LATITUDE, MAX_LATITUDE)
    lon_axis = decode_axis(lon_bitset, lon_bits, MIN_LONGITUDE, MAX_LONGITUDE)
    return lat_axis, lon_axis


def encode(lat: float, lon: float, precision: int = Precision.CITY) -> str:
    """Encode a latitude and longitude into a geohash of ``precision`` characters."""
    if not MIN_LATITUDE <= lat <= MAX_LATITUDE:
        raise LatitudeOutOfRange(
            f"Latitude {lat} must be between {MIN_LATITUDE} and {MAX_LATITUDE}"
        )
    if not MIN_LONGITUDE <= lon <= MAX_LONGITUDE:
        raise LongitudeOutOfRange(
            f"Longitude {lon} must be between {MIN_LONGITUDE} and {MAX_LONGITUDE}"
        )
    _check_precision(precision)

    lat_bits, lon_bits = axis_bits(precision)
    lon_bitset = encode_axis(MIN_LONGITUDE, MAX_LONGITUDE, lon, lon_bits)
    lat_bitset = encode_axis(MIN_LATITUDE, MAX_LATITUDE, lat, lat_bits)
    bitset = interlace(lat_bitset, lon_bitset, precision * BITS_PER_CHAR)
    return to_base32(bitset, precision)


def decode(geohash: str) -> tuple[float, float]:
    """Decode a geohash into the (latitude, longitude) center of its cell."""
    (_, _, lat), (_, _, lon) = _decode_axes(geohash)
    return lat, lon


def decode_bbox(geohash: str) -> tuple[float, float, BBox]:
    """Decode a geohash into its center and bounding box.

    Returns:
        (latitude, longitude, bbox), with the same center ``decode`` returns.
    """
    (min_lat, max_lat, lat), (min_lon, max_lon, lon) = _decode_axes(geohash)
    bbox = BBox(
        min_latitude=min_lat,
        max_latitude=max_lat,
        min_longitude=min_lon,
        max_longitude=max_lon,
    )
    return lat, lon, bbox


def cell_size(precision: int) -> tuple[float, float]:
    """Angular height and width of every cell at ``precision`` characters.

    Latitude spans 180 degrees over ``lat_bits`` halvings and longitude 360
    degrees over ``lon_bits``, so the result is exact for all 12 levels.
    """
    lat_bits, lon_bits = axis_bits(precision)
    return 180.0 / (1 << lat_bits), 360.0 / (1 << lon_bits)


def wrap_coordinates(lat: float, lon: float) -> tuple[float, float]:
    """Wrap latitude into [-90, 90] and longitude into [-180, 180].

    Both axes wrap modulo their full range, so crossing a pole comes back in
    from the opposite pole without flipping longitude.
    """
    lat = math.fmod(lat + MAX_LATITUDE, 2 * MAX_LATITUDE)
    if lat < 0:
        lat += 2 * MAX_LATITUDE
    lat -= MAX_LATITUDE

    lon = math.fmod(lon + MAX_LONGITUDE, 2 * MAX_LONGITUDE)
    if lon < 0:
        lon += 2 * MAX_LONGITUDE
    lon -= MAX_LONGITUDE

    return lat, lon


def neighbor(geohash: str, direction: Direction) -> str:
    """Return the geohash of the adjacent cell in ``direction``.

    The decoded center is moved by one cell in that direction, wrapped back
    into range and re-encoded at the same precision.
    """
    center_lat, center_lon = decode(geohash)

    if not _is_int(direction) or not Direction.N <= direction <= Direction.NW:
        raise DirectionOutOfRange(
            f"Direction {direction!r} must be between {int(Direction.N)} and {int(Direction.NW)}"
        )
    direction = Direction(direction)

    lat_height, lon_width = cell_size(len(geohash))
    lat_step, lon_step = _DIRECTION_STEPS[direction]
    shifted_lat = center_lat + lat_step * lat_height
    shifted_lon = center_lon + lon_step * lon_width

    lat, lon = wrap_coordinates(shifted_lat, shifted_lon)
    if (lat, lon) != (shifted_lat, shifted_lon):
        logger.debug(
            "Wrapped %s neighbor of %s from (%s, %s) to (%s, %s)",
            direction.name,
            geohash,
            shifted_lat,
            shifted_lon,
            lat,
            lon,
        )
    return encode(lat, lon, len(geohash))


def neighbors(geohash: str) -> list[str]:
    """Compute the 8 neighboring geohashes, ordered N, NE, E, SE, S, SW, W, NW."""
    return [neighbor(geohash, direction) for direction in Direction]


class Geohash:
    """Geohash encoder/decoder bound to a single precision."""

    def __init__(self, precision: int = Precision.CITY):
        _check_precision(precision)
        self.precision = precision

    def _check_length(self, geohash: str) -> None:
        length = _hash_length(geohash)
        if length != self.precision:
            raise InvalidHashLength(
                f"Geohash length {length} doesn't match precision {self.precision}"
            )

    def encode(self, lat: float, lon: float) -> str:
        """Encode a latitude and longitude into a geohash."""
        return encode(lat, lon, self.precision)

    def decode(self, geohash: str) -> tuple[float, float]:
        """Decode a geohash into a latitude and longitude."""
        self._check_length(geohash)
        return decode(geohash)

    def decode_bbox(self, geohash: str) -> tuple[float, float, BBox]:
        self._check_length(geohash)
        return decode_bbox(geohash)

    def get_neighbors(self, geohash: str) -> dict[str, str]:
        """
        Compute the 8 neighboring geohashes, keyed by direction (n, ne, ..., nw).
        """
        self._check_length(geohash)
        return {
            direction.name.lower(): hash_
            for direction, hash_ in zip(Direction, neighbors(geohash))
        }


if __name__ == "__main__":
    lat, lon = 51.4779, -0.0015  # Greenwich observatory, just west of lon 0
    for precision in (Precision.GLOBAL, Precision.CITY, Precision.HOUSE):
        cell = encode(lat, lon, precision)
        _, _, bbox = decode_bbox(cell)
        height, width = cell_size(precision)
        print(f"{precision.name:<8} {cell:<12} {height:.6f} x {width:.6f} deg  {bbox}")

    cell = encode(lat, lon, Precision.CITY)
    for direction, adjacent in zip(Direction, neighbors(cell)):
        print(f"  {direction.name:<2} {adjacent}")
