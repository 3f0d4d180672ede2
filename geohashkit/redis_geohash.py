"""Cross-check geohashes against Redis's GEO encoder.

GEOADD snaps each member to a 52-bit cell over the Web Mercator latitude
range (+/-85.05112878) and GEOHASH renders the centre of that cell as an
11 character standard geohash whose last character is always '0'. Only the
first 10 characters (50 bits) carry information, and they describe the
stored centre rather than the point that was added, so the comparison is
made against our encoding of GEOPOS.
"""

import logging
import os
import uuid
from typing import Iterable, NamedTuple, Optional

import redis

from .errors import PrecisionOutOfRange
from .geohash import encode

logger = logging.getLogger(__name__)

REDIS_HASH_LENGTH = 11
REDIS_MAX_PRECISION = 10  # 52 stored bits; the 11th character is padding
REDIS_MAX_LATITUDE = 85.05112878  # GEOADD rejects anything beyond this


class Mismatch(NamedTuple):
    latitude: float
    longitude: float
    expected: str
    actual: str


def connect(
    host: Optional[str] = None, port: Optional[int] = None, db: Optional[int] = None
) -> redis.Redis:
    """Build a client, falling back to REDIS_HOST / REDIS_PORT / REDIS_DB."""
    if host is None:
        host = os.environ.get("REDIS_HOST", "localhost")
    if port is None:
        port = int(os.environ.get("REDIS_PORT", "6379"))
    if db is None:
        db = int(os.environ.get("REDIS_DB", "0"))
    return redis.Redis(host=host, port=port, db=db, decode_responses=True)


def redis_geohash(
    client: redis.Redis, key: str, lat: float, lon: float, member: str = "point"
) -> str:
    """GEOADD a single point and read back its Redis geohash."""
    client.geoadd(key, (lon, lat, member))
    return client.geohash(key, member)[0]


def crosscheck(
    client: redis.Redis,
    points: Iterable[tuple[float, float]],
    precision: int = REDIS_MAX_PRECISION,
    key: Optional[str] = None,
) -> list[Mismatch]:
    """Compare Redis's geohash of each stored point with ours, up to ``precision`` chars.

    Mismatches are reported with the coordinates that were added.
    """
    if not 1 <= precision <= REDIS_MAX_PRECISION:
        raise PrecisionOutOfRange(
            f"Precision {precision} must be between 1 and {REDIS_MAX_PRECISION} for Redis"
        )
    if key is None:
        key = f"temp:{uuid.uuid4()}:geohash"

    members = {}
    for i, (lat, lon) in enumerate(points):
        if abs(lat) > REDIS_MAX_LATITUDE:
            logger.debug("Skipping (%s, %s): outside Redis latitude range", lat, lon)
            continue
        members[f"point:{i}"] = (lat, lon)

    mismatches = []
    try:
        if not members:
            return mismatches

        pipe = client.pipeline()
        for member, (lat, lon) in members.items():
            pipe.geoadd(key, (lon, lat, member))
        pipe.execute()

        positions = client.geopos(key, *members)
        hashes = client.geohash(key, *members)
        for (member, (lat, lon)), position, actual in zip(
            members.items(), positions, hashes
        ):
            if position is None:
                expected = ""
            else:
                stored_lon, stored_lat = position
                expected = encode(float(stored_lat), float(stored_lon), precision)
            actual = (actual or "")[:precision]
            if expected != actual:
                logger.warning(
                    "Geohash mismatch for %s (%s, %s): expected %s, redis %s",
                    member,
                    lat,
                    lon,
                    expected,
                    actual,
                )
                mismatches.append(Mismatch(lat, lon, expected, actual))
    finally:
        client.delete(key)

    logger.info(
        "Cross-checked %d points at precision %d: %d mismatches",
        len(members),
        precision,
        len(mismatches),
    )
    return mismatches


if __name__ == "__main__":
    import random

    logging.basicConfig(level=logging.INFO)

    r = connect()
    nyc_lat, nyc_lon = 40.7128, -74.0060
    print(f"Redis geohash for NYC: {redis_geohash(r, 'temp:nyc', nyc_lat, nyc_lon)}")
    print(f"Our geohash for NYC:   {encode(nyc_lat, nyc_lon, REDIS_MAX_PRECISION)}")
    r.delete("temp:nyc")

    points = [
        (random.uniform(-85, 85), random.uniform(-180, 180)) for _ in range(1000)
    ]
    mismatches = crosscheck(r, points)
    print(f"Found {len(mismatches)} mismatches in {len(points)} random points")
    for m in mismatches:
        print(f" - ({m.latitude:.6f}, {m.longitude:.6f}) ours {m.expected} redis {m.actual}")
