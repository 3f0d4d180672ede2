import logging
import random

import pytest

from geohashkit import ALPHABET, PrecisionOutOfRange, encode
from geohashkit.redis_geohash import Mismatch, connect, crosscheck, redis_geohash

GEO_STEP = 26
MERCATOR_LATITUDE = 85.05112878


def _scale(value, lo, hi):
    return int((value - lo) / (hi - lo) * (1 << GEO_STEP))


def _center(index, lo, hi):
    low = lo + (index / (1 << GEO_STEP)) * (hi - lo)
    high = lo + ((index + 1) / (1 << GEO_STEP)) * (hi - lo)
    return (low + high) / 2


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.commands = []

    def geoadd(self, key, values):
        self.commands.append((key, values))
        return self

    def execute(self):
        results = [self.client.geoadd(key, values) for key, values in self.commands]
        self.commands = []
        return results


class FakeRedis:
    """In-memory stand-in for the GEO commands we use.

    Members are stored the way Redis stores them: 26 steps per axis over the
    Mercator latitude range. GEOPOS returns the stored cell centre and
    GEOHASH re-encodes that centre over [-90, 90] with a '0' 11th character.
    Per-member overrides simulate a disagreeing server.
    """

    def __init__(self, overrides=None):
        self.keys = {}
        self.overrides = overrides or {}
        self.deleted = []

    def pipeline(self):
        return FakePipeline(self)

    def geoadd(self, key, values):
        lon, lat, member = values
        cell = (
            _scale(lat, -MERCATOR_LATITUDE, MERCATOR_LATITUDE),
            _scale(lon, -180, 180),
        )
        self.keys.setdefault(key, {})[member] = cell
        return 1

    def _position(self, cell):
        lat_index, lon_index = cell
        return (
            _center(lon_index, -180, 180),
            _center(lat_index, -MERCATOR_LATITUDE, MERCATOR_LATITUDE),
        )

    def geopos(self, key, *members):
        cells = self.keys.get(key, {})
        return [self._position(cells[m]) if m in cells else None for m in members]

    def _hash(self, cell):
        lon, lat = self._position(cell)
        lat_index = _scale(lat, -90, 90)
        lon_index = _scale(lon, -180, 180)
        bits = 0
        for i in range(GEO_STEP - 1, -1, -1):
            bits = (bits << 2) | (((lon_index >> i) & 1) << 1) | ((lat_index >> i) & 1)
        chars = [ALPHABET[(bits >> (52 - (i + 1) * 5)) & 0x1F] for i in range(10)]
        return "".join(chars) + "0"

    def geohash(self, key, *members):
        cells = self.keys.get(key, {})
        result = []
        for member in members:
            if member not in cells:
                result.append(None)
            elif member in self.overrides:
                result.append(self.overrides[member])
            else:
                result.append(self._hash(cells[member]))
        return result

    def delete(self, key):
        self.deleted.append(key)
        return int(self.keys.pop(key, None) is not None)


SAMPLE_POINTS = [(37.7749, -122.4194), (40.7128, -74.0060), (-33.8688, 151.2093)]


def _random_points(count, seed=4242):
    rng = random.Random(seed)
    return [(rng.uniform(-85, 85), rng.uniform(-180, 180)) for _ in range(count)]


def test_redis_geohash_reads_back_member():
    client = FakeRedis()
    result = redis_geohash(client, "k", 37.7749, -122.4194)
    assert len(result) == 11
    assert result.startswith("9q8yyk")
    assert result.endswith("0")
    assert "point" in client.keys["k"]


def test_crosscheck_agreement():
    client = FakeRedis()
    assert crosscheck(client, SAMPLE_POINTS, key="scratch") == []
    assert client.deleted == ["scratch"]
    assert "scratch" not in client.keys


def test_crosscheck_compares_stored_position():
    points = _random_points(500)
    client = FakeRedis()
    assert crosscheck(client, points, precision=10, key="scratch") == []

    # The added points themselves do not always land in the same 10 character
    # cell as the centre Redis stored for them.
    for i, (lat, lon) in enumerate(points):
        client.geoadd("raw", (lon, lat, f"p{i}"))
    redis_hashes = client.geohash("raw", *(f"p{i}" for i in range(len(points))))
    differing = [
        point
        for point, actual in zip(points, redis_hashes)
        if encode(point[0], point[1], 10) != actual[:10]
    ]
    assert differing
    assert all(h.endswith("0") for h in redis_hashes)


def test_crosscheck_reports_mismatches(caplog):
    client = FakeRedis(overrides={"point:1": "dr5rgbbbbbb"})
    with caplog.at_level(logging.WARNING, logger="geohashkit.redis_geohash"):
        result = crosscheck(client, SAMPLE_POINTS, precision=5, key="scratch")
    assert result == [Mismatch(40.7128, -74.0060, "dr5re", "dr5rg")]
    assert "Geohash mismatch for point:1" in caplog.text


def test_crosscheck_skips_points_outside_redis_range():
    client = FakeRedis()
    assert crosscheck(client, [(89.0, 0.0), (-86.0, 10.0)], key="scratch") == []
    assert "scratch" not in client.keys


def test_crosscheck_generates_scratch_key():
    client = FakeRedis()
    crosscheck(client, SAMPLE_POINTS)
    assert len(client.deleted) == 1
    assert client.deleted[0].startswith("temp:")


def test_crosscheck_cleans_up_on_error():
    class BrokenRedis(FakeRedis):
        def geohash(self, key, *members):
            raise RuntimeError("connection lost")

    client = BrokenRedis()
    with pytest.raises(RuntimeError):
        crosscheck(client, SAMPLE_POINTS, key="scratch")
    assert client.deleted == ["scratch"]


@pytest.mark.parametrize("precision", [0, 11, 12])
def test_crosscheck_rejects_precision(precision):
    with pytest.raises(PrecisionOutOfRange):
        crosscheck(FakeRedis(), SAMPLE_POINTS, precision=precision)


def test_connect_reads_environment(monkeypatch):
    monkeypatch.setenv("REDIS_HOST", "redis.internal")
    monkeypatch.setenv("REDIS_PORT", "6380")
    monkeypatch.setenv("REDIS_DB", "2")
    client = connect()
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "redis.internal"
    assert kwargs["port"] == 6380
    assert kwargs["db"] == 2


def test_connect_arguments_override_environment(monkeypatch):
    monkeypatch.setenv("REDIS_HOST", "redis.internal")
    client = connect(host="localhost", port=6379, db=0)
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "localhost"
    assert kwargs["db"] == 0
    assert kwargs["port"] == 6379


def test_connect_keeps_falsy_arguments(monkeypatch):
    monkeypatch.setenv("REDIS_HOST", "redis.internal")
    monkeypatch.setenv("REDIS_PORT", "6380")
    client = connect(host="", port=0)
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == ""
    assert kwargs["port"] == 0
