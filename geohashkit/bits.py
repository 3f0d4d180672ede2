"""Bit-level building blocks: per-axis bisection and lon/lat interleaving."""

BITS_PER_CHAR = 5
WORD_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1


def axis_bits(precision: int) -> tuple[int, int]:
    """Split ``precision * 5`` bits into (latitude bits, longitude bits).

    Longitude takes the extra bit when the total is odd, since it owns the
    even (first) positions of the interleaved code.
    """
    total_bits = precision * BITS_PER_CHAR
    lat_bits = total_bits // 2
    lon_bits = total_bits - lat_bits
    return lat_bits, lon_bits


def encode_axis(left: float, right: float, value: float, bit_count: int) -> int:
    """Encodes a value into a bitset using binary subdivision, MSB first."""
    bitset = 0
    for _ in range(bit_count):
        mid = (left + right) / 2
        bitset <<= 1
        if value >= mid:
            bitset |= 1
            left = mid
        else:
            right = mid
    return bitset


def decode_axis(
    bitset: int, bit_count: int, left: float, right: float
) -> tuple[float, float, float]:
    """Replays the subdivision encoded in ``bitset``.

    Returns:
        (min, max, center) of the final interval.
    """
    for i in range(bit_count):
        mid = (left + right) / 2
        if (bitset >> (bit_count - 1 - i)) & 1:
            left = mid
        else:
            right = mid
    return left, right, (left + right) / 2


def interlace(lat_bitset: int, lon_bitset: int, total_bits: int) -> int:
    """Interleave two axis bitsets, longitude first."""
    lon_count = (total_bits + 1) // 2
    lat_count = total_bits // 2

    bitset = 0
    for i in range(total_bits):
        bitset <<= 1
        if i % 2 == 0:
            bitset |= (lon_bitset >> (lon_count - 1 - i // 2)) & 1
        else:
            bitset |= (lat_bitset >> (lat_count - 1 - i // 2)) & 1
    return bitset


def split(bitset: int, total_bits: int) -> tuple[int, int]:
    """Deinterleave a combined bitset into (latitude, longitude) bitsets."""
    bitset = (bitset << (WORD_BITS - total_bits)) & WORD_MASK

    lat_bitset = lon_bitset = 0
    for i in range(total_bits):
        msb = (bitset >> (WORD_BITS - 1)) & 1
        if i % 2 == 0:
            lon_bitset = (lon_bitset << 1) | msb
        else:
            lat_bitset = (lat_bitset << 1) | msb
        bitset = (bitset << 1) & WORD_MASK
    return lat_bitset, lon_bitset
