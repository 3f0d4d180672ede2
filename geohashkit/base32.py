from types import MappingProxyType

from .bits import BITS_PER_CHAR, WORD_BITS, WORD_MASK
from .errors import InvalidHashFormat

ALPHABET = "0123456789bcdefghjkmnpqrstuvwxyz"  # Standard geohash Base32, no a/i/l/o

_DECODE_MAP = MappingProxyType({char: index for index, char in enumerate(ALPHABET)})
_MASK = 0x1F


def to_base32(bitset: int, precision: int) -> str:
    """Convert an interleaved bitset of ``precision * 5`` bits to base32."""
    bitset = (bitset << (WORD_BITS - precision * BITS_PER_CHAR)) & WORD_MASK

    result = []
    for _ in range(precision):
        index = (bitset >> (WORD_BITS - BITS_PER_CHAR)) & _MASK
        result.append(ALPHABET[index])
        bitset = (bitset << BITS_PER_CHAR) & WORD_MASK
    return "".join(result)


def from_base32(geohash: str) -> tuple[int, int]:
    """Convert a base32 geohash to (bitset, precision)."""
    bitset = 0
    for char in geohash:
        try:
            index = _DECODE_MAP[char]
        except KeyError:
            raise InvalidHashFormat(
                f"Invalid character {char!r} in geohash {geohash!r}"
            ) from None
        bitset = (bitset << BITS_PER_CHAR) | index
    return bitset, len(geohash)
