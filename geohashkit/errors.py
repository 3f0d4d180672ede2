class GeohashError(ValueError):
    """Base class for all input validation failures."""


class LatitudeOutOfRange(GeohashError):
    pass


class LongitudeOutOfRange(GeohashError):
    pass


class PrecisionOutOfRange(GeohashError):
    pass


class InvalidHashLength(GeohashError):
    pass


class InvalidHashFormat(GeohashError):
    pass


class DirectionOutOfRange(GeohashError):
    pass
