"""Errors and Warnings."""


class RangeReadError(IOError):
    """Raised when a byte range cannot be fetched from the backing store."""


class MalformedMetadataError(ValueError):
    """Raised when a TIFF header or image file directory is invalid or truncated."""


class UnsupportedLayoutError(ValueError):
    """Raised when a raster uses a cell type or segment layout which is not supported."""


class UnsupportedCompressionError(UnsupportedLayoutError):
    """Raised when a segment is compressed with an unknown codec."""


class CorruptSegmentError(ValueError):
    """Raised when a segment cannot be decompressed to its expected size."""


class TimestampParseError(ValueError):
    """Raised when the time tag of a raster is missing or cannot be parsed."""


class RangeTiffOptionsError(ValueError):
    """Raised when read options are invalid."""


class TaskFailed(Exception):
    """Raised when a work item fails."""
