from enum import Enum, IntEnum


class Concurrency(str, Enum):
    none = "none"
    threads = "threads"
    processes = "processes"


class Compression(IntEnum):
    """TIFF compression codes which can be decompressed."""

    none = 1
    lzw = 5
    deflate = 8
    packbits = 32773
    deflate_legacy = 32946


class Predictor(IntEnum):
    none = 1
    horizontal = 2
    floating_point = 3


class SampleFormat(IntEnum):
    uint = 1
    int = 2
    float = 3
    undefined = 4


class Interleave(str, Enum):
    """
    How bands are laid out within the segments of a file.

    pixel: PlanarConfiguration 1, every segment holds all bands of a pixel
    band: PlanarConfiguration 2, every band has its own set of segments
    """

    pixel = "pixel"
    band = "band"


class NoDataPolicy(str, Enum):
    raw = "raw"
    constant = "constant"
    user_defined = "user_defined"


class DataType(str, Enum):
    uint8 = "uint8"
    int8 = "int8"
    uint16 = "uint16"
    int16 = "int16"
    uint32 = "uint32"
    int32 = "int32"
    float32 = "float32"
    float64 = "float64"
