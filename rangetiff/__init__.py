import logging

from rangetiff.bounds import Bounds
from rangetiff.executor import Executor, MFuture
from rangetiff.inputs import (
    WorkItem,
    list_inputs,
    plan_windows,
    read_window,
    rebalance,
    spatial,
    spatial_multiband,
    temporal,
    temporal_multiband,
)
from rangetiff.io import ChunkedRangeReader, RangeReader, range_reader
from rangetiff.options import ReadOptions
from rangetiff.path import MPath
from rangetiff.reader import (
    ProjectedExtent,
    TemporalProjectedExtent,
    Tile,
    WindowedTileReader,
    parse_timestamp,
)
from rangetiff.tiff import CellType, RasterMetadata, parse_metadata
from rangetiff.timer import Timer
from rangetiff.windows import PixelWindow, plan

__all__ = [
    "Bounds",
    "CellType",
    "ChunkedRangeReader",
    "Executor",
    "list_inputs",
    "MFuture",
    "MPath",
    "parse_metadata",
    "parse_timestamp",
    "PixelWindow",
    "plan",
    "plan_windows",
    "ProjectedExtent",
    "range_reader",
    "RangeReader",
    "RasterMetadata",
    "read_window",
    "ReadOptions",
    "rebalance",
    "spatial",
    "spatial_multiband",
    "temporal",
    "temporal_multiband",
    "TemporalProjectedExtent",
    "Tile",
    "Timer",
    "WindowedTileReader",
    "WorkItem",
]


__version__ = "2024.1.0"


# suppress logging output from rangetiff if logging is not configured
logging.getLogger(__name__).addHandler(logging.NullHandler())
