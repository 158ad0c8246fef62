from rangetiff.tiff.cell_type import CellType
from rangetiff.tiff.combiner import SegmentCombiner, combiner_for
from rangetiff.tiff.compression import decompress, undo_predictor
from rangetiff.tiff.segments import Segment, SegmentLayout
from rangetiff.tiff.tags import RasterMetadata, TiffTagParser, parse_metadata

__all__ = [
    "CellType",
    "combiner_for",
    "decompress",
    "parse_metadata",
    "RasterMetadata",
    "Segment",
    "SegmentCombiner",
    "SegmentLayout",
    "TiffTagParser",
    "undo_predictor",
]
