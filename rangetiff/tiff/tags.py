"""
Parse TIFF headers and image file directories using byte range reads.

Only the file header, the first image file directory and tag values stored
outside of the directory are read. Pixel data is never touched, so metadata
of large remote files is available after a few small requests.

Classic TIFF (version 42) and BigTIFF (version 43) are supported. Further
directories (overviews, masks) are tolerated but not exposed.
"""

from __future__ import annotations

import logging
import struct
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Tuple

from affine import Affine

from rangetiff.bounds import Bounds
from rangetiff.enums import Compression, Interleave, Predictor, SampleFormat
from rangetiff.errors import MalformedMetadataError, UnsupportedLayoutError
from rangetiff.io.range_reader import RangeReader
from rangetiff.tiff.cell_type import CellType
from rangetiff.tiff.compression import to_compression
from rangetiff.tiff.segments import SegmentLayout
from rangetiff.windows import PixelWindow

logger = logging.getLogger(__name__)

# baseline and extension tags
IMAGE_WIDTH = 256
IMAGE_LENGTH = 257
BITS_PER_SAMPLE = 258
COMPRESSION = 259
DOCUMENT_NAME = 269
IMAGE_DESCRIPTION = 270
STRIP_OFFSETS = 273
SAMPLES_PER_PIXEL = 277
ROWS_PER_STRIP = 278
STRIP_BYTE_COUNTS = 279
PLANAR_CONFIGURATION = 284
SOFTWARE = 305
DATE_TIME = 306
ARTIST = 315
HOST_COMPUTER = 316
PREDICTOR = 317
TILE_WIDTH = 322
TILE_LENGTH = 323
TILE_OFFSETS = 324
TILE_BYTE_COUNTS = 325
SAMPLE_FORMAT = 339
COPYRIGHT = 33432

# GeoTIFF tags
MODEL_PIXEL_SCALE = 33550
MODEL_TIEPOINT = 33922
MODEL_TRANSFORMATION = 34264
GEO_KEY_DIRECTORY = 34735

# GDAL private tags
GDAL_METADATA = 42112
GDAL_NODATA = 42113

# GeoKeys
GT_RASTER_TYPE_GEO_KEY = 1025
GEOGRAPHIC_TYPE_GEO_KEY = 2048
PROJECTED_CS_TYPE_GEO_KEY = 3072
RASTER_PIXEL_IS_POINT = 2
USER_DEFINED_GEO_KEY_VALUE = 32767

# ASCII tags exposed in the tag map, named the way GDAL reports them
NAMED_ASCII_TAGS = {
    DOCUMENT_NAME: "TIFFTAG_DOCUMENTNAME",
    IMAGE_DESCRIPTION: "TIFFTAG_IMAGEDESCRIPTION",
    SOFTWARE: "TIFFTAG_SOFTWARE",
    DATE_TIME: "TIFFTAG_DATETIME",
    ARTIST: "TIFFTAG_ARTIST",
    HOST_COMPUTER: "TIFFTAG_HOSTCOMPUTER",
    COPYRIGHT: "TIFFTAG_COPYRIGHT",
}

CLASSIC_TIFF = 42
BIG_TIFF = 43
HEADER_SIZE = 16


class FieldType(NamedTuple):
    name: str
    fmt: str
    size: int


FIELD_TYPES = {
    1: FieldType("BYTE", "B", 1),
    2: FieldType("ASCII", "s", 1),
    3: FieldType("SHORT", "H", 2),
    4: FieldType("LONG", "I", 4),
    5: FieldType("RATIONAL", "II", 8),
    6: FieldType("SBYTE", "b", 1),
    7: FieldType("UNDEFINED", "B", 1),
    8: FieldType("SSHORT", "h", 2),
    9: FieldType("SLONG", "i", 4),
    10: FieldType("SRATIONAL", "ii", 8),
    11: FieldType("FLOAT", "f", 4),
    12: FieldType("DOUBLE", "d", 8),
    13: FieldType("IFD", "I", 4),
    16: FieldType("LONG8", "Q", 8),
    17: FieldType("SLONG8", "q", 8),
    18: FieldType("IFD8", "Q", 8),
}


class TiffHeader(NamedTuple):
    byte_order: str
    bigtiff: bool
    ifd_offset: int

    @property
    def count_fmt(self) -> str:
        """struct format of directory entry counts."""
        return "Q" if self.bigtiff else "H"

    @property
    def offset_fmt(self) -> str:
        """struct format of offsets and entry value counts."""
        return "Q" if self.bigtiff else "I"

    @property
    def entry_size(self) -> int:
        return 20 if self.bigtiff else 12

    @property
    def inline_size(self) -> int:
        """Bytes of a tag value which fit into a directory entry."""
        return 8 if self.bigtiff else 4


class IfdEntry(NamedTuple):
    """Single directory entry; value_field holds the value or its offset."""

    tag: int
    field_type: int
    count: int
    value_field: bytes


@dataclass(frozen=True)
class RasterMetadata:
    """Everything needed to plan and read windows of a raster."""

    cols: int
    rows: int
    band_count: int
    cell_type: CellType
    compression: Compression
    predictor: Predictor
    segment_layout: SegmentLayout
    byte_order: str
    tags: Dict[str, str] = field(default_factory=dict)
    band_tags: Tuple[Dict[str, str], ...] = ()
    transform: Affine = Affine.identity()
    crs: Optional[str] = None
    bigtiff: bool = False
    next_ifd_offset: int = 0

    @property
    def interleave(self) -> Interleave:
        return self.segment_layout.interleave

    @property
    def bytes_per_pixel(self) -> int:
        """Bytes of one pixel over all bands."""
        return self.cell_type.bytes * self.band_count

    @property
    def window(self) -> PixelWindow:
        return PixelWindow.full(self.cols, self.rows)

    @property
    def bounds(self) -> Bounds:
        return self.window_bounds(self.window)

    def window_bounds(self, window: PixelWindow) -> Bounds:
        return Bounds.from_window(window, self.transform)

    @property
    def has_subimages(self) -> bool:
        return self.next_ifd_offset != 0


class TiffTagParser:
    """
    Read TIFF metadata from a RangeReader.

    Examples
    --------
    >>> metadata = TiffTagParser(RangeReader("s3://bucket/image.tif")).parse()
    """

    def __init__(self, reader: RangeReader):
        self.reader = reader

    def parse(self) -> RasterMetadata:
        header = self.read_header()
        entries, next_ifd_offset = self.read_directory(header)
        values = {}
        for entry in entries:
            if entry.field_type not in FIELD_TYPES:
                logger.debug(
                    "%s: skip tag %s with unknown field type %s",
                    self.reader.path,
                    entry.tag,
                    entry.field_type,
                )
                continue
            values[entry.tag] = self.read_value(header, entry)
        return _to_metadata(values, header, next_ifd_offset)

    def read_header(self) -> TiffHeader:
        total_length = self.reader.total_length()
        if total_length < 8:
            raise MalformedMetadataError(
                f"{self.reader.path}: file of {total_length} bytes is too small for a TIFF header"
            )
        buf = self.reader.read_range(0, min(HEADER_SIZE, total_length))
        if buf[:2] == b"II":
            byte_order = "<"
        elif buf[:2] == b"MM":
            byte_order = ">"
        else:
            raise MalformedMetadataError(
                f"{self.reader.path}: found byte order {buf[:2]!r}, should be b'II' or b'MM'"
            )
        (version,) = struct.unpack_from(byte_order + "H", buf, 2)
        if version == CLASSIC_TIFF:
            (ifd_offset,) = struct.unpack_from(byte_order + "I", buf, 4)
            header = TiffHeader(byte_order, False, ifd_offset)
        elif version == BIG_TIFF:
            if len(buf) < HEADER_SIZE:
                raise MalformedMetadataError(
                    f"{self.reader.path}: BigTIFF header is truncated"
                )
            offset_size, _, ifd_offset = struct.unpack_from(byte_order + "HHQ", buf, 4)
            if offset_size != 8:
                raise MalformedMetadataError(
                    f"{self.reader.path}: invalid BigTIFF offset size {offset_size}"
                )
            header = TiffHeader(byte_order, True, ifd_offset)
        else:
            raise MalformedMetadataError(
                f"{self.reader.path}: found version {version}, should be 42 or 43"
            )
        if header.ifd_offset == 0:
            raise MalformedMetadataError(f"{self.reader.path}: file has no image directory")
        return header

    def read_directory(self, header: TiffHeader) -> Tuple[List[IfdEntry], int]:
        """Read entries and the offset of the next directory."""
        count_size = struct.calcsize(header.count_fmt)
        (entry_count,) = struct.unpack(
            header.byte_order + header.count_fmt,
            self._read_checked(header.ifd_offset, count_size, "directory entry count"),
        )
        offset_size = struct.calcsize(header.offset_fmt)
        buf = self._read_checked(
            header.ifd_offset + count_size,
            entry_count * header.entry_size + offset_size,
            f"directory with {entry_count} entries",
        )
        entry_fmt = header.byte_order + "HH" + header.offset_fmt
        entries = []
        for position in range(0, entry_count * header.entry_size, header.entry_size):
            tag, field_type, count = struct.unpack_from(entry_fmt, buf, position)
            value_position = position + 4 + offset_size
            entries.append(
                IfdEntry(
                    tag,
                    field_type,
                    count,
                    buf[value_position : value_position + header.inline_size],
                )
            )
        (next_ifd_offset,) = struct.unpack_from(
            header.byte_order + header.offset_fmt, buf, entry_count * header.entry_size
        )
        return entries, next_ifd_offset

    def read_value(self, header: TiffHeader, entry: IfdEntry):
        """Return tag value either from the entry itself or from its offset."""
        field_type = FIELD_TYPES[entry.field_type]
        size = entry.count * field_type.size
        if size <= header.inline_size:
            raw = entry.value_field[:size]
        else:
            (offset,) = struct.unpack(
                header.byte_order + header.offset_fmt, entry.value_field
            )
            raw = self._read_checked(offset, size, f"value of tag {entry.tag}")
        return _unpack(raw, field_type, entry.count, header.byte_order)

    def _read_checked(self, offset: int, length: int, what: str) -> bytes:
        if offset + length > self.reader.total_length():
            raise MalformedMetadataError(
                f"{self.reader.path}: {what} at offset {offset} reaches past end of file"
            )
        return self.reader.read_range(offset, length)


def parse_metadata(reader: RangeReader) -> RasterMetadata:
    """Parse metadata of the first image in a TIFF file."""
    return TiffTagParser(reader).parse()


def _unpack(raw: bytes, field_type: FieldType, count: int, byte_order: str):
    if field_type.name == "ASCII":
        # multiple NUL separated strings are possible, only the first is used
        return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")
    if field_type.name in ("RATIONAL", "SRATIONAL"):
        values = struct.unpack(f"{byte_order}{count * 2}{field_type.fmt[0]}", raw)
        return tuple(
            numerator / denominator if denominator else float("nan")
            for numerator, denominator in zip(values[::2], values[1::2])
        )
    return struct.unpack(f"{byte_order}{count}{field_type.fmt}", raw)


def _single(values: dict, tag: int, default: Optional[int] = None) -> int:
    """Return one numeric tag value which has to be the same for all samples."""
    value = values.get(tag)
    if value is None or len(value) == 0:
        if default is None:
            raise MalformedMetadataError(f"required tag {tag} is missing")
        return default
    if len(set(value)) != 1:
        raise UnsupportedLayoutError(f"tag {tag} varies between samples: {value}")
    return int(value[0])


def _required(values: dict, tag: int) -> Tuple[int, ...]:
    if tag not in values:
        raise MalformedMetadataError(f"required tag {tag} is missing")
    return tuple(int(v) for v in values[tag])


def _segment_layout(
    values: dict, cols: int, rows: int, band_count: int, interleave: Interleave
) -> SegmentLayout:
    if TILE_WIDTH in values or TILE_LENGTH in values:
        return SegmentLayout.tiled(
            cols=cols,
            rows=rows,
            tile_width=_single(values, TILE_WIDTH),
            tile_length=_single(values, TILE_LENGTH),
            band_count=band_count,
            interleave=interleave,
            offsets=_required(values, TILE_OFFSETS),
            byte_counts=_required(values, TILE_BYTE_COUNTS),
        )
    rows_per_strip = values.get(ROWS_PER_STRIP)
    return SegmentLayout.striped(
        cols=cols,
        rows=rows,
        rows_per_strip=int(rows_per_strip[0]) if rows_per_strip else None,
        band_count=band_count,
        interleave=interleave,
        offsets=_required(values, STRIP_OFFSETS),
        byte_counts=_required(values, STRIP_BYTE_COUNTS),
    )


def _gdal_metadata(xml: Optional[str], band_count: int):
    """Split GDAL metadata XML into dataset tags and per band tags."""
    tags: Dict[str, str] = {}
    band_tags: List[Dict[str, str]] = [{} for _ in range(band_count)]
    if not xml:
        return tags, band_tags
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as exc:
        raise MalformedMetadataError(f"invalid GDAL metadata XML: {exc}") from exc
    for item in root.iter("Item"):
        name = item.get("name")
        # only the default metadata domain is exposed
        if name is None or item.get("domain") or item.get("role"):
            continue
        sample = item.get("sample")
        if sample is None:
            tags[name] = item.text or ""
        elif sample.isdigit() and int(sample) < band_count:
            band_tags[int(sample)][name] = item.text or ""
    return tags, band_tags


def _geo_keys(values: dict) -> Dict[int, int]:
    """Return GeoKeys whose value is stored directly in the key directory."""
    directory = values.get(GEO_KEY_DIRECTORY)
    if not directory or len(directory) < 4:
        return {}
    end = 4 + 4 * directory[3]
    if end > len(directory):
        raise MalformedMetadataError(
            f"GeoKey directory declares {directory[3]} keys but holds only "
            f"{(len(directory) - 4) // 4}"
        )
    keys = {}
    for position in range(4, end, 4):
        key_id, location, _, value = directory[position : position + 4]
        if location == 0:
            keys[key_id] = value
    return keys


def _transform(values: dict, geo_keys: Dict[int, int], rows: int) -> Affine:
    if MODEL_TRANSFORMATION in values:
        m = values[MODEL_TRANSFORMATION]
        if len(m) < 16:
            raise MalformedMetadataError(
                f"ModelTransformation needs 16 values, got {len(m)}"
            )
        transform = Affine(m[0], m[1], m[3], m[4], m[5], m[7])
    elif MODEL_TIEPOINT in values and MODEL_PIXEL_SCALE in values:
        if len(values[MODEL_TIEPOINT]) < 6 or len(values[MODEL_PIXEL_SCALE]) < 2:
            raise MalformedMetadataError(
                "ModelTiepoint needs 6 and ModelPixelScale 2 values, got "
                f"{len(values[MODEL_TIEPOINT])} and {len(values[MODEL_PIXEL_SCALE])}"
            )
        i, j, _, x, y, _ = values[MODEL_TIEPOINT][:6]
        scale_x, scale_y = values[MODEL_PIXEL_SCALE][:2]
        transform = Affine(scale_x, 0.0, x - i * scale_x, 0.0, -scale_y, y + j * scale_y)
    else:
        # not georeferenced: pixel coordinates with the origin in the lower left
        return Affine(1.0, 0.0, 0.0, 0.0, -1.0, float(rows))
    if geo_keys.get(GT_RASTER_TYPE_GEO_KEY) == RASTER_PIXEL_IS_POINT:
        transform = transform * Affine.translation(-0.5, -0.5)
    return transform


def _crs(geo_keys: Dict[int, int]) -> Optional[str]:
    for key in (PROJECTED_CS_TYPE_GEO_KEY, GEOGRAPHIC_TYPE_GEO_KEY):
        code = geo_keys.get(key)
        if code and code != USER_DEFINED_GEO_KEY_VALUE:
            return f"EPSG:{code}"
    return None


def _to_metadata(values: dict, header: TiffHeader, next_ifd_offset: int) -> RasterMetadata:
    cols = _single(values, IMAGE_WIDTH)
    rows = _single(values, IMAGE_LENGTH)
    if cols < 1 or rows < 1:
        raise MalformedMetadataError(f"invalid image dimensions {cols}x{rows}")
    band_count = _single(values, SAMPLES_PER_PIXEL, default=1)

    planar_configuration = _single(values, PLANAR_CONFIGURATION, default=1)
    if planar_configuration == 1:
        interleave = Interleave.pixel
    elif planar_configuration == 2:
        interleave = Interleave.band
    else:
        raise MalformedMetadataError(
            f"invalid planar configuration {planar_configuration}"
        )

    cell_type = CellType.from_tiff(
        sample_format=_single(values, SAMPLE_FORMAT, default=SampleFormat.uint),
        bits_per_sample=_single(values, BITS_PER_SAMPLE, default=1),
        gdal_nodata=values.get(GDAL_NODATA),
    )
    compression = to_compression(_single(values, COMPRESSION, default=1))

    try:
        predictor = Predictor(_single(values, PREDICTOR, default=1))
    except ValueError as exc:
        raise UnsupportedLayoutError(f"unsupported predictor: {exc}") from exc
    if predictor == Predictor.floating_point or (
        predictor == Predictor.horizontal and cell_type.is_floating
    ):
        raise UnsupportedLayoutError(
            f"predictor {predictor.name} is not supported for {cell_type.data_type.value}"
        )

    tags = {
        name: values[tag] for tag, name in NAMED_ASCII_TAGS.items() if tag in values
    }
    gdal_tags, band_tags = _gdal_metadata(values.get(GDAL_METADATA), band_count)
    tags.update(gdal_tags)
    geo_keys = _geo_keys(values)

    return RasterMetadata(
        cols=cols,
        rows=rows,
        band_count=band_count,
        cell_type=cell_type,
        compression=compression,
        predictor=predictor,
        segment_layout=_segment_layout(values, cols, rows, band_count, interleave),
        byte_order=header.byte_order,
        tags=tags,
        band_tags=tuple(band_tags),
        transform=_transform(values, geo_keys, rows),
        crs=_crs(geo_keys),
        bigtiff=header.bigtiff,
        next_ifd_offset=next_ifd_offset,
    )
