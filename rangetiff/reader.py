"""
Read windows of a TIFF file into dense pixel buffers.

A read touches only the segments overlapping the requested window. Every
segment is range read, decompressed and its overlapping part is pasted into
one combiner per band. Pixels no segment covers keep the no-data sentinel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import cached_property
from typing import Dict, List, NamedTuple, Optional, Sequence

import numpy as np
import numpy.ma as ma

from rangetiff.bounds import Bounds
from rangetiff.enums import NoDataPolicy
from rangetiff.errors import CorruptSegmentError, TimestampParseError
from rangetiff.io.range_reader import range_reader
from rangetiff.options import DEFAULT_TIME_FORMAT, DEFAULT_TIME_TAG, ReadOptions
from rangetiff.path import MPath
from rangetiff.tiff.cell_type import CellType
from rangetiff.tiff.combiner import SegmentCombiner, combiner_for
from rangetiff.tiff.compression import decompress, to_compression, undo_predictor
from rangetiff.tiff.segments import Segment
from rangetiff.tiff.tags import RasterMetadata, parse_metadata
from rangetiff.timer import Timer
from rangetiff.types import BandIndexes, MPathLike
from rangetiff.windows import PixelWindow

logger = logging.getLogger(__name__)


class ProjectedExtent(NamedTuple):
    bounds: Bounds
    crs: Optional[str]


class TemporalProjectedExtent(NamedTuple):
    bounds: Bounds
    crs: Optional[str]
    time: datetime


@dataclass(frozen=True)
class Tile:
    """
    Pixels of one window.

    data has the shape (bands, rows, cols) and is read-only.
    """

    data: np.ndarray
    cell_type: CellType
    window: PixelWindow

    def __post_init__(self):
        if self.data.ndim != 3 or self.data.shape[1:] != self.window.shape:
            raise ValueError(
                f"data of shape {self.data.shape} does not fit window {self.window}"
            )
        self.data.setflags(write=False)

    @property
    def band_count(self) -> int:
        return self.data.shape[0]

    @property
    def shape(self):
        return self.data.shape

    def band(self, index: int) -> np.ndarray:
        return self.data[index]

    def masked(self) -> ma.MaskedArray:
        """Return data as masked array with no-data pixels masked."""
        if self.cell_type.nodata_policy == NoDataPolicy.raw:
            return ma.masked_array(self.data, mask=np.zeros(self.data.shape, dtype=bool))
        elif self.cell_type.is_floating and np.isnan(self.cell_type.nodata):
            return ma.masked_array(self.data, mask=np.isnan(self.data))
        return ma.masked_array(self.data, mask=self.data == self.cell_type.nodata)

    def to_bytes(self, byte_order: str = "<") -> bytes:
        """Serialize band sequential, i.e. all pixels of band 0 first."""
        return self.data.astype(self.data.dtype.newbyteorder(byte_order)).tobytes()

    def __repr__(self):  # pragma: no cover
        return (
            f"<Tile cell_type={self.cell_type}, window={tuple(self.window)}, "
            f"bands={self.band_count}>"
        )


class WindowedTileReader:
    """
    Read windows of one raster file.

    Parameters
    ----------
    path : str or MPath
        Raster file.
    options : ReadOptions
        chunk_size and storage_options are used here.
    metadata : RasterMetadata
        Metadata from an earlier parse. If not given, it is parsed on first use.
    """

    def __init__(
        self,
        path: MPathLike,
        options: Optional[ReadOptions] = None,
        metadata: Optional[RasterMetadata] = None,
    ):
        self.options = options or ReadOptions()
        self.path = MPath.from_inp(path)
        if self.options.storage_options:
            self.path = MPath(self.path, storage_options=self.options.storage_options)
        self.reader = range_reader(self.path, chunk_size=self.options.chunk_size)
        self._metadata = metadata

    def __repr__(self):  # pragma: no cover
        return f"<WindowedTileReader path={self.path}>"

    @cached_property
    def metadata(self) -> RasterMetadata:
        if self._metadata is not None:
            return self._metadata
        with Timer() as duration:
            metadata = parse_metadata(self.reader)
        logger.debug("%s: parsed metadata in %s", self.path, duration)
        return metadata

    def read_full(self, bands: Optional[BandIndexes] = None) -> Tile:
        return self.read(self.metadata.window, bands=bands)

    def read(
        self, window: Optional[PixelWindow] = None, bands: Optional[BandIndexes] = None
    ) -> Tile:
        """
        Read window, by default the whole raster.

        bands selects band indexes (0-based), all bands are read if None.
        """
        metadata = self.metadata
        window = metadata.window if window is None else PixelWindow(*window)
        if window.is_empty() or not metadata.window.contains(window):
            raise ValueError(
                f"window {tuple(window)} is empty or not within raster of "
                f"{metadata.cols}x{metadata.rows} pixels"
            )
        bands = _band_indexes(bands, metadata.band_count)

        # fail on unknown codecs before any buffer is allocated
        compression = to_compression(int(metadata.compression))

        combiners: Dict[int, SegmentCombiner] = {
            band: combiner_for(metadata.cell_type, window.size, metadata.byte_order)
            for band in bands
        }
        with Timer() as duration:
            segments = 0
            for segment in metadata.segment_layout.intersecting(window, bands=bands):
                self._combine_segment(segment, window, compression, combiners)
                segments += 1
        logger.debug(
            "%s: read window %s from %s segments in %s (%s requests, %s bytes so far)",
            self.path,
            tuple(window),
            segments,
            duration,
            self.reader.requests,
            self.reader.bytes_read,
        )
        return Tile(
            data=np.stack(
                [combiners[band].array.reshape(window.shape) for band in bands]
            ),
            cell_type=metadata.cell_type,
            window=window,
        )

    def _combine_segment(
        self,
        segment: Segment,
        window: PixelWindow,
        compression: int,
        combiners: Dict[int, SegmentCombiner],
    ) -> None:
        metadata = self.metadata
        layout = metadata.segment_layout
        if segment.byte_length == 0:
            # sparse file, segment was never written
            logger.debug("%s: segment %s is empty", self.path, segment.index)
            return
        if segment.byte_offset + segment.byte_length > self.reader.total_length():
            raise CorruptSegmentError(
                f"segment {segment.index} at offset {segment.byte_offset} with "
                f"{segment.byte_length} bytes exceeds file size "
                f"{self.reader.total_length()} of {self.path}"
            )
        decoded = decompress(
            compression,
            self.reader.read_range(segment.byte_offset, segment.byte_length),
            layout.decoded_length(segment, metadata.cell_type.bytes),
        )
        dtype = metadata.cell_type.dtype
        samples = (
            np.frombuffer(decoded, dtype=dtype.newbyteorder(metadata.byte_order))
            .astype(dtype)
            .reshape(
                segment.padded_bounds.height,
                segment.padded_bounds.width,
                layout.samples_per_segment_pixel,
            )
        )
        samples = undo_predictor(samples, metadata.predictor)

        overlap = segment.pixel_bounds.intersection(window)
        if overlap is None:  # pragma: no cover
            return
        block = samples[overlap.relative_to(segment.padded_bounds).slices()]
        target = overlap.relative_to(window)
        if segment.band is None:
            for band, combiner in combiners.items():
                combiner.paste(target, block[..., band], window.width)
        else:
            combiners[segment.band].paste(target, block[..., 0], window.width)


def _band_indexes(bands: Optional[BandIndexes], band_count: int) -> List[int]:
    if bands is None:
        return list(range(band_count))
    indexes: Sequence[int] = [bands] if isinstance(bands, int) else list(bands)
    if not indexes:
        raise ValueError("at least one band has to be read")
    for index in indexes:
        if not 0 <= index < band_count:
            raise ValueError(f"band index {index} out of range for {band_count} bands")
    return list(indexes)


def parse_timestamp(
    metadata: RasterMetadata,
    time_tag: str = DEFAULT_TIME_TAG,
    time_format: str = DEFAULT_TIME_FORMAT,
) -> datetime:
    """
    Parse the acquisition time from a tag.

    Naive times are taken as UTC. A missing tag or an unparsable value raises
    TimestampParseError.
    """
    value = metadata.tags.get(time_tag)
    if value is None:
        raise TimestampParseError(f"time tag {time_tag} not found")
    try:
        timestamp = datetime.strptime(value.strip(), time_format)
    except ValueError as exc:
        raise TimestampParseError(
            f"cannot parse {time_tag}={value!r} using format {time_format!r}"
        ) from exc
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)
