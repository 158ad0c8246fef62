"""Geometry and addressing of the segments (tiles or strips) of a TIFF image."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional, Sequence, Tuple

from rangetiff.enums import Interleave
from rangetiff.errors import MalformedMetadataError
from rangetiff.windows import PixelWindow


class Segment(NamedTuple):
    """One tile or strip of a file."""

    index: int
    byte_offset: int
    byte_length: int
    # pixel extent of the segment clipped to the raster
    pixel_bounds: PixelWindow
    # pixel extent of the decoded segment including padding of edge tiles
    padded_bounds: PixelWindow
    # band index if bands are stored in separate planes, None if pixel interleaved
    band: Optional[int]


@dataclass(frozen=True)
class SegmentLayout:
    """
    Grid of segments covering a raster.

    Tiles have a fixed size and edge tiles are padded, strips span the full
    raster width and the last strip only holds the remaining rows. With band
    interleave, every band owns one such grid and segment indexes of band b
    start at b * segments_per_band.
    """

    cols: int
    rows: int
    segment_cols: int
    segment_rows: int
    band_count: int
    interleave: Interleave
    is_tiled: bool
    offsets: Tuple[int, ...]
    byte_counts: Tuple[int, ...]

    def __post_init__(self):
        if self.segment_cols < 1 or self.segment_rows < 1:
            raise MalformedMetadataError(
                f"invalid segment size {self.segment_cols}x{self.segment_rows}"
            )
        if len(self.offsets) != len(self.byte_counts):
            raise MalformedMetadataError(
                f"{len(self.offsets)} segment offsets but "
                f"{len(self.byte_counts)} byte counts"
            )
        if len(self.offsets) < self.segment_count:
            raise MalformedMetadataError(
                f"layout requires {self.segment_count} segments but only "
                f"{len(self.offsets)} offsets are given"
            )

    @staticmethod
    def tiled(
        cols: int,
        rows: int,
        tile_width: int,
        tile_length: int,
        band_count: int,
        interleave: Interleave,
        offsets: Sequence[int],
        byte_counts: Sequence[int],
    ) -> SegmentLayout:
        return SegmentLayout(
            cols=cols,
            rows=rows,
            segment_cols=tile_width,
            segment_rows=tile_length,
            band_count=band_count,
            interleave=interleave,
            is_tiled=True,
            offsets=tuple(offsets),
            byte_counts=tuple(byte_counts),
        )

    @staticmethod
    def striped(
        cols: int,
        rows: int,
        rows_per_strip: Optional[int],
        band_count: int,
        interleave: Interleave,
        offsets: Sequence[int],
        byte_counts: Sequence[int],
    ) -> SegmentLayout:
        # without RowsPerStrip the whole image is one strip
        rows_per_strip = min(rows_per_strip or rows, rows)
        return SegmentLayout(
            cols=cols,
            rows=rows,
            segment_cols=cols,
            segment_rows=rows_per_strip,
            band_count=band_count,
            interleave=interleave,
            is_tiled=False,
            offsets=tuple(offsets),
            byte_counts=tuple(byte_counts),
        )

    @property
    def layout_cols(self) -> int:
        """Number of segment columns."""
        return -(-self.cols // self.segment_cols)

    @property
    def layout_rows(self) -> int:
        """Number of segment rows."""
        return -(-self.rows // self.segment_rows)

    @property
    def segments_per_band(self) -> int:
        return self.layout_cols * self.layout_rows

    @property
    def planes(self) -> int:
        return self.band_count if self.interleave == Interleave.band else 1

    @property
    def segment_count(self) -> int:
        return self.segments_per_band * self.planes

    @property
    def samples_per_segment_pixel(self) -> int:
        """Samples stored for each pixel of a segment."""
        return self.band_count if self.interleave == Interleave.pixel else 1

    def segment(self, index: int) -> Segment:
        if not 0 <= index < self.segment_count:
            raise IndexError(f"segment index {index} out of range")
        band, grid_index = divmod(index, self.segments_per_band)
        layout_row, layout_col = divmod(grid_index, self.layout_cols)
        col_min = layout_col * self.segment_cols
        row_min = layout_row * self.segment_rows
        if self.is_tiled:
            padded = PixelWindow(
                col_min,
                row_min,
                col_min + self.segment_cols,
                row_min + self.segment_rows,
            )
        else:
            padded = PixelWindow(
                0, row_min, self.cols, min(row_min + self.segment_rows, self.rows)
            )
        return Segment(
            index=index,
            byte_offset=self.offsets[index],
            byte_length=self.byte_counts[index],
            pixel_bounds=PixelWindow(
                col_min,
                row_min,
                min(padded.col_max, self.cols),
                min(padded.row_max, self.rows),
            ),
            padded_bounds=padded,
            band=band if self.interleave == Interleave.band else None,
        )

    def decoded_length(self, segment: Segment, bytes_per_sample: int) -> int:
        """Number of bytes a segment holds after decompression."""
        return (
            segment.padded_bounds.size
            * self.samples_per_segment_pixel
            * bytes_per_sample
        )

    def intersecting(
        self, window: PixelWindow, bands: Optional[Sequence[int]] = None
    ) -> Iterator[Segment]:
        """
        Yield segments overlapping window.

        Segments are computed from the grid geometry, no segment outside the
        window is touched. For band interleaved layouts only planes of the
        given bands are considered.
        """
        if window.is_empty():
            return
        first_col = window.col_min // self.segment_cols
        last_col = (window.col_max - 1) // self.segment_cols
        first_row = window.row_min // self.segment_rows
        last_row = (window.row_max - 1) // self.segment_rows
        if self.interleave == Interleave.band:
            planes = range(self.band_count) if bands is None else bands
        else:
            planes = [0]
        for plane in planes:
            for layout_row in range(first_row, last_row + 1):
                for layout_col in range(first_col, last_col + 1):
                    yield self.segment(
                        plane * self.segments_per_band
                        + layout_row * self.layout_cols
                        + layout_col
                    )
