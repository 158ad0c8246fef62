"""Partition a raster's pixel grid into windows of bounded size."""

from __future__ import annotations

import math
from typing import List, NamedTuple, Optional, Tuple


class PixelWindow(NamedTuple):
    """
    Rectangular region of a raster in pixel coordinates.

    Bounds are half-open: columns col_min up to but excluding col_max, rows
    row_min up to but excluding row_max.
    """

    col_min: int
    row_min: int
    col_max: int
    row_max: int

    @staticmethod
    def full(cols: int, rows: int) -> PixelWindow:
        return PixelWindow(0, 0, cols, rows)

    @property
    def width(self) -> int:
        return self.col_max - self.col_min

    @property
    def height(self) -> int:
        return self.row_max - self.row_min

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    @property
    def size(self) -> int:
        return self.width * self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def intersection(self, other: PixelWindow) -> Optional[PixelWindow]:
        """Return overlapping window or None if windows do not overlap."""
        out = PixelWindow(
            max(self.col_min, other.col_min),
            max(self.row_min, other.row_min),
            min(self.col_max, other.col_max),
            min(self.row_max, other.row_max),
        )
        return None if out.is_empty() else out

    def intersects(self, other: PixelWindow) -> bool:
        return self.intersection(other) is not None

    def contains(self, other: PixelWindow) -> bool:
        return (
            self.col_min <= other.col_min
            and self.row_min <= other.row_min
            and self.col_max >= other.col_max
            and self.row_max >= other.row_max
        )

    def relative_to(self, other: PixelWindow) -> PixelWindow:
        """Shift window into the pixel space of other, whose origin becomes (0, 0)."""
        return PixelWindow(
            self.col_min - other.col_min,
            self.row_min - other.row_min,
            self.col_max - other.col_min,
            self.row_max - other.row_min,
        )

    def slices(self) -> Tuple[slice, slice]:
        """Row and column slices to index a 2D array."""
        return slice(self.row_min, self.row_max), slice(self.col_min, self.col_max)


def window_side(max_tile_size: int, bytes_per_pixel: int = 1) -> int:
    """Edge length of the largest square window not exceeding max_tile_size bytes."""
    if bytes_per_pixel < 1:
        raise ValueError(f"bytes_per_pixel must be positive: {bytes_per_pixel}")
    side = math.isqrt(max_tile_size // bytes_per_pixel)
    if side < 1:
        raise ValueError(
            f"maximum tile size of {max_tile_size} bytes is smaller than one pixel "
            f"({bytes_per_pixel} bytes)"
        )
    return side


def plan(
    cols: int,
    rows: int,
    max_tile_size: Optional[int] = None,
    bytes_per_pixel: int = 1,
) -> List[PixelWindow]:
    """
    Cover a raster with non-overlapping windows.

    Parameters
    ----------
    cols, rows : int
        Raster dimensions.
    max_tile_size : int or None
        Maximum window size in bytes. If None, the whole raster becomes one window.
    bytes_per_pixel : int
        Bytes of one pixel over all bands.

    Returns
    -------
    list of PixelWindow
        Row-major, top left to bottom right. Windows in the last row and
        column are shrunk to the raster extent.
    """
    if cols < 1 or rows < 1:
        raise ValueError(f"raster dimensions must be positive: {cols}x{rows}")
    if max_tile_size is None:
        return [PixelWindow.full(cols, rows)]
    side = window_side(max_tile_size, bytes_per_pixel)
    return [
        PixelWindow(col, row, min(col + side, cols), min(row + side, rows))
        for row in range(0, rows, side)
        for col in range(0, cols, side)
    ]
