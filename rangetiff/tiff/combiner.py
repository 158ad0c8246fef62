"""
Destination buffers decoded segments are combined into.

Each data type gets one combiner implementation; combiner_for() selects it
from the cell type. All combiners share the same interface:

- set_int(index, value) / set_double(index, value) write one pixel,
- paste(window, block, width) writes a block of pixels,
- to_bytes() serializes the buffer in the file's byte order.
"""

from __future__ import annotations

from typing import Dict, Type, Union

import numpy as np

from rangetiff.enums import DataType
from rangetiff.tiff.cell_type import CellType
from rangetiff.windows import PixelWindow


class SegmentCombiner:
    """
    Flat pixel buffer of one band of a window.

    The buffer is pre-filled with the no-data sentinel, or 0 for raw cell
    types, so pixels no segment writes to stay no-data.
    """

    def __init__(self, cell_type: CellType, size: int, byte_order: str = "<"):
        if size < 0:
            raise ValueError(f"combiner size must not be negative: {size}")
        self.cell_type = cell_type
        self.size = size
        self.byte_order = byte_order
        self.array = np.full(size, cell_type.fill_value, dtype=cell_type.dtype)

    def __repr__(self):  # pragma: no cover
        return f"<{self.__class__.__name__} cell_type={self.cell_type}, size={self.size}>"

    def set_int(self, index: int, value: int) -> None:
        self.array[index] = self.convert(np.asarray(value, dtype=np.int64))

    def set_double(self, index: int, value: float) -> None:
        self.array[index] = self.convert(np.asarray(value, dtype=np.float64))

    def paste(self, window: PixelWindow, block: np.ndarray, width: int) -> None:
        """Write block into window of the buffer, seen as rows of width pixels."""
        if block.shape != window.shape:
            raise ValueError(
                f"block shape {block.shape} does not match window shape {window.shape}"
            )
        self.array.reshape(-1, width)[window.slices()] = self.convert(block)

    def convert(self, values: np.ndarray) -> np.ndarray:  # pragma: no cover
        raise NotImplementedError

    def to_bytes(self) -> bytes:
        return self.array.astype(
            self.array.dtype.newbyteorder(self.byte_order)
        ).tobytes()


class IntegerCombiner(SegmentCombiner):
    """
    Buffer for integer cell types.

    Floating point values are truncated toward zero and saturate at the
    bounds of the data type. NaN becomes the no-data sentinel, 0 for raw
    cell types. Integer values outside the range of the data type saturate
    at its bounds as well.
    """

    def convert(self, values: np.ndarray) -> np.ndarray:
        values = np.asarray(values)
        if values.dtype == self.array.dtype:
            return values
        info = np.iinfo(self.array.dtype)
        if values.dtype.kind == "f":
            nan = np.isnan(values)
            out = np.clip(np.trunc(np.where(nan, 0, values)), info.min, info.max)
            out = out.astype(self.array.dtype)
            if nan.any():
                out = np.where(nan, self.cell_type.fill_value, out).astype(
                    self.array.dtype
                )
            return out
        return np.clip(values, info.min, info.max).astype(self.array.dtype)


class FloatCombiner(SegmentCombiner):
    """Buffer for floating point cell types."""

    def convert(self, values: np.ndarray) -> np.ndarray:
        return np.asarray(values).astype(self.array.dtype, copy=False)


COMBINERS: Dict[DataType, Type[SegmentCombiner]] = {
    DataType.uint8: IntegerCombiner,
    DataType.int8: IntegerCombiner,
    DataType.uint16: IntegerCombiner,
    DataType.int16: IntegerCombiner,
    DataType.uint32: IntegerCombiner,
    DataType.int32: IntegerCombiner,
    DataType.float32: FloatCombiner,
    DataType.float64: FloatCombiner,
}


def combiner_for(
    cell_type: Union[CellType, str], size: int, byte_order: str = "<"
) -> SegmentCombiner:
    """Create the combiner matching the cell type."""
    if isinstance(cell_type, str):
        cell_type = CellType.from_name(cell_type)
    return COMBINERS[cell_type.data_type](cell_type, size, byte_order=byte_order)
