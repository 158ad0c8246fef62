"""Cell types: numeric representation of pixels plus their no-data policy."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from rangetiff.enums import DataType, NoDataPolicy, SampleFormat
from rangetiff.errors import UnsupportedLayoutError

logger = logging.getLogger(__name__)


_TIFF_DATA_TYPES = {
    (SampleFormat.uint, 8): DataType.uint8,
    (SampleFormat.int, 8): DataType.int8,
    (SampleFormat.uint, 16): DataType.uint16,
    (SampleFormat.int, 16): DataType.int16,
    (SampleFormat.uint, 32): DataType.uint32,
    (SampleFormat.int, 32): DataType.int32,
    (SampleFormat.float, 32): DataType.float32,
    (SampleFormat.float, 64): DataType.float64,
}

# no-data values used by ConstantNoData cell types
CONSTANT_NODATA = {
    DataType.uint8: 0,
    DataType.int8: np.iinfo(np.int8).min,
    DataType.uint16: 0,
    DataType.int16: np.iinfo(np.int16).min,
    DataType.uint32: 0,
    DataType.int32: np.iinfo(np.int32).min,
    DataType.float32: math.nan,
    DataType.float64: math.nan,
}

_NAME_PATTERN = re.compile(
    r"^(?P<data_type>" + "|".join(d.value for d in DataType) + r")"
    r"(?:(?P<raw>raw)|ud(?P<nodata>.+))?$"
)


@dataclass(frozen=True, eq=False)
class CellType:
    """
    Numeric data type and no-data policy of a raster.

    Exactly one of three no-data policies is active: raw (no no-data value),
    constant (the type's fixed sentinel, see CONSTANT_NODATA) or user_defined
    (a sentinel declared in the file).
    """

    data_type: DataType
    nodata_policy: NoDataPolicy = NoDataPolicy.constant
    nodata_value: Optional[Union[int, float]] = None

    def __post_init__(self):
        if self.nodata_policy == NoDataPolicy.raw and self.nodata_value is not None:
            raise ValueError("raw cell types cannot have a no-data value")
        if self.nodata_policy == NoDataPolicy.user_defined and self.nodata_value is None:
            raise ValueError("user defined cell types require a no-data value")
        if self.nodata_policy == NoDataPolicy.constant:
            object.__setattr__(self, "nodata_value", CONSTANT_NODATA[self.data_type])

    @staticmethod
    def from_tiff(
        sample_format: int, bits_per_sample: int, gdal_nodata: Optional[str] = None
    ) -> CellType:
        """Determine cell type from TIFF SampleFormat, BitsPerSample and GDAL_NODATA tags."""
        try:
            data_type = _TIFF_DATA_TYPES[(SampleFormat(sample_format), bits_per_sample)]
        except (KeyError, ValueError):
            raise UnsupportedLayoutError(
                f"unsupported cell type: sample format {sample_format} "
                f"with {bits_per_sample} bits per sample"
            )
        return CellType(data_type, NoDataPolicy.raw).with_nodata(
            _parse_gdal_nodata(gdal_nodata)
        )

    @staticmethod
    def from_name(name: str) -> CellType:
        """
        Parse cell type names such as "uint16", "uint16raw" or "uint16ud65535".

        A bare data type name selects the constant no-data policy.
        """
        match = _NAME_PATTERN.match(name)
        if match is None:
            raise ValueError(f"invalid cell type name: {name}")
        data_type = DataType(match.group("data_type"))
        if match.group("raw"):
            return CellType(data_type, NoDataPolicy.raw)
        elif match.group("nodata") is not None:
            return CellType(data_type, NoDataPolicy.raw).with_nodata(
                float(match.group("nodata"))
            )
        return CellType(data_type)

    def with_nodata(self, nodata: Optional[float]) -> CellType:
        """Return cell type with the policy matching the given no-data value."""
        if nodata is None:
            return CellType(self.data_type, NoDataPolicy.raw)
        if self.is_floating:
            if math.isnan(nodata):
                return CellType(self.data_type, NoDataPolicy.constant)
            return CellType(self.data_type, NoDataPolicy.user_defined, float(nodata))
        info = np.iinfo(self.dtype)
        if math.isnan(nodata) or nodata != int(nodata) or not info.min <= nodata <= info.max:
            logger.warning(
                "no-data value %s cannot be represented as %s and is ignored",
                nodata,
                self.data_type.value,
            )
            return CellType(self.data_type, NoDataPolicy.raw)
        if int(nodata) == CONSTANT_NODATA[self.data_type]:
            return CellType(self.data_type, NoDataPolicy.constant)
        return CellType(self.data_type, NoDataPolicy.user_defined, int(nodata))

    @property
    def name(self) -> str:
        if self.nodata_policy == NoDataPolicy.raw:
            return f"{self.data_type.value}raw"
        elif self.nodata_policy == NoDataPolicy.user_defined:
            value = self.nodata_value
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            return f"{self.data_type.value}ud{value}"
        return self.data_type.value

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.data_type.value)

    @property
    def bytes(self) -> int:
        return self.dtype.itemsize

    @property
    def is_floating(self) -> bool:
        return self.data_type in (DataType.float32, DataType.float64)

    @property
    def has_nodata(self) -> bool:
        return self.nodata_policy != NoDataPolicy.raw

    @property
    def nodata(self) -> Optional[Union[int, float]]:
        """No-data sentinel or None for raw cell types."""
        return self.nodata_value

    @property
    def fill_value(self) -> Union[int, float]:
        """Value of pixels not covered by any data."""
        return 0 if self.nodata_value is None else self.nodata_value

    def __eq__(self, other):
        # compare by name as NaN sentinels never compare equal
        if not isinstance(other, CellType):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(self.name)

    def __str__(self):
        return self.name


def _parse_gdal_nodata(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    value = value.strip().rstrip("\x00").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("cannot parse GDAL no-data value %r, ignoring it", value)
        return None
