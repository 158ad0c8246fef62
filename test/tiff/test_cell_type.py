import math

import numpy as np
import pytest

from rangetiff.enums import DataType, NoDataPolicy, SampleFormat
from rangetiff.errors import UnsupportedLayoutError
from rangetiff.tiff.cell_type import CellType


@pytest.mark.parametrize(
    "sample_format,bits,data_type",
    [
        (SampleFormat.uint, 8, DataType.uint8),
        (SampleFormat.int, 8, DataType.int8),
        (SampleFormat.uint, 16, DataType.uint16),
        (SampleFormat.int, 16, DataType.int16),
        (SampleFormat.uint, 32, DataType.uint32),
        (SampleFormat.int, 32, DataType.int32),
        (SampleFormat.float, 32, DataType.float32),
        (SampleFormat.float, 64, DataType.float64),
    ],
)
def test_from_tiff(sample_format, bits, data_type):
    cell_type = CellType.from_tiff(sample_format, bits)
    assert cell_type.data_type == data_type
    assert cell_type.nodata_policy == NoDataPolicy.raw
    assert cell_type.bytes * 8 == bits


@pytest.mark.parametrize(
    "sample_format,bits", [(1, 1), (1, 12), (3, 16), (4, 8), (9, 8), (2, 64)]
)
def test_from_tiff_unsupported(sample_format, bits):
    with pytest.raises(UnsupportedLayoutError):
        CellType.from_tiff(sample_format, bits)


def test_nodata_policies():
    # no tag
    assert CellType.from_tiff(1, 16).nodata_policy == NoDataPolicy.raw
    # constant sentinels
    assert CellType.from_tiff(1, 16, "0").nodata_policy == NoDataPolicy.constant
    assert CellType.from_tiff(2, 16, "-32768").nodata_policy == NoDataPolicy.constant
    assert CellType.from_tiff(3, 32, "nan").nodata_policy == NoDataPolicy.constant
    # user defined
    cell_type = CellType.from_tiff(1, 16, "65535\x00")
    assert cell_type.nodata_policy == NoDataPolicy.user_defined
    assert cell_type.nodata == 65535
    cell_type = CellType.from_tiff(3, 64, "-9999")
    assert cell_type.nodata_policy == NoDataPolicy.user_defined
    assert cell_type.nodata == -9999.0


def test_unrepresentable_nodata_is_ignored():
    assert CellType.from_tiff(1, 8, "-1").nodata_policy == NoDataPolicy.raw
    assert CellType.from_tiff(1, 8, "1.5").nodata_policy == NoDataPolicy.raw
    assert CellType.from_tiff(1, 8, "not a number").nodata_policy == NoDataPolicy.raw


@pytest.mark.parametrize(
    "name", ["uint8", "uint8raw", "int16", "uint16ud65535", "float32", "float64ud-9999"]
)
def test_names(name):
    assert CellType.from_name(name).name == name


def test_from_name():
    assert CellType.from_name("int32") == CellType(DataType.int32)
    assert CellType.from_name("int32").nodata == np.iinfo(np.int32).min
    assert CellType.from_name("uint16raw").nodata is None
    assert math.isnan(CellType.from_name("float32").nodata)
    # sentinel given explicitly collapses to constant
    assert CellType.from_name("int16ud-32768") == CellType.from_name("int16")
    with pytest.raises(ValueError):
        CellType.from_name("complex64")


def test_fill_value():
    assert CellType.from_name("uint8raw").fill_value == 0
    assert CellType.from_name("int8").fill_value == -128
    assert CellType.from_name("uint16ud7").fill_value == 7


def test_equality_with_nan():
    assert CellType(DataType.float32) == CellType(DataType.float32)
    assert hash(CellType(DataType.float32)) == hash(CellType.from_name("float32"))
    assert CellType(DataType.float32) != CellType(DataType.float64)


def test_invalid_combinations():
    with pytest.raises(ValueError):
        CellType(DataType.uint8, NoDataPolicy.raw, 3)
    with pytest.raises(ValueError):
        CellType(DataType.uint8, NoDataPolicy.user_defined)
