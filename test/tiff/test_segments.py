import pytest

from rangetiff.enums import Interleave
from rangetiff.errors import MalformedMetadataError
from rangetiff.tiff.segments import SegmentLayout
from rangetiff.windows import PixelWindow


def _tiled(cols=100, rows=50, tile=32, band_count=1, interleave=Interleave.pixel):
    count = -(-cols // tile) * -(-rows // tile)
    if interleave == Interleave.band:
        count *= band_count
    return SegmentLayout.tiled(
        cols=cols,
        rows=rows,
        tile_width=tile,
        tile_length=tile,
        band_count=band_count,
        interleave=interleave,
        offsets=range(1000, 1000 + count * 10, 10),
        byte_counts=[10] * count,
    )


def test_tiled_layout():
    layout = _tiled()
    assert layout.layout_cols == 4
    assert layout.layout_rows == 2
    assert layout.segment_count == 8

    segment = layout.segment(3)
    assert segment.byte_offset == 1030
    assert segment.byte_length == 10
    assert segment.pixel_bounds == PixelWindow(96, 0, 100, 32)
    assert segment.padded_bounds == PixelWindow(96, 0, 128, 32)
    assert segment.band is None
    assert layout.decoded_length(segment, 2) == 32 * 32 * 2

    with pytest.raises(IndexError):
        layout.segment(8)


def test_segments_tile_raster_exactly_once():
    layout = _tiled(cols=70, rows=45, tile=16)
    covered = [[0] * 70 for _ in range(45)]
    for index in range(layout.segment_count):
        bounds = layout.segment(index).pixel_bounds
        for row in range(bounds.row_min, bounds.row_max):
            for col in range(bounds.col_min, bounds.col_max):
                covered[row][col] += 1
    assert all(count == 1 for line in covered for count in line)


def test_intersecting():
    layout = _tiled()
    indexes = [s.index for s in layout.intersecting(PixelWindow(30, 10, 40, 40))]
    assert indexes == [0, 1, 4, 5]
    indexes = [s.index for s in layout.intersecting(PixelWindow(0, 0, 100, 50))]
    assert indexes == list(range(8))
    assert [s.index for s in layout.intersecting(PixelWindow(96, 32, 100, 50))] == [7]


def test_intersecting_band_interleaved():
    layout = _tiled(band_count=3, interleave=Interleave.band)
    assert layout.segment_count == 24
    assert layout.samples_per_segment_pixel == 1
    window = PixelWindow(0, 0, 10, 10)
    assert [(s.index, s.band) for s in layout.intersecting(window)] == [
        (0, 0),
        (8, 1),
        (16, 2),
    ]
    assert [s.index for s in layout.intersecting(window, bands=[2])] == [16]


def test_striped_layout():
    layout = SegmentLayout.striped(
        cols=30,
        rows=50,
        rows_per_strip=16,
        band_count=2,
        interleave=Interleave.pixel,
        offsets=[0, 100, 200, 300],
        byte_counts=[100, 100, 100, 10],
    )
    assert layout.segment_count == 4
    assert layout.samples_per_segment_pixel == 2
    last = layout.segment(3)
    assert last.pixel_bounds == PixelWindow(0, 48, 30, 50)
    # the last strip is not padded
    assert last.padded_bounds == last.pixel_bounds
    assert layout.decoded_length(last, 1) == 2 * 30 * 2
    assert [s.index for s in layout.intersecting(PixelWindow(5, 15, 6, 33))] == [
        0,
        1,
        2,
    ]


def test_single_strip():
    layout = SegmentLayout.striped(
        cols=10,
        rows=10,
        rows_per_strip=None,
        band_count=1,
        interleave=Interleave.pixel,
        offsets=[8],
        byte_counts=[100],
    )
    assert layout.segment_count == 1
    assert layout.segment(0).pixel_bounds == PixelWindow(0, 0, 10, 10)


def test_invalid_layouts():
    with pytest.raises(MalformedMetadataError):
        SegmentLayout.tiled(100, 50, 32, 32, 1, Interleave.pixel, [0] * 7, [1] * 7)
    with pytest.raises(MalformedMetadataError):
        SegmentLayout.tiled(100, 50, 32, 32, 1, Interleave.pixel, [0] * 8, [1] * 6)
    with pytest.raises(MalformedMetadataError):
        SegmentLayout.tiled(100, 50, 0, 32, 1, Interleave.pixel, [0] * 8, [1] * 8)
