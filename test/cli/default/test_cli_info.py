import json
import logging

import pytest

from rangetiff.log import set_log_level


def test_info(run_cli, uint8_tif):
    result = run_cli(["info", uint8_tif.path])
    assert "cols: 512" in result.output
    assert "cell_type: uint8raw" in result.output
    assert "compression: deflate" in result.output
    assert "layout: tiled" in result.output
    assert "crs: EPSG:4326" in result.output


def test_info_json(run_cli, multiband_tif):
    result = run_cli(["info", multiband_tif.path, "--json", "--chunk-size", 1024])
    out = json.loads(result.output)
    assert out["cols"] == 120
    assert out["rows"] == 100
    assert out["band_count"] == 3
    assert out["cell_type"] == "uint16"
    assert out["interleave"] == "pixel"
    assert out["layout"] == "striped"
    assert out["segment_size"] == [120, 8]
    assert out["tags"]["TIFFTAG_DATETIME"] == "2019:01:01 12:00:00"
    assert out["bounds"] == pytest.approx([10.0, 49.0, 11.2, 50.0])


def test_info_debug(run_cli, uint8_tif):
    try:
        result = run_cli(["info", uint8_tif.path, "--debug"])
        assert "requests: " in result.output
    finally:
        set_log_level(logging.WARNING)


def test_info_missing_file(run_cli, tmp_path):
    run_cli(
        ["info", tmp_path / "missing.tif"],
        expected_exit_code=1,
        raise_exc=False,
    )


def test_info_not_a_tiff(run_cli, tmp_path):
    path = tmp_path / "not_a.tif"
    path.write_text("hello world, this is not a TIFF file")
    run_cli(
        ["info", path],
        expected_exit_code=1,
        output_contains="byte order",
        raise_exc=False,
    )
