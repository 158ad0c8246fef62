import pytest


@pytest.mark.parametrize("concurrency", ["none", "threads"])
def test_read(run_cli, inputs_dir, concurrency):
    result = run_cli(
        [
            "read",
            inputs_dir,
            "--max-tile-size",
            64 * 64 * 2,
            "--concurrency",
            concurrency,
            "--workers",
            2,
            "--no-pbar",
        ]
    )
    assert "read 4 tile(s), 24576 samples" in result.output


def test_read_single_band_temporal(run_cli, inputs_dir):
    result = run_cli(
        [
            "read",
            inputs_dir,
            "--single-band",
            "--temporal",
            "--num-partitions",
            1,
            "--extensions",
            ".tif",
            "--concurrency",
            "none",
            "--no-pbar",
        ]
    )
    assert "read 1 tile(s), 6144 samples" in result.output


def test_read_verbose(run_cli, inputs_dir):
    result = run_cli(
        [
            "read",
            inputs_dir,
            "--time-tag",
            "TIFFTAG_DATETIME",
            "--time-format",
            "%Y:%m:%d %H:%M:%S",
            "--temporal",
            "--crs",
            "EPSG:3857",
            "--chunk-size",
            4096,
            "--concurrency",
            "none",
            "--verbose",
        ]
    )
    assert "EPSG:3857" in result.output
    assert "read 2 tile(s)" in result.output


def test_read_conflicting_partitioning(run_cli, inputs_dir):
    run_cli(
        [
            "read",
            inputs_dir,
            "--num-partitions",
            2,
            "--partition-bytes",
            1024,
        ],
        expected_exit_code=1,
        raise_exc=False,
    )
