def test_windows(run_cli, uint8_tif):
    result = run_cli(["windows", uint8_tif.path, "--max-tile-size", 128 * 128])
    lines = result.output.strip().splitlines()
    assert len(lines) == 16
    assert lines[0] == "0 0 128 128"
    assert lines[-1] == "384 384 512 512"


def test_windows_whole_file(run_cli, uint8_tif):
    result = run_cli(["windows", uint8_tif.path])
    assert result.output.strip() == "0 0 512 512"


def test_windows_single_band(run_cli, multiband_tif):
    multi = run_cli(["windows", multiband_tif.path, "--max-tile-size", 3200])
    single = run_cli(
        ["windows", multiband_tif.path, "--max-tile-size", 3200, "--single-band"]
    )
    assert len(single.output.splitlines()) < len(multi.output.splitlines())


def test_windows_invalid_tile_size(run_cli, uint8_tif):
    run_cli(
        ["windows", uint8_tif.path, "--max-tile-size", 0],
        expected_exit_code=2,
        raise_exc=False,
    )
