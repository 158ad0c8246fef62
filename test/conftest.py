"""All pytest fixtures."""

import logging
from typing import Any, Dict, NamedTuple, Optional

import numpy as np
import pytest
import rasterio
from click.testing import CliRunner
from rasterio.transform import from_origin

from rangetiff.cli.main import main as rangetiff_cli
from rangetiff.executor import ConcurrentFuturesExecutor, SequentialExecutor
from rangetiff.path import MPath

logger = logging.getLogger(__name__)

DEFAULT_TRANSFORM = from_origin(10.0, 50.0, 0.01, 0.01)
DATETIME = "2019:01:01 12:00:00"
ISO_TIME = "2019-01-01T12:00:00"


class TiffFixture(NamedTuple):
    path: MPath
    data: np.ndarray
    profile: Dict[str, Any]


def random_data(dtype: str, shape, seed: int = 42) -> np.ndarray:
    rng = np.random.default_rng(seed)
    dtype = np.dtype(dtype)
    if dtype.kind == "f":
        return (rng.random(shape) * 2000 - 1000).astype(dtype)
    info = np.iinfo(dtype)
    return rng.integers(info.min, info.max, size=shape, dtype=dtype, endpoint=True)


def write_tiff(
    path,
    data: np.ndarray,
    tags: Optional[dict] = None,
    band_tags: Optional[Dict[int, dict]] = None,
    **profile,
) -> TiffFixture:
    count, height, width = data.shape
    profile = dict(
        dict(
            driver="GTiff",
            width=width,
            height=height,
            count=count,
            dtype=data.dtype.name,
            crs="EPSG:4326",
            transform=DEFAULT_TRANSFORM,
        ),
        **profile,
    )
    with rasterio.open(str(path), "w", **profile) as dst:
        dst.write(data)
        if tags:
            dst.update_tags(**tags)
        for band, band_tag in (band_tags or {}).items():
            dst.update_tags(band, **band_tag)
    return TiffFixture(MPath(str(path)), data, profile)


TIFF_CASES = {
    "uint8_tiled_deflate": dict(
        dtype="uint8",
        shape=(1, 512, 512),
        profile=dict(tiled=True, blockxsize=128, blockysize=128, compress="deflate"),
    ),
    "uint16_striped_lzw_predictor": dict(
        dtype="uint16",
        shape=(3, 200, 300),
        profile=dict(
            tiled=False,
            blockysize=16,
            compress="lzw",
            predictor=2,
            interleave="pixel",
        ),
    ),
    "int16_tiled_packbits_band_interleaved": dict(
        dtype="int16",
        shape=(2, 300, 200),
        profile=dict(
            tiled=True,
            blockxsize=64,
            blockysize=64,
            compress="packbits",
            interleave="band",
            nodata=-32768,
        ),
    ),
    "float32_tiled_uncompressed": dict(
        dtype="float32",
        shape=(1, 150, 250),
        profile=dict(tiled=True, blockxsize=32, blockysize=32, nodata=float("nan")),
    ),
    "float64_striped_deflate_band_interleaved": dict(
        dtype="float64",
        shape=(2, 100, 90),
        profile=dict(
            tiled=False,
            blockysize=7,
            compress="deflate",
            interleave="band",
            nodata=-9999.0,
        ),
    ),
    "int32_tiled_lzw_bigtiff": dict(
        dtype="int32",
        shape=(1, 100, 100),
        profile=dict(
            tiled=True, blockxsize=16, blockysize=16, compress="lzw", BIGTIFF="YES"
        ),
    ),
    "uint32_tiled_big_endian": dict(
        dtype="uint32",
        shape=(2, 64, 80),
        profile=dict(
            tiled=True,
            blockxsize=32,
            blockysize=32,
            compress="deflate",
            ENDIANNESS="BIG",
        ),
    ),
    "uint16_single_strip": dict(
        dtype="uint16",
        shape=(1, 40, 50),
        profile=dict(tiled=False, blockysize=40),
    ),
}


@pytest.fixture(params=list(TIFF_CASES.keys()))
def any_tiff(request, tmp_path) -> TiffFixture:
    """Parametrized fixture over all supported layouts, codecs and data types."""
    case = TIFF_CASES[request.param]
    return write_tiff(
        tmp_path / f"{request.param}.tif",
        random_data(case["dtype"], case["shape"]),
        **case["profile"],
    )


@pytest.fixture
def uint8_tif(tmp_path) -> TiffFixture:
    """512x512 single band tiled raster carrying time tags."""
    return write_tiff(
        tmp_path / "uint8.tif",
        random_data("uint8", (1, 512, 512)),
        tags=dict(TIFFTAG_DATETIME=DATETIME, ISO_TIME=ISO_TIME, SCENE="abc"),
        band_tags={1: dict(BAND_NAME="red")},
        tiled=True,
        blockxsize=128,
        blockysize=128,
        compress="deflate",
    )


@pytest.fixture
def multiband_tif(tmp_path) -> TiffFixture:
    """3 band pixel interleaved striped raster carrying time tags."""
    return write_tiff(
        tmp_path / "multiband.tif",
        random_data("uint16", (3, 100, 120)),
        tags=dict(TIFFTAG_DATETIME=DATETIME),
        tiled=False,
        blockysize=8,
        compress="lzw",
        interleave="pixel",
        nodata=0,
    )


@pytest.fixture
def no_time_tif(tmp_path) -> TiffFixture:
    return write_tiff(
        tmp_path / "no_time.tif",
        random_data("uint8", (1, 64, 64)),
        tiled=True,
        blockxsize=32,
        blockysize=32,
    )


@pytest.fixture
def inputs_dir(tmp_path) -> MPath:
    """Directory with two rasters, one upper case extension and an unrelated file."""
    directory = tmp_path / "inputs"
    directory.mkdir()
    for name, seed in [("a.tif", 1), ("b.TIF", 2)]:
        write_tiff(
            directory / name,
            random_data("uint8", (2, 96, 64), seed=seed),
            tags=dict(TIFFTAG_DATETIME=DATETIME),
            tiled=True,
            blockxsize=32,
            blockysize=32,
            compress="deflate",
        )
    (directory / "readme.txt").write_text("not a raster")
    return MPath(str(directory))


@pytest.fixture(scope="package")
def sequential_executor():
    """SequentialExecutor()"""
    with SequentialExecutor() as executor:
        yield executor


@pytest.fixture(scope="package")
def processes_executor():
    """ConcurrentFuturesExecutor()"""
    with ConcurrentFuturesExecutor(concurrency="processes", workers=2) as executor:
        yield executor


@pytest.fixture(scope="package")
def threads_executor():
    """ConcurrentFuturesExecutor()"""
    with ConcurrentFuturesExecutor(concurrency="threads", workers=2) as executor:
        yield executor


@pytest.fixture
def run_cli():
    """Invoke the rangetiff CLI and check exit code and output."""

    def _run_cli(
        args, expected_exit_code=0, output_contains=None, raise_exc=True, cli=rangetiff_cli
    ):
        result = CliRunner().invoke(
            cli, list(map(str, args)), catch_exceptions=True, standalone_mode=True
        )
        if output_contains:
            assert output_contains in result.output or output_contains in str(
                result.exception
            )
        if raise_exc and result.exception:
            logger.error(result.output or result.exception)
            raise result.exception
        assert result.exit_code == expected_exit_code
        return result

    return _run_cli
