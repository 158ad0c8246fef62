import os
import pickle

import pytest

from rangetiff.path import MPath


@pytest.mark.parametrize(
    "path_str",
    [
        "s3://foo/bar.tif",
        "http://foo/bar.tif",
        "https://foo/bar.tif",
        "/foo/bar.tif",
        "foo/bar.tif",
    ],
)
def test_parse(path_str):
    path = MPath(path_str)
    assert str(path) == path_str
    assert path.name == "bar.tif"
    assert path.suffix == ".tif"


def test_parse_error():
    with pytest.raises(TypeError):
        MPath(None)


def test_local_path(uint8_tif):
    path = uint8_tif.path
    assert path.size() > 512 * 512 // 2
    assert path.read_range(0, 2) in (b"II", b"MM")
    assert path.name == "uint8.tif"
    assert path.info(refresh=True)["size"] == path.size()


def test_storage_options():
    path = MPath("s3://foo/bar.tif", storage_options=dict(anon=True))
    assert path.storage_options["anon"]
    assert MPath(path).storage_options["anon"]
    assert MPath.from_inp(path.to_dict()).storage_options["anon"]
    assert path.new("s3://foo/baz.tif").storage_options["anon"]


def test_walk_files(inputs_dir):
    names = [path.name for path in inputs_dir.walk_files()]
    assert names == ["a.tif", "b.TIF", "readme.txt"]
    (single,) = list(inputs_dir.new(os.path.join(str(inputs_dir), "a.tif")).walk_files())
    assert single.name == "a.tif"


def test_pickle(uint8_tif):
    path = uint8_tif.path
    path.fs
    unpickled = pickle.loads(pickle.dumps(path))
    assert unpickled == path
    assert unpickled.read_range(0, 2) == path.read_range(0, 2)


def test_sort():
    paths = [MPath("/b.tif"), MPath("/a.tif")]
    assert [str(p) for p in sorted(paths)] == ["/a.tif", "/b.tif"]
