import pytest

from rangetiff.pretty import pretty_bytes, pretty_seconds


@pytest.mark.parametrize(
    "bytes,string",
    [
        (200, "bytes"),
        (2_000, "KiB"),
        (2_000_000, "MiB"),
        (2_000_000_000, "GiB"),
    ],
)
def test_pretty_bytes(bytes, string):
    assert string in pretty_bytes(bytes)


@pytest.mark.parametrize(
    "seconds,string",
    [
        (1.5, "1.5s"),
        (61, "m"),
        (3601, "h"),
    ],
)
def test_pretty_seconds(seconds, string):
    assert string in pretty_seconds(seconds)
