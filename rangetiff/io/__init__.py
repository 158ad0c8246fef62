from rangetiff.io.range_reader import ChunkedRangeReader, RangeReader, range_reader

__all__ = ["ChunkedRangeReader", "RangeReader", "range_reader"]
