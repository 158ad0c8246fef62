"""Lazy byte range access to files in a backing store."""

from __future__ import annotations

import logging
from itertools import groupby
from typing import Dict, List, Optional

from cachetools import LRUCache

from rangetiff.errors import RangeReadError
from rangetiff.path import MPath
from rangetiff.settings import rangetiff_settings
from rangetiff.types import MPathLike

logger = logging.getLogger(__name__)


class RangeReader:
    """
    Read byte ranges of a single file.

    Every call to read_range() is passed on to the backing store. Failures are
    raised as RangeReadError immediately.
    """

    def __init__(self, path: MPathLike):
        self.path = MPath.from_inp(path)
        self._total_length: Optional[int] = None
        self.requests = 0
        self.bytes_read = 0

    def __repr__(self):  # pragma: no cover
        return f"<{self.__class__.__name__} path={self.path}>"

    def total_length(self) -> int:
        """Size of the file in bytes."""
        if self._total_length is None:
            try:
                self._total_length = int(self.path.size())
            except Exception as exc:
                raise RangeReadError(
                    f"cannot determine size of {self.path}: {exc!r}"
                ) from exc
        return self._total_length

    def read_range(self, offset: int, length: int) -> bytes:
        """Return bytes [offset, offset + length) of the file."""
        self._validate_range(offset, length)
        if length == 0:
            return b""
        return self._fetch(offset, length)

    def _validate_range(self, offset: int, length: int) -> None:
        if offset < 0:
            raise ValueError(f"offset must not be negative: {offset}")
        if length < 0:
            raise ValueError(f"length must not be negative: {length}")
        if offset + length > self.total_length():
            raise ValueError(
                f"range {offset}+{length} exceeds file length {self.total_length()} "
                f"of {self.path}"
            )

    def _fetch(self, offset: int, length: int) -> bytes:
        try:
            data = self.path.read_range(offset, length)
        except Exception as exc:
            raise RangeReadError(
                f"cannot read {length} bytes at offset {offset} from {self.path}: {exc!r}"
            ) from exc
        self.requests += 1
        self.bytes_read += len(data)
        if len(data) != length:
            raise RangeReadError(
                f"expected {length} bytes at offset {offset} from {self.path} "
                f"but got {len(data)}"
            )
        return data


class ChunkedRangeReader(RangeReader):
    """
    Range reader which rounds requests to chunk boundaries.

    The most recently used chunks are kept in an LRU cache, so the small
    consecutive reads issued when parsing tags and reading neighbouring
    segments do not each cause a request to the backing store.
    """

    def __init__(
        self,
        path: MPathLike,
        chunk_size: int,
        max_chunks: Optional[int] = None,
    ):
        super().__init__(path)
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be a positive integer: {chunk_size}")
        self.chunk_size = chunk_size
        self._cache: LRUCache = LRUCache(
            maxsize=max_chunks or rangetiff_settings.max_cached_chunks
        )

    def read_range(self, offset: int, length: int) -> bytes:
        self._validate_range(offset, length)
        if length == 0:
            return b""

        first_chunk = offset // self.chunk_size
        last_chunk = (offset + length - 1) // self.chunk_size

        chunks: Dict[int, bytes] = {}
        missing: List[int] = []
        for index in range(first_chunk, last_chunk + 1):
            cached = self._cache.get(index)
            if cached is None:
                missing.append(index)
            else:
                chunks[index] = cached

        # fetch consecutive missing chunks with one request
        for _, run in groupby(enumerate(missing), lambda pair: pair[1] - pair[0]):
            indexes = [index for _, index in run]
            chunks.update(self._fetch_chunks(indexes[0], indexes[-1]))

        buffer = b"".join(chunks[index] for index in range(first_chunk, last_chunk + 1))
        start = offset - first_chunk * self.chunk_size
        return buffer[start : start + length]

    def _fetch_chunks(self, first: int, last: int) -> Dict[int, bytes]:
        start = first * self.chunk_size
        end = min((last + 1) * self.chunk_size, self.total_length())
        logger.debug("%s: fetch chunks %s to %s", self.path, first, last)
        data = self._fetch(start, end - start)
        out = {}
        for index in range(first, last + 1):
            chunk_start = (index - first) * self.chunk_size
            chunk = data[chunk_start : chunk_start + self.chunk_size]
            out[index] = chunk
            self._cache[index] = chunk
        return out


def range_reader(
    path: MPathLike,
    chunk_size: Optional[int] = None,
    max_chunks: Optional[int] = None,
) -> RangeReader:
    """Return a chunked reader if a chunk size is given, otherwise a plain one."""
    if chunk_size:
        return ChunkedRangeReader(path, chunk_size=chunk_size, max_chunks=max_chunks)
    return RangeReader(path)
