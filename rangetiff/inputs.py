"""
Turn a location prefix into independent work items and read them.

The functions here form the boundary to whatever runs the work: list_inputs()
and plan_windows() produce WorkItems, read_window() turns a WorkItem into a
keyed Tile without touching any shared state. rebalance() groups work items
into partitions. The pipeline functions spatial(), spatial_multiband(),
temporal() and temporal_multiband() wire everything up using an Executor.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from itertools import chain
from typing import (
    Generator,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from rangetiff.enums import Concurrency
from rangetiff.errors import RangeTiffOptionsError
from rangetiff.executor import Executor, ExecutorBase
from rangetiff.io.range_reader import range_reader
from rangetiff.options import DEFAULT_EXTENSIONS, ReadOptions
from rangetiff.path import MPath
from rangetiff.reader import (
    ProjectedExtent,
    TemporalProjectedExtent,
    Tile,
    WindowedTileReader,
    parse_timestamp,
)
from rangetiff.tiff.tags import RasterMetadata, parse_metadata
from rangetiff.timer import Timer
from rangetiff.types import BandIndexes, MPathLike
from rangetiff.windows import PixelWindow, plan

logger = logging.getLogger(__name__)

Key = Union[ProjectedExtent, TemporalProjectedExtent]


class WorkItem(NamedTuple):
    """One window of one file, carrying the metadata parsed while planning."""

    path: MPath
    window: PixelWindow
    metadata: RasterMetadata

    def estimated_bytes(self, band_count: Optional[int] = None) -> int:
        """Size of the decoded window."""
        band_count = self.metadata.band_count if band_count is None else band_count
        return self.window.size * self.metadata.cell_type.bytes * band_count


def list_inputs(
    prefix: MPathLike,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    storage_options: Optional[dict] = None,
) -> List[MPath]:
    """Return all files below prefix with one of the extensions, sorted by path."""
    path = MPath.from_inp(prefix)
    if storage_options:
        path = MPath(path, storage_options=storage_options)
    out = sorted(p for p in path.walk_files() if p.suffix in extensions)
    logger.debug("found %s input(s) below %s", len(out), path)
    return out


def plan_windows(
    path: MPathLike,
    options: Optional[ReadOptions] = None,
    bands: BandIndexes = None,
) -> List[WorkItem]:
    """
    Parse metadata of a file and split it into windows.

    The metadata is parsed once and shared by all returned work items.
    """
    options = options or ReadOptions()
    path = MPath.from_inp(path)
    if options.storage_options:
        path = MPath(path, storage_options=options.storage_options)
    with Timer() as duration:
        metadata = parse_metadata(range_reader(path, chunk_size=options.chunk_size))
    windows = plan(
        metadata.cols,
        metadata.rows,
        max_tile_size=options.max_tile_size,
        bytes_per_pixel=metadata.cell_type.bytes * _band_count(bands, metadata),
    )
    logger.debug(
        "%s: %sx%s pixels, %s band(s), %s window(s), planned in %s",
        path,
        metadata.cols,
        metadata.rows,
        metadata.band_count,
        len(windows),
        duration,
    )
    return [WorkItem(path, window, metadata) for window in windows]


def read_window(
    item: WorkItem,
    options: Optional[ReadOptions] = None,
    temporal: bool = False,
    multiband: bool = True,
) -> Tuple[Key, Tile]:
    """
    Read one work item.

    Single band reads only return the first band. The timestamp is parsed
    before any pixels are read, a missing or invalid one fails the item.
    """
    options = options or ReadOptions()
    metadata = item.metadata
    crs = options.crs or metadata.crs
    bounds = metadata.window_bounds(item.window)
    if temporal:
        key: Key = TemporalProjectedExtent(
            bounds,
            crs,
            parse_timestamp(metadata, options.time_tag, options.time_format),
        )
    else:
        key = ProjectedExtent(bounds, crs)
    tile = WindowedTileReader(item.path, options, metadata=metadata).read(
        item.window, bands=None if multiband else [0]
    )
    return key, tile


def read_partition(
    partition: Sequence[WorkItem],
    options: Optional[ReadOptions] = None,
    temporal: bool = False,
    multiband: bool = True,
) -> List[Tuple[Key, Tile]]:
    return [
        read_window(item, options=options, temporal=temporal, multiband=multiband)
        for item in partition
    ]


def rebalance(
    items: Iterable[WorkItem],
    num_partitions: Optional[int] = None,
    partition_bytes: Optional[int] = None,
    band_count: Optional[int] = None,
) -> List[List[WorkItem]]:
    """
    Group work items into partitions.

    num_partitions distributes items round robin over a fixed number of
    partitions. partition_bytes fills partitions in order until the estimated
    decoded size would exceed the target; every partition holds at least one
    item. Without either, every item becomes its own partition. Empty
    partitions are never returned.
    """
    items = list(items)
    if num_partitions is not None and partition_bytes is not None:
        raise RangeTiffOptionsError(
            "only one of num_partitions and partition_bytes can be set"
        )
    elif num_partitions is not None:
        if num_partitions < 1:
            raise RangeTiffOptionsError(
                f"num_partitions must be positive: {num_partitions}"
            )
        partitions = [items[i::num_partitions] for i in range(num_partitions)]
    elif partition_bytes is not None:
        if partition_bytes < 1:
            raise RangeTiffOptionsError(
                f"partition_bytes must be positive: {partition_bytes}"
            )
        partitions = []
        current: List[WorkItem] = []
        current_bytes = 0
        for item in items:
            item_bytes = item.estimated_bytes(band_count)
            if current and current_bytes + item_bytes > partition_bytes:
                partitions.append(current)
                current, current_bytes = [], 0
            current.append(item)
            current_bytes += item_bytes
        partitions.append(current)
    else:
        partitions = [[item] for item in items]
    return [partition for partition in partitions if partition]


def read(
    prefix: MPathLike,
    options: Optional[ReadOptions] = None,
    temporal: bool = False,
    multiband: bool = True,
    executor: Optional[ExecutorBase] = None,
    concurrency: Optional[Concurrency] = None,
    workers: Optional[int] = None,
) -> Generator[Tuple[Key, Tile], None, None]:
    """
    List, plan, rebalance and read all rasters below prefix.

    Results are yielded as soon as their partition is finished, in no
    particular order. The first failing work item raises TaskFailed.
    """
    options = options or ReadOptions()
    bands = None if multiband else [0]
    paths = list_inputs(prefix, options.extensions, options.storage_options)
    with (
        nullcontext(executor)
        if executor is not None
        else Executor(concurrency=concurrency, workers=workers)
    ) as executor:
        items = list(
            chain.from_iterable(
                executor.map(
                    plan_windows, paths, fkwargs=dict(options=options, bands=bands)
                )
            )
        )
        partitions = rebalance(
            items,
            num_partitions=options.num_partitions,
            partition_bytes=options.partition_bytes,
            band_count=None if multiband else 1,
        )
        logger.debug(
            "read %s work item(s) from %s file(s) in %s partition(s)",
            len(items),
            len(paths),
            len(partitions),
        )
        for future in executor.as_completed(
            read_partition,
            partitions,
            fkwargs=dict(options=options, temporal=temporal, multiband=multiband),
        ):
            yield from future.result()


def spatial(
    prefix: MPathLike, options: Optional[ReadOptions] = None, **kwargs
) -> Generator[Tuple[ProjectedExtent, Tile], None, None]:
    """Yield (ProjectedExtent, Tile) of the first band."""
    return read(prefix, options=options, temporal=False, multiband=False, **kwargs)


def spatial_multiband(
    prefix: MPathLike, options: Optional[ReadOptions] = None, **kwargs
) -> Generator[Tuple[ProjectedExtent, Tile], None, None]:
    """Yield (ProjectedExtent, Tile) of all bands."""
    return read(prefix, options=options, temporal=False, multiband=True, **kwargs)


def temporal(
    prefix: MPathLike, options: Optional[ReadOptions] = None, **kwargs
) -> Generator[Tuple[TemporalProjectedExtent, Tile], None, None]:
    """Yield (TemporalProjectedExtent, Tile) of the first band."""
    return read(prefix, options=options, temporal=True, multiband=False, **kwargs)


def temporal_multiband(
    prefix: MPathLike, options: Optional[ReadOptions] = None, **kwargs
) -> Generator[Tuple[TemporalProjectedExtent, Tile], None, None]:
    """Yield (TemporalProjectedExtent, Tile) of all bands."""
    return read(prefix, options=options, temporal=True, multiband=True, **kwargs)


def _band_count(bands: BandIndexes, metadata: RasterMetadata) -> int:
    if bands is None:
        return metadata.band_count
    return 1 if isinstance(bands, int) else len(bands)
