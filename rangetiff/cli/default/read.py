import click
import numpy as np

from rangetiff.cli import options
from rangetiff.cli.progress_bar import PBar
from rangetiff.inputs import read as read_inputs
from rangetiff.options import ReadOptions
from rangetiff.pretty import pretty_bytes
from rangetiff.timer import Timer


@click.command(help="Read all TIFF files below a prefix window by window.")
@options.arg_prefix
@options.opt_max_tile_size
@options.opt_chunk_size
@options.opt_num_partitions
@options.opt_partition_bytes
@options.opt_extensions
@options.opt_crs
@options.opt_temporal
@options.opt_time_tag
@options.opt_time_format
@options.opt_single_band
@options.opt_fs_opts
@options.opt_concurrency
@options.opt_workers
@options.opt_verbose
@options.opt_no_pbar
@options.opt_debug
@options.opt_logfile
def read(
    prefix,
    temporal=False,
    single_band=False,
    fs_opts=None,
    concurrency=None,
    workers=None,
    verbose=False,
    no_pbar=False,
    debug=False,
    logfile=None,
    **kwargs,
):
    """Read all TIFF files below a prefix window by window."""
    read_options = ReadOptions.from_inp(
        {k: v for k, v in kwargs.items() if v is not None},
        storage_options=fs_opts or {},
    )
    tiles = 0
    pixels = 0
    size = 0
    with Timer() as duration:
        with PBar(
            desc="tiles", unit="tile", disable=debug or no_pbar, print_messages=verbose
        ) as pbar:
            for key, tile in read_inputs(
                prefix,
                options=read_options,
                temporal=temporal,
                multiband=not single_band,
                concurrency=concurrency,
                workers=workers,
            ):
                tiles += 1
                pixels += int(np.prod(tile.shape))
                size += tile.data.nbytes
                pbar.update(message=f"{tuple(tile.window)}: {key}")
    click.echo(
        f"read {tiles} tile(s), {pixels} samples, {pretty_bytes(size)} in {duration}"
    )
