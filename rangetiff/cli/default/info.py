import json

import click

from rangetiff.cli import options
from rangetiff.io.range_reader import range_reader
from rangetiff.path import MPath
from rangetiff.settings import rangetiff_settings
from rangetiff.tiff.tags import RasterMetadata, parse_metadata


@click.command(help="Print metadata of a TIFF file.")
@options.arg_path
@options.opt_chunk_size
@options.opt_fs_opts
@options.opt_json
@options.opt_debug
@options.opt_logfile
def info(
    path,
    chunk_size=None,
    fs_opts=None,
    as_json=False,
    debug=False,
    logfile=None,
):
    """Print metadata of a TIFF file."""
    if fs_opts:
        path = MPath(path, storage_options=fs_opts)
    reader = range_reader(
        path, chunk_size=chunk_size or rangetiff_settings.default_chunk_size
    )
    metadata = parse_metadata(reader)
    out = metadata_dict(metadata)
    if as_json:
        click.echo(json.dumps(out, indent=2))
    else:
        for key, value in out.items():
            click.echo(f"{key}: {value}")
    if debug:
        click.echo(f"requests: {reader.requests}, bytes read: {reader.bytes_read}")


def metadata_dict(metadata: RasterMetadata) -> dict:
    layout = metadata.segment_layout
    return dict(
        cols=metadata.cols,
        rows=metadata.rows,
        band_count=metadata.band_count,
        cell_type=metadata.cell_type.name,
        compression=metadata.compression.name,
        predictor=metadata.predictor.name,
        interleave=metadata.interleave.value,
        layout="tiled" if layout.is_tiled else "striped",
        segment_size=[layout.segment_cols, layout.segment_rows],
        segment_count=layout.segment_count,
        bigtiff=metadata.bigtiff,
        crs=metadata.crs,
        bounds=list(metadata.bounds),
        tags=metadata.tags,
    )
