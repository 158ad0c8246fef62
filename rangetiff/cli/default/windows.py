import click

from rangetiff.cli import options
from rangetiff.inputs import plan_windows
from rangetiff.options import ReadOptions


@click.command(help="List the windows a TIFF file is split into.")
@options.arg_path
@options.opt_max_tile_size
@options.opt_single_band
@options.opt_fs_opts
@options.opt_debug
@options.opt_logfile
def windows(
    path,
    max_tile_size=None,
    single_band=False,
    fs_opts=None,
    debug=False,
    logfile=None,
):
    """List the windows a TIFF file is split into."""
    items = plan_windows(
        path,
        ReadOptions.from_inp(max_tile_size=max_tile_size, storage_options=fs_opts or {}),
        bands=[0] if single_band else None,
    )
    for item in items:
        window = item.window
        click.echo(
            f"{window.col_min} {window.row_min} {window.col_max} {window.row_max}"
        )
