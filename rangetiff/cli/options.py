import logging

import click

from rangetiff.log import set_log_level, setup_logfile
from rangetiff.path import MPath

logger = logging.getLogger(__name__)


# click callbacks #
###################
def _set_debug_log_level(ctx, param, debug):
    if debug:
        set_log_level(logging.DEBUG)
    return debug


def _setup_logfile(ctx, param, logfile):
    if logfile:
        setup_logfile(logfile)
    return logfile


def _cb_key_val(ctx, param, value):
    """
    click callback to validate `--opt KEY1=VAL1 --opt KEY2=VAL2` and collect
    in a dictionary like the one below, which is what the CLI function receives.
    If no value or `None` is received then an empty dictionary is returned.
        {
            'KEY1': 'VAL1',
            'KEY2': 'VAL2'
        }
    Note: `==VAL` breaks this as `str.split('=', 1)` is used.
    """

    if not value:
        return {}
    else:
        out = {}
        for pair in value:
            if "=" not in pair:
                raise click.BadParameter(
                    "Invalid syntax for KEY=VAL arg: {}".format(pair)
                )
            else:
                k, v = pair.split("=", 1)
                # cast numbers
                for func in (int, float):
                    try:
                        v = func(v)
                        break
                    except ValueError:
                        pass
                # cast bools and None
                if isinstance(v, str):
                    if v.lower() in ["true", "yes"]:
                        v = True
                    elif v.lower() in ["false", "no"]:
                        v = False
                    elif v.lower() in ["none", "null"]:
                        v = None
                out[k.lower()] = v
        return out


def _cb_none_concurrency(ctx, param, value):
    return None if value == "none" else value


def _cb_extensions(ctx, param, value):
    return tuple(value.split(",")) if value else None


# click arguments #
###################
arg_path = click.argument("path", type=click.Path(path_type=MPath))
arg_prefix = click.argument("prefix", type=click.Path(path_type=MPath))


# click options #
#################
opt_max_tile_size = click.option(
    "--max-tile-size",
    "-m",
    type=click.IntRange(min=1),
    help="Maximum window size in bytes. Files are read whole if not set.",
)
opt_chunk_size = click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    help="Round range reads to chunks of this many bytes.",
)
opt_num_partitions = click.option(
    "--num-partitions",
    type=click.IntRange(min=1),
    help="Distribute work items over this many partitions.",
)
opt_partition_bytes = click.option(
    "--partition-bytes",
    type=click.IntRange(min=1),
    help="Fill partitions up to this many decoded bytes.",
)
opt_extensions = click.option(
    "--extensions",
    type=click.STRING,
    callback=_cb_extensions,
    help="Comma separated file extensions to read, e.g. '.tif,.tiff'.",
)
opt_crs = click.option(
    "--crs", type=click.STRING, help="Override CRS of all files, e.g. 'EPSG:4326'."
)
opt_time_tag = click.option(
    "--time-tag", type=click.STRING, help="Tag holding the acquisition time."
)
opt_time_format = click.option(
    "--time-format", type=click.STRING, help="strptime format of the time tag."
)
opt_temporal = click.option(
    "--temporal", is_flag=True, help="Parse acquisition time of every file."
)
opt_single_band = click.option(
    "--single-band", is_flag=True, help="Only read the first band."
)
opt_json = click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
opt_fs_opts = click.option(
    "--fs-opts",
    metavar="NAME=VALUE",
    multiple=True,
    callback=_cb_key_val,
    help="Configuration options for fsspec filesystem.",
)
opt_workers = click.option(
    "--workers",
    "-w",
    type=click.INT,
    help="Number of workers when processing concurrently.",
)
opt_concurrency = click.option(
    "--concurrency",
    type=click.Choice(["processes", "threads", "none"]),
    default="threads",
    callback=_cb_none_concurrency,
    help="Decide which Executor to use for concurrent reading.",
)
opt_logfile = click.option(
    "--logfile",
    "-l",
    type=click.Path(),
    callback=_setup_logfile,
    help="Write debug log infos into file.",
)
opt_verbose = click.option(
    "--verbose", "-v", is_flag=True, help="Print info for each tile."
)
opt_no_pbar = click.option("--no-pbar", is_flag=True, help="Deactivate progress bar.")
opt_debug = click.option(
    "--debug",
    "-d",
    is_flag=True,
    callback=_set_debug_log_level,
    help="Deactivate progress bar and print debug log output.",
)
