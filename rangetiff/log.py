"""
Shared log handlers for rangetiff and packages providing CLI plugins.

Handlers are attached to every package which registers a rangetiff CLI command,
so log levels set from the command line also apply to plugin code.
"""

import logging
import sys

from rangetiff.registered import commands

all_rangetiff_packages = set(
    ["rangetiff"] + [v.value.split(".")[0] for v in commands]
)

key_value_replace_patterns = {
    "key": "***",
    "secret": "***",
    "password": "***",
    "AWS_ACCESS_KEY_ID": "***",
    "AWS_SECRET_ACCESS_KEY": "***",
}


class KeyValueFilter(logging.Filter):
    """
    This filter looks for dictionaries passed on to log messages and replaces its values
    with a replacement if key matches the pattern.

    Storage options of remote paths usually carry credentials and get logged
    when debugging range reads.

    Examples
    --------
    >>> stream_handler.addFilter(
    ...     KeyValueFilter(
    ...         key_value_replace={
    ...             "key": "***",
    ...             "secret": "***",
    ...         }
    ...     )
    ... )
    """

    def __init__(self, key_value_replace=None):
        super().__init__()
        self._key_value_replace = key_value_replace or {}

    def filter(self, record):
        record.msg = self.redact(record.msg)
        if isinstance(record.args, dict):
            for k, v in record.args.items():
                record.args[k] = self.redact({k: v})[k]
        elif record.args:
            record.args = tuple(self.redact(arg) for arg in record.args)
        return True

    def redact(self, msg):
        if isinstance(msg, dict):
            out_msg = {}
            for k, v in msg.items():
                if isinstance(v, dict):
                    v = self.redact(v)
                elif k in self._key_value_replace:
                    v = self._key_value_replace[k]
                out_msg[k] = v
        else:
            out_msg = msg

        return out_msg


formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
stream_handler = logging.StreamHandler(sys.stdout)
stream_handler.setFormatter(formatter)
stream_handler.setLevel(logging.WARNING)
stream_handler.addFilter(KeyValueFilter(key_value_replace=key_value_replace_patterns))
for i in all_rangetiff_packages:
    logging.getLogger(i).addHandler(stream_handler)


def set_log_level(loglevel):
    """Set level of stream handler and all package loggers. Also used as worker initializer."""
    stream_handler.setLevel(loglevel)
    for i in all_rangetiff_packages:
        logging.getLogger(i).setLevel(loglevel)


def setup_logfile(logfile):
    file_handler = logging.FileHandler(logfile)
    file_handler.setFormatter(formatter)
    file_handler.addFilter(KeyValueFilter(key_value_replace=key_value_replace_patterns))
    for i in all_rangetiff_packages:
        logging.getLogger(i).addHandler(file_handler)
        logging.getLogger(i).setLevel(logging.DEBUG)
