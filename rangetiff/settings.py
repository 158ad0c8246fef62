"""
Combine default values with environment variable values.
"""

from typing import Tuple, Type

from aiohttp import ClientPayloadError, ClientResponseError
from aiohttp.client_exceptions import ServerDisconnectedError
from fsspec.exceptions import FSTimeoutError
from pydantic import NonNegativeFloat, NonNegativeInt, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class IORetrySettings(BaseSettings):
    """Combine default retry settings with env variables.

    RANGETIFF_IO_RETRY_TRIES
    RANGETIFF_IO_RETRY_DELAY
    RANGETIFF_IO_RETRY_BACKOFF

    These only apply to the backing store client (MPath). Range reads issued
    while decoding a window are never retried.
    """

    tries: NonNegativeInt = 3
    delay: NonNegativeFloat = 1.0
    backoff: NonNegativeFloat = 1.0
    # only retry the most common exceptions which do not hint to
    # a permanent issue (such as FileNotFoundError, ...).
    exceptions: Tuple[Type[Exception], ...] = (
        ConnectionError,
        InterruptedError,
        TimeoutError,
        FSTimeoutError,
        ServerDisconnectedError,
        ClientResponseError,
        ClientPayloadError,
    )

    # read from environment
    model_config = SettingsConfigDict(env_prefix="RANGETIFF_IO_RETRY_")


class RangeTiffSettings(BaseSettings):
    # timeout granted when fetching future results or exceptions
    future_timeout: NonNegativeFloat = 10
    # chunk size used by the info command when none is given, 64KiB
    default_chunk_size: PositiveInt = 65_536
    # number of chunks a ChunkedRangeReader keeps around
    max_cached_chunks: PositiveInt = 2

    # read from environment
    model_config = SettingsConfigDict(env_prefix="RANGETIFF_")


rangetiff_settings = RangeTiffSettings()
