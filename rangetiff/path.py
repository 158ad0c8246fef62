"""Functions handling paths and file systems."""

from __future__ import annotations

import logging
import os
from functools import cached_property
from typing import Any, Dict, Generator, List, Optional, Set, Union

import fsspec
from aiohttp import BasicAuth
from fsspec.spec import AbstractFileSystem
from retry.api import retry_call

from rangetiff.settings import IORetrySettings
from rangetiff.types import MPathLike

logger = logging.getLogger(__name__)

UNALLOWED_S3_KWARGS = ["timeout"]
UNALLOWED_HTTP_KWARGS = ["username", "password"]


def _retry(func):
    """Custom retry decorator for MPath methods."""

    def _call_func(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as exception:  # pragma: no cover
            # Some aiohttp based filesystems mask a ClientResponseError as a generic
            # Exception which would prevent the retry mechanism from kicking in.
            if repr(exception).startswith('Exception("ClientResponseError'):
                raise ConnectionError(repr(exception)).with_traceback(
                    exception.__traceback__
                )
            raise exception

    def wrapper(*args, **kwargs):
        return retry_call(
            _call_func, args, kwargs, logger=logger, **IORetrySettings().model_dump()
        )

    return wrapper


class MPath(os.PathLike):
    """
    Locator of a raster file on a local, S3 or HTTP file system.

    Partially replicates pathlib.Path. Instances only hold the path string and
    the storage options and create their fsspec filesystem lazily, so they can
    be sent to worker processes and opened there.
    """

    storage_options: dict = {"asynchronous": False, "timeout": None}

    def __init__(
        self,
        path: Union[str, os.PathLike, MPath],
        fs: Optional[AbstractFileSystem] = None,
        storage_options: Union[dict, None] = None,
        info_dict: Union[dict, None] = None,
        **kwargs,
    ):
        self._kwargs = {}
        if isinstance(path, MPath):
            path_str = str(path)
            self._kwargs.update(path._kwargs)
        elif isinstance(path, str):
            path_str = path
        else:
            raise TypeError(
                f"MPath has to be initialized with either a string or another MPath instance, not {path}"
            )
        self._path_str = path_str
        if fs:
            self._kwargs.update(fs=fs)
        if "fs_options" in kwargs:
            storage_options = kwargs.get("fs_options")
        if storage_options:
            self._kwargs.update(storage_options=storage_options)
        self.storage_options = dict(
            self.storage_options, **self._kwargs.get("storage_options") or {}
        )
        self._fs = fs
        self._info = info_dict

    @staticmethod
    def from_dict(dictionary: dict) -> MPath:
        path_str = dictionary.get("path")
        if not path_str:
            raise ValueError(
                f"dictionary representation requires at least a 'path' item: {dictionary}"
            )
        return MPath(
            path_str,
            storage_options=dictionary.get("storage_options", {}),
            fs=dictionary.get("fs"),
        )

    @staticmethod
    def from_inp(inp: Union[dict, MPathLike], **kwargs) -> MPath:
        if isinstance(inp, dict):
            return MPath.from_dict(inp)
        elif isinstance(inp, str):
            return MPath(inp, **kwargs)
        elif isinstance(inp, MPath):
            if kwargs:
                return MPath(inp, **kwargs)
            return inp
        elif hasattr(inp, "__fspath__"):
            return MPath(inp.__fspath__(), **kwargs)
        else:  # pragma: no cover
            raise TypeError(f"cannot construct MPath object from {inp}")

    def to_dict(self) -> dict:
        return dict(path=self._path_str, storage_options=self.storage_options)

    def __str__(self):
        return self._path_str

    def __fspath__(self):
        return self._path_str

    def __getstate__(self) -> Dict[str, Any]:
        # drop the lazily created filesystem, each worker creates its own
        state = dict(self.__dict__)
        state.pop("fs", None)
        return state

    @property
    def name(self) -> str:
        return os.path.basename(self._path_str.rstrip("/"))

    @property
    def suffix(self) -> str:
        return os.path.splitext(self._path_str)[1]

    @cached_property
    def fs(self) -> AbstractFileSystem:
        """Return path filesystem."""
        if self._fs is not None:
            return self._fs
        elif self._path_str.startswith("s3://"):
            # move 'region_name' up to client_kwargs in order to have effect
            storage_options = dict(self.storage_options)
            if storage_options.get("region_name"):
                client_kwargs = dict(storage_options.get("client_kwargs", {}))
                client_kwargs.update(region_name=storage_options.pop("region_name"))
                storage_options.update(client_kwargs=client_kwargs)
            return fsspec.filesystem(
                "s3",
                requester_pays=storage_options.get(
                    "requester_pays", os.environ.get("AWS_REQUEST_PAYER") == "requester"
                ),
                config_kwargs=dict(
                    connect_timeout=storage_options.get("timeout"),
                    read_timeout=storage_options.get("timeout"),
                ),
                **{
                    k: v
                    for k, v in storage_options.items()
                    if k not in UNALLOWED_S3_KWARGS + ["requester_pays"]
                },
            )
        elif self._path_str.startswith(("http://", "https://")):
            username = self.storage_options.get("username")
            if username:
                auth = BasicAuth(
                    login=username,
                    password=self.storage_options.get("password", ""),
                )
            else:
                auth = None
            return fsspec.filesystem(
                "https",
                auth=auth,
                **{
                    k: v
                    for k, v in self.storage_options.items()
                    if k not in UNALLOWED_HTTP_KWARGS
                },
            )
        else:
            return fsspec.filesystem("file")

    @cached_property
    def protocols(self) -> Set[str]:
        """Return set of filesystem protocols."""
        if isinstance(self.fs.protocol, str):
            return set([self.fs.protocol])
        else:
            return set(self.fs.protocol)

    def new(self, path: Union[MPathLike, Dict[str, Any]]) -> MPath:
        """Create a new MPath instance with given path and the same storage options."""
        if isinstance(path, dict):
            # this is for object dictionaries returned by fs.find(detail=True)
            path_info = path
            path_str = path_info.get("name", path_info.get("Key"))
            if path_str is None:  # pragma: no cover
                raise ValueError(f"cannot create MPath from dictionary: {path_info}")
            # S3 listings do not return the protocol, so let's add it manually
            if "s3" in self.protocols and not path_str.startswith("s3://"):
                path_str = f"s3://{path_str}"
        else:
            path_info = None
            path_str = str(path)
        return MPath(path_str, info_dict=path_info, **self._kwargs)

    @_retry
    def info(self, refresh: bool = False) -> dict:
        if refresh or self._info is None:
            logger.debug("%s: make self.fs.info() call ...", str(self))
            self._info = self.fs.info(self._path_str)
        return self._info

    def size(self) -> int:
        return self.info().get("size", self.info().get("Size"))  # type: ignore

    @_retry
    def read_range(self, offset: int, length: int) -> bytes:
        """Fetch bytes [offset, offset + length) of the file."""
        logger.debug(
            "%s: make self.fs.cat_file() call for %s bytes at offset %s ...",
            str(self),
            length,
            offset,
        )
        return self.fs.cat_file(self._path_str, start=offset, end=offset + length)

    @_retry
    def find(self) -> List[MPath]:
        """List all files below this path."""
        logger.debug("%s: make self.fs.find() call ...", str(self))
        return [
            self.new(dict(info, name=name))
            for name, info in sorted(self.fs.find(self._path_str, detail=True).items())
        ]

    def walk_files(self) -> Generator[MPath, None, None]:
        """Yield all files below this path, or the path itself if it is a file."""
        if self.fs.isfile(self._path_str):
            yield self
        else:
            yield from self.find()

    def __eq__(self, other):
        return str(self) == str(MPath.from_inp(other))

    def __lt__(self, other: MPathLike):
        return str(self) < str(MPath.from_inp(other))

    def __repr__(self):
        return f"<MPath object: {self._path_str}, storage_options={self.storage_options}>"

    def __hash__(self):
        return hash(repr(self))
