"""Options controlling how rasters are listed, split into windows and read."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    ValidationError,
    model_validator,
)

from rangetiff.errors import RangeTiffOptionsError

DEFAULT_EXTENSIONS = (".tif", ".TIF", ".tiff", ".TIFF")
DEFAULT_TIME_TAG = "TIFFTAG_DATETIME"
DEFAULT_TIME_FORMAT = "%Y:%m:%d %H:%M:%S"


class ReadOptions(BaseModel):
    """
    Immutable read options, validated once on construction.

    extensions: file suffixes picked up when listing inputs
    crs: CRS string overriding the one found in the files
    time_tag / time_format: tag holding the acquisition time and its strptime format
    max_tile_size: maximum window size in bytes, None reads whole files
    num_partitions / partition_bytes: rebalancing of work items, mutually exclusive
    chunk_size: range reads are rounded to chunks of this size if set
    storage_options: handed to the file system client on every worker
    """

    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    crs: Optional[str] = None
    time_tag: str = DEFAULT_TIME_TAG
    time_format: str = DEFAULT_TIME_FORMAT
    max_tile_size: Optional[PositiveInt] = None
    num_partitions: Optional[PositiveInt] = None
    partition_bytes: Optional[PositiveInt] = None
    chunk_size: Optional[PositiveInt] = None
    storage_options: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _check_partitioning(self) -> ReadOptions:
        if self.num_partitions is not None and self.partition_bytes is not None:
            raise ValueError("only one of num_partitions and partition_bytes can be set")
        return self

    @staticmethod
    def from_inp(inp: Optional[Any] = None, **kwargs) -> ReadOptions:
        """Create options from None, a dict or existing options plus overrides."""
        if isinstance(inp, ReadOptions):
            if not kwargs:
                return inp
            inp = inp.model_dump()
        try:
            return ReadOptions(**dict(inp or {}, **kwargs))
        except ValidationError as exc:
            raise RangeTiffOptionsError(str(exc)) from exc
