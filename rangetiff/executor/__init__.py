from typing import Optional

from rangetiff.enums import Concurrency
from rangetiff.executor.base import ExecutorBase
from rangetiff.executor.concurrent_futures import (
    MULTIPROCESSING_DEFAULT_START_METHOD,
    ConcurrentFuturesExecutor,
)
from rangetiff.executor.future import MFuture
from rangetiff.executor.sequential import SequentialExecutor

__all__ = [
    "ConcurrentFuturesExecutor",
    "Executor",
    "ExecutorBase",
    "MFuture",
    "MULTIPROCESSING_DEFAULT_START_METHOD",
    "SequentialExecutor",
]


class Executor:
    """
    Executor factory for sequential and concurrent.futures executors.
    """

    def __new__(
        cls, *args, concurrency: Optional[Concurrency] = None, **kwargs
    ) -> ExecutorBase:
        if concurrency in [None, Concurrency.none]:
            return SequentialExecutor(*args, **kwargs)

        elif concurrency in [Concurrency.processes, Concurrency.threads]:
            return ConcurrentFuturesExecutor(
                *args, concurrency=Concurrency(concurrency).value, **kwargs
            )

        else:
            raise ValueError(
                f"concurrency must be one of None, 'none', 'processes' or 'threads', not {concurrency}"
            )
