import logging
import multiprocessing
import os
from concurrent.futures import (
    FIRST_COMPLETED,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from typing import (
    Any,
    Callable,
    Dict,
    Generator,
    Iterable,
    List,
    Optional,
    Tuple,
    cast,
)

from rangetiff.executor.base import ExecutorBase
from rangetiff.executor.future import FutureProtocol, MFuture
from rangetiff.log import set_log_level
from rangetiff.timer import Timer

logger = logging.getLogger(__name__)


MULTIPROCESSING_DEFAULT_START_METHOD = "spawn"


class ConcurrentFuturesExecutor(ExecutorBase):
    """Execute tasks using concurrent.futures."""

    def __init__(
        self,
        *args,
        max_workers=None,
        concurrency="processes",
        multiprocessing_start_method=None,
        **kwargs,
    ):
        """Set attributes."""
        self.futures = set()
        self._executor_args = ()
        start_method = (
            multiprocessing_start_method or MULTIPROCESSING_DEFAULT_START_METHOD
        )
        self.max_workers = max_workers or kwargs.get("workers") or os.cpu_count()
        # workers log at the level of the parent
        self._executor_kwargs = dict(
            max_workers=self.max_workers,
            initializer=set_log_level,
            initargs=(logging.getLogger("rangetiff").getEffectiveLevel(),),
        )
        if concurrency == "processes":
            self._executor_cls = ProcessPoolExecutor
            self._executor_kwargs.update(
                mp_context=multiprocessing.get_context(method=start_method)
            )
        elif concurrency == "threads":
            self._executor_cls = ThreadPoolExecutor
        else:  # pragma: no cover
            raise ValueError("concurrency must either be 'processes' or 'threads'")
        logger.debug(
            "init ConcurrentFuturesExecutor using %s with %s workers",
            concurrency,
            self.max_workers,
        )

    def __str__(self) -> str:
        return f"<ConcurrentFuturesExecutor max_workers={self.max_workers}, cls={self._executor_cls}>"

    def as_completed(
        self,
        func: Callable,
        iterable: Iterable,
        fargs: Optional[Tuple] = None,
        fkwargs: Optional[Dict[str, Any]] = None,
        max_submitted_tasks: int = 100,
        **__,
    ) -> Generator[MFuture, None, None]:
        """Submit tasks to executor and start yielding finished futures."""
        fargs = fargs or ()
        fkwargs = fkwargs or {}

        items = iter(iterable)
        futures = set()

        logger.debug("submitting tasks to executor")

        with Timer() as duration:
            for item in items:
                futures.add(self._submit(func, item, fargs, fkwargs))

                # don't submit any more until there are finished futures
                if len(futures) == max_submitted_tasks:
                    break

        logger.debug("first %s tasks submitted in %s", len(futures), duration)

        while futures:
            logger.debug("waiting for %s futures ...", len(futures))
            done, _ = wait(futures, return_when=FIRST_COMPLETED)
            logger.debug("%s future(s) done", len(done))

            for future in done:
                # we don't need this future anymore
                futures.remove(future)

                yield self.to_mfuture(cast(FutureProtocol, future))

                # immediately submit next task from iterator
                item = next(items, None)
                if item is not None:
                    futures.add(self._submit(func, item, fargs, fkwargs))

    def map(self, func, iterable, fargs=None, fkwargs=None) -> List[Any]:
        return [
            result.output  # type: ignore
            for result in self._executor.map(
                self.func_partial(func, fargs=fargs, fkwargs=fkwargs), iterable
            )
        ]

    def _submit(self, func: Callable, item: Any, fargs: tuple, fkwargs: dict) -> Future:
        future = self._executor.submit(
            self.func_partial(func, fargs=fargs, fkwargs=fkwargs), item
        )
        self.futures.add(future)  # type: ignore
        return future  # type: ignore
