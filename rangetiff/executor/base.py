"""Abstraction classes for sequential and parallel execution of work items."""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from functools import partial
from typing import (
    Any,
    Callable,
    Dict,
    Generator,
    Iterable,
    Optional,
    Set,
    Tuple,
    Union,
)

from rangetiff.executor.future import FutureProtocol, MFuture
from rangetiff.executor.types import Result

logger = logging.getLogger(__name__)


class ExecutorBase(ABC):
    """Define base methods and properties of executors."""

    futures: Set[FutureProtocol]
    _cached_executor = None
    _executor_cls = None
    _executor_args: Tuple
    _executor_kwargs: Dict[str, Any]

    @abstractmethod
    def as_completed(
        self,
        func: Callable,
        iterable: Iterable,
        fargs: Optional[Tuple] = None,
        fkwargs: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Generator[MFuture, None, None]:  # pragma: no cover
        """Submit tasks to executor and start yielding finished futures."""
        ...

    @abstractmethod
    def map(self, *args, **kwargs) -> Iterable[Any]:  # pragma: no cover
        ...

    def func_partial(
        self,
        func: Callable,
        fargs: Optional[tuple] = None,
        fkwargs: Optional[dict] = None,
    ) -> Callable:
        return func_partial(func, fargs=fargs, fkwargs=fkwargs)

    def to_mfuture(
        self,
        future: FutureProtocol,
        result: Optional[Any] = None,
        raise_if_failed: bool = True,
    ) -> MFuture:
        """
        Release future from executor and wrap result around MFuture object.
        """
        self.futures.discard(future)

        mfuture = MFuture.from_future(future, result=result)

        if raise_if_failed:
            # raise exception if future errored or was cancelled
            mfuture.raise_if_failed()

        return mfuture

    @property
    def _executor(self) -> Union[ThreadPoolExecutor, ProcessPoolExecutor]:
        if self._cached_executor is None:
            if self._executor_cls:
                self._cached_executor = self._executor_cls(
                    *self._executor_args, **self._executor_kwargs
                )
            else:  # pragma: no cover
                raise TypeError("no Executor Class given")
        return self._cached_executor

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, *args):
        """Exit context manager."""
        if self._cached_executor:
            logger.debug("closing executor %s...", self._cached_executor)
            self._cached_executor.__exit__(*args)
            logger.debug("closed executor %s", self._cached_executor)

    def __repr__(self):  # pragma: no cover
        return f"<Executor ({self._executor_cls})>"


def run_func(
    func: Callable,
    *args,
    fargs: Optional[tuple] = None,
    fkwargs: Optional[dict] = None,
    **kwargs,
) -> Result:
    """Run function and wrap its output in a Result."""
    fargs = args + (fargs or ())
    fkwargs = dict(fkwargs or {}, **kwargs)
    try:
        output = func(*fargs, **fkwargs)
    except Exception as exception:
        logger.exception(exception)
        raise
    return Result(output=output)


def func_partial(
    func: Callable,
    fargs: Optional[tuple] = None,
    fkwargs: Optional[dict] = None,
) -> Callable:
    """Return function partial which wraps output in a Result."""
    return partial(run_func, func, fargs=fargs, fkwargs=fkwargs)
