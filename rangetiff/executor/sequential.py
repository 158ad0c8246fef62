import logging
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional, Tuple

from rangetiff.executor.base import ExecutorBase
from rangetiff.executor.future import MFuture

logger = logging.getLogger(__name__)


class SequentialExecutor(ExecutorBase):
    """Execute tasks sequentially in single process."""

    def __init__(self, *_, **__):
        """Set attributes."""
        logger.debug("init SequentialExecutor")
        self.futures = set()

    def __str__(self) -> str:
        return "<SequentialExecutor>"

    def as_completed(
        self,
        func: Callable,
        iterable: Iterable,
        fargs: Optional[Tuple] = None,
        fkwargs: Optional[Dict[str, Any]] = None,
        **__,
    ) -> Generator[MFuture, None, None]:
        """Yield finished tasks."""
        for item in iterable:
            # run task and yield future
            future = MFuture.from_func_partial(
                self.func_partial(func, fargs=fargs, fkwargs=fkwargs), item
            )
            future.raise_if_failed()
            yield future

    def map(
        self,
        func: Callable,
        iterable: Iterable[Any],
        fargs: Optional[Tuple] = None,
        fkwargs: Optional[Dict[str, Any]] = None,
    ) -> List[Any]:
        return [
            result.output
            for result in map(
                self.func_partial(func, fargs=fargs, fkwargs=fkwargs), iterable
            )
        ]

    def __exit__(self, *_):
        """Exit context manager."""
        logger.debug("SequentialExecutor closed")

    def __repr__(self):  # pragma: no cover
        """Return string representation."""
        return "SequentialExecutor"
