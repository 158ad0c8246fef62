from __future__ import annotations

import logging
from concurrent.futures import CancelledError
from typing import Any, Callable, Optional, Protocol, Union

from rangetiff.errors import TaskFailed
from rangetiff.executor.types import Result
from rangetiff.settings import rangetiff_settings

logger = logging.getLogger(__name__)


class FutureProtocol(Protocol):
    """This protocol is implemented by concurrent.futures.Future."""

    def result(self, **kwargs) -> Any:  # pragma: no cover
        ...

    def exception(self, **kwargs) -> Union[BaseException, None]:  # pragma: no cover
        ...

    def cancelled(self) -> bool:  # pragma: no cover
        ...


class MFuture:
    """
    Enhanced Future class with some convenience features to ship around and check results.
    """

    status: Optional[str] = None
    name: Optional[str] = None

    def __init__(
        self,
        future: Optional[FutureProtocol] = None,
        result: Optional[Any] = None,
        exception: Optional[BaseException] = None,
        cancelled: bool = False,
        status: Optional[str] = None,
        name: Optional[str] = None,
    ):
        self._future = future
        self._exception = exception
        self._set_result(result)
        self._cancelled = cancelled
        self.status = status
        self.name = name or repr(self)

    def __repr__(self):  # pragma: no cover
        """Return string representation."""
        return f"<MFuture: type: {type(self._result)}, exception: {type(self._exception)})"

    @staticmethod
    def from_future(future: FutureProtocol, result: Optional[Any] = None) -> MFuture:
        # keep around Future for later and don't call Future.result()
        return MFuture(
            result=result,
            future=future,
            cancelled=future.cancelled(),
            name=str(future),
            exception=None if future.cancelled() else future.exception(),
        )

    @staticmethod
    def from_func_partial(func: Callable, item: Any) -> MFuture:
        try:
            result = func(item)
        except Exception as exc:
            return MFuture(exception=exc)
        return MFuture(result=result)

    def result(self, timeout: float = rangetiff_settings.future_timeout, **kwargs) -> Any:
        """Return task result."""
        self._populate_from_future(timeout=timeout)

        if self._exception:
            raise self._exception

        return self._result

    def exception(self, **kwargs) -> Union[BaseException, None]:
        """Return task exception if any."""
        self._populate_from_future(**kwargs)

        return self._exception

    def cancelled(self) -> bool:
        """Sequential futures cannot be cancelled."""
        return self._cancelled or self.status == "cancelled"

    def failed(self) -> bool:
        return self.exception(timeout=rangetiff_settings.future_timeout) is not None

    def _populate_from_future(
        self, timeout: float = rangetiff_settings.future_timeout, **kwargs
    ):
        """Fill internal cache with future.result() if future was provided."""
        # only check if there is a cached future but no result nor exception
        if (
            self._future is not None
            and self._result is None
            and self._exception is None
        ):
            exc = self._future.exception(timeout=timeout)
            if exc:
                self._exception = exc
            else:
                self._set_result(self._future.result(timeout=timeout, **kwargs))

            # delete reference to future so it can be garbage collected
            self._future = None

    def _set_result(self, result: Any) -> None:
        """Look into result and extract task metadata if available."""
        if isinstance(result, Result):
            self._result = result.output
            self._exception = result.exception
        else:
            self._result = result

    def raise_if_failed(self) -> None:
        """
        Checks whether future contains an exception and raises it as TaskFailed.
        """
        if self.cancelled():  # pragma: no cover
            raise CancelledError(f"{self.name} got cancelled")

        elif self.failed():
            exception = self.exception(timeout=rangetiff_settings.future_timeout)

            # cancellation is an issue of the executor, not of the task
            if isinstance(exception, CancelledError):  # pragma: no cover
                raise exception

            # wrap all other exceptions in a TaskFailed
            raise TaskFailed(f"{self.name} raised a {repr(exception)}") from exception
