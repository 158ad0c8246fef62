from concurrent.futures import ThreadPoolExecutor
from functools import partial

import pytest

from rangetiff.errors import TaskFailed
from rangetiff.executor import MFuture
from rangetiff.executor.types import Result


def test_mfuture():
    def task(*args, **kwargs):
        return True

    def failing_task(*args, **kwargs):
        raise RuntimeError()

    future = MFuture.from_func_partial(partial(task, True, foo="bar"), 1)
    assert future.result()
    assert not future.exception()
    assert not future.failed()

    future = MFuture.from_func_partial(partial(failing_task, True, foo="bar"), 1)
    with pytest.raises(RuntimeError):
        future.result()
    assert future.exception()
    assert future.failed()
    with pytest.raises(TaskFailed):
        future.raise_if_failed()


def test_mfuture_from_func_partial():
    assert MFuture.from_func_partial(abs, -3).result() == 3
    assert isinstance(MFuture.from_func_partial(int, "x").exception(), ValueError)


def test_mfuture_unwraps_result():
    future = MFuture(result=Result(output=5))
    assert future.result() == 5

    future = MFuture(result=Result(output=None, exception=ValueError("foo")))
    assert future.failed()


def test_mfuture_from_future():
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = MFuture.from_future(executor.submit(abs, -2))
        assert future.result() == 2
        assert not future.cancelled()

        future = MFuture.from_future(executor.submit(int, "x"))
        assert future.failed()
        with pytest.raises(TaskFailed):
            future.raise_if_failed()
