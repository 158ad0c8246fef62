import pytest

from rangetiff.enums import Concurrency
from rangetiff.errors import TaskFailed
from rangetiff.executor import (
    ConcurrentFuturesExecutor,
    Executor,
    SequentialExecutor,
)


def _dummy_process(i, offset=1):
    list(range(100_000))
    return i + offset


def _failing_process(i):
    if i == 3:
        raise RuntimeError(f"item {i} failed")
    return i


@pytest.mark.parametrize(
    "executor_fixture",
    ["sequential_executor", "processes_executor", "threads_executor"],
)
def test_as_completed(executor_fixture, request, items=10):
    executor = request.getfixturevalue(executor_fixture)

    count = 0
    results = set()
    # process all
    for future in executor.as_completed(_dummy_process, range(items)):
        count += 1
        results.add(future.result())
    assert items == count
    assert results == set(range(1, items + 1))
    assert not executor.futures


@pytest.mark.parametrize(
    "executor_fixture",
    ["sequential_executor", "processes_executor", "threads_executor"],
)
@pytest.mark.parametrize("max_submitted_tasks", [1, 2, 10])
def test_as_completed_max_tasks(executor_fixture, request, max_submitted_tasks, items=10):
    executor = request.getfixturevalue(executor_fixture)

    count = 0
    for future in executor.as_completed(
        _dummy_process,
        range(items),
        fkwargs=dict(offset=10),
        max_submitted_tasks=max_submitted_tasks,
    ):
        assert future.result() >= 10
        count += 1
    assert items == count


@pytest.mark.parametrize(
    "executor_fixture",
    ["sequential_executor", "processes_executor", "threads_executor"],
)
def test_as_completed_task_failed(executor_fixture, request):
    executor = request.getfixturevalue(executor_fixture)

    with pytest.raises(TaskFailed):
        list(executor.as_completed(_failing_process, range(10)))


@pytest.mark.parametrize(
    "executor_fixture",
    ["sequential_executor", "processes_executor", "threads_executor"],
)
def test_map(executor_fixture, request):
    executor = request.getfixturevalue(executor_fixture)

    assert executor.map(_dummy_process, range(5), fkwargs=dict(offset=2)) == [
        2,
        3,
        4,
        5,
        6,
    ]
    assert executor.map(abs, [-1, -2]) == [1, 2]


@pytest.mark.parametrize(
    "concurrency,cls",
    [
        (None, SequentialExecutor),
        ("none", SequentialExecutor),
        (Concurrency.threads, ConcurrentFuturesExecutor),
        ("processes", ConcurrentFuturesExecutor),
    ],
)
def test_executor_factory(concurrency, cls):
    with Executor(concurrency=concurrency, workers=2) as executor:
        assert isinstance(executor, cls)


def test_executor_factory_error():
    with pytest.raises(ValueError):
        Executor(concurrency="dask")


def test_concurrent_futures_workers():
    executor = ConcurrentFuturesExecutor(concurrency="threads", workers=3)
    assert executor.max_workers == 3
    executor = ConcurrentFuturesExecutor(concurrency="threads", max_workers=4, workers=3)
    assert executor.max_workers == 4
