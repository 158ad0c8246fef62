from rangetiff import Timer


def test_timer():
    timer = Timer(elapsed=1.5)
    assert timer.elapsed == 1.5
    timer = Timer(elapsed=60)
    assert str(timer) == "1m 0s"
    timer = Timer(elapsed=3700)
    assert str(timer) == "1h 1m 40s"

    assert "Timer" in timer.__repr__()


def test_timer_context():
    with Timer() as timer:
        list(range(1000))
    assert timer.elapsed >= 0
    assert timer.end >= timer.start
    assert str(timer).endswith("s")
