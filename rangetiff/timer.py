import time

from rangetiff.pretty import pretty_seconds


class Timer:
    """
    Context manager to time range reads and window decoding.

    Examples
    --------
    >>> with Timer() as t:
            ...  # read some segments
    >>> logger.debug("segments read in %s", t)
    """

    def __init__(self, elapsed: float = 0.0, str_round: int = 3):
        self._elapsed = elapsed
        self._str_round = str_round
        self.start = None
        self.end = None

    def __enter__(self):
        self.start = time.time()
        return self

    def __exit__(self, *args):
        self.end = time.time()
        self._elapsed = self.end - self.start

    def __repr__(self):
        return f"Timer(start={self.start}, end={self.end}, elapsed={self})"

    def __str__(self):
        return pretty_seconds(self.elapsed, self._str_round)

    @property
    def elapsed(self) -> float:
        return (
            time.time() - self.start if self.start and not self.end else self._elapsed
        )
