from tqdm import tqdm


class PBar:
    """Progress bar counting read tiles, optionally printing a line per tile."""

    print_messages: bool = True
    _pbar = tqdm

    def __init__(self, *args, print_messages: bool = True, **kwargs):
        self._args = args
        self._kwargs = kwargs
        self.print_messages = print_messages

    def __enter__(self):
        self._pbar = tqdm(*self._args, **self._kwargs)
        return self

    def __exit__(self, *args):
        self._pbar.__exit__(*args)

    def update(self, count: int = 1, message: str = None):
        self._pbar.update(count)
        if self.print_messages and message:
            tqdm.write(message)
