"""Local identifier synthesis for records the backend never saw."""

import time
from typing import Callable


class TimestampIdFactory:
    """
    Millisecond-timestamp ids, strictly increasing within one factory.

    Two calls in the same millisecond still get distinct ids. These ids
    are never reconciled with ids the backend assigns later.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0

    def __call__(self) -> str:
        now = int(self._clock() * 1000)
        if now <= self._last:
            now = self._last + 1
        self._last = now
        return str(now)
