"""Request pacing for sequential API calls."""

import time
from typing import Callable, Iterable, Iterator, TypeVar

T = TypeVar('T')


class RequestPacer:
    """Fixed-delay pacing between consecutive requests.

    No delay is inserted before the first item or after the last one.
    """

    def __init__(self, delay: float = 0.2, sleep: Callable[[float], None] = time.sleep):
        """Initialize request pacer.

        Args:
            delay: Seconds to wait between requests
            sleep: Sleep function, replaceable in tests
        """
        if delay < 0:
            raise ValueError('Pacing delay cannot be negative')
        self.delay = delay
        self._sleep = sleep

    def paced(self, items: Iterable[T]) -> Iterator[T]:
        """Yield items, pausing ``delay`` seconds between them."""
        for index, item in enumerate(items):
            if index and self.delay:
                self._sleep(self.delay)
            yield item
