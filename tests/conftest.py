import heapq
import itertools
from typing import Any, Callable, List, Tuple

import pytest

from app.core.config import DrawTimings
from app.domain.schemas import Candidate


class FakeHandle:
    def __init__(self, when: float):
        self.when = when
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Virtual clock with asyncio's ``call_later`` interface."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, FakeHandle, Callable[..., Any], tuple]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        handle = FakeHandle(self.now + delay)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle, callback, args))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h, _, _ in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> None:
        target = round(self.now + seconds, 6)
        while self._queue and self._queue[0][0] <= target + 1e-9:
            when, _, handle, callback, args = heapq.heappop(self._queue)
            self.now = max(self.now, when)
            if not handle.cancelled:
                callback(*args)
        self.now = target

    def run_all(self, limit: int = 100_000) -> None:
        for _ in range(limit):
            live = [item for item in self._queue if not item[2].cancelled]
            if not live:
                self._queue.clear()
                return
            self.advance(max(0.0, min(item[0] for item in live) - self.now))
        raise AssertionError("scheduler did not settle")


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def timings() -> DrawTimings:
    return DrawTimings()


@pytest.fixture
def pool() -> List[Candidate]:
    return [
        Candidate(id="a", name="Ada", department="Support", supervisor="Lin", totalTickets=1, nps=9),
        Candidate(id="b", name="Bo", department="Sales", supervisor="Kim", totalTickets=1, nrpc=0.4),
        Candidate(id="c", name="Cy", department="Support", supervisor="Lin", totalTickets=1),
    ]
