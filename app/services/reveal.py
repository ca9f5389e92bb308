from typing import Any, Callable, Optional, Protocol, Sequence


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with asyncio's ``call_later`` signature, e.g. a running event loop."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class RevealScheduler:
    """Reveals ranked winners one at a time at a fixed cadence.

    Rank 1 is revealed as soon as :meth:`reveal` is called, each following
    winner one ``interval_ms`` later. After the last reveal the scheduler
    holds for ``hold_ms`` (the interval unless the owner says otherwise)
    before calling ``on_done``. Only one timer is ever pending.
    """

    def __init__(self, interval_ms: int, scheduler: Scheduler, hold_ms: Optional[int] = None):
        self.interval_ms = interval_ms
        self.hold_ms = interval_ms if hold_ms is None else hold_ms
        self._scheduler = scheduler
        self._handle: Optional[TimerHandle] = None
        self._run = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def reveal(
        self,
        winners: Sequence[Any],
        on_each_reveal: Callable[[Any, int], None],
        on_done: Callable[[], None],
    ) -> None:
        self.cancel()
        self._run += 1
        run = self._run
        ordered = tuple(winners)

        def step(index: int) -> None:
            self._handle = None
            if run != self._run:
                return
            if index >= len(ordered):
                on_done()
                return
            on_each_reveal(ordered[index], index)
            if run != self._run:
                # the callback cancelled or restarted us
                return
            delay = self.interval_ms if index + 1 < len(ordered) else self.hold_ms
            self._handle = self._scheduler.call_later(delay / 1000, step, index + 1)

        step(0)

    def cancel(self) -> None:
        self._run += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
