import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from app.core.config import DrawTimings
from app.domain.schemas import Candidate, DrawResult, DrawSnapshot

from .logging import StageLogger
from .reveal import RevealScheduler, Scheduler, TimerHandle
from .sampler import RandomSource, resolve_rng, weighted_sample

log = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], None]
CompletionCallback = Callable[[List[Candidate]], None]


class DrawPhase(str, Enum):
    IDLE = "idle"
    COUNTDOWN = "countdown"
    CYCLING = "cycling"
    REVEALING = "revealing"
    COMPLETE = "complete"


@dataclass
class DrawSession:
    """Mutable state of one in-flight draw. Only the owning machine mutates it."""

    session_id: str
    generation: int
    pool: Tuple[Candidate, ...]
    winner_count: int
    logger: StageLogger
    on_complete: Optional[CompletionCallback] = None
    phase: DrawPhase = DrawPhase.IDLE
    countdown_remaining: int = 0
    displayed: Optional[Candidate] = None
    cycle_index: int = 0
    cycle_elapsed_ms: int = 0
    winners: Tuple[Candidate, ...] = ()
    reveal_index: Optional[int] = None
    cancelled: bool = False
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    timer: Optional[TimerHandle] = None
    reveals: Optional[RevealScheduler] = None

    def revealed(self) -> Tuple[Candidate, ...]:
        if self.phase == DrawPhase.COMPLETE:
            return self.winners
        if self.phase == DrawPhase.REVEALING and self.reveal_index is not None:
            return self.winners[: self.reveal_index + 1]
        return ()

    def snapshot(self) -> DrawSnapshot:
        return DrawSnapshot(
            session_id=self.session_id,
            phase=self.phase.value,
            countdown_remaining=self.countdown_remaining,
            displayed=self.displayed,
            reveal_index=self.reveal_index,
            winners=list(self.revealed()),
            winner_count=self.winner_count,
            pool_size=len(self.pool),
        )


class DrawMachine:
    """Runs one draw at a time: countdown, cycling, revealing, complete.

    Every phase owns at most one pending timer, released on the way out.
    Timer callbacks carry the session generation and do nothing once that
    session has been cancelled or superseded.

    ``scheduler`` is anything exposing ``call_later`` (the running asyncio
    loop by default). ``rng`` feeds the weighted sampler.
    """

    def __init__(
        self,
        timings: Optional[DrawTimings] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Union[RandomSource, int, None] = None,
        on_event: Optional[Listener] = None,
    ) -> None:
        self.timings = timings or DrawTimings()
        self._scheduler = scheduler
        self._rng = resolve_rng(rng)
        self._listeners: List[Listener] = []
        if on_event is not None:
            self._listeners.append(on_event)
        self._session: Optional[DrawSession] = None
        self._active_scheduler: Optional[Scheduler] = None
        self._generation = 0
        self.last_result: Optional[DrawResult] = None

    @property
    def session(self) -> Optional[DrawSession]:
        return self._session

    @property
    def phase(self) -> DrawPhase:
        return self._session.phase if self._session else DrawPhase.IDLE

    def snapshot(self) -> DrawSnapshot:
        if self._session is None:
            return DrawSnapshot()
        return self._session.snapshot()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a phase event listener. Returns the matching unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(
        self,
        pool: Iterable[Union[Candidate, Dict[str, Any]]],
        winner_count: int,
        on_complete: Optional[CompletionCallback] = None,
    ) -> Optional[DrawSession]:
        """Begin a draw. An empty pool is ignored and returns ``None``."""
        candidates = tuple(
            c if isinstance(c, Candidate) else Candidate.model_validate(c) for c in pool
        )
        if not candidates:
            log.debug("draw request with empty pool ignored")
            return None

        self.cancel()
        scheduler = self._scheduler or asyncio.get_running_loop()
        self._generation += 1
        session = DrawSession(
            session_id=uuid.uuid4().hex,
            generation=self._generation,
            pool=candidates,
            winner_count=max(0, int(winner_count)),
            logger=StageLogger(self._dispatch),
            on_complete=on_complete,
        )
        session.reveals = RevealScheduler(
            self.timings.reveal_interval_ms, scheduler, hold_ms=self.timings.reveal_interval_ms
        )
        self._session = session
        self._active_scheduler = scheduler
        log.info(
            "draw %s started: pool=%d winners=%d",
            session.session_id, len(candidates), session.winner_count,
        )

        session.phase = DrawPhase.COUNTDOWN
        session.countdown_remaining = self.timings.countdown_seconds
        if not self._stage(session, "draw:countdown"):
            return session
        if session.countdown_remaining <= 0:
            self._enter_cycling(session)
        else:
            self._schedule(session, self.timings.countdown_tick_ms, self._countdown_tick)
        return session

    def cancel(self) -> bool:
        """Abort the active draw without notifying its caller."""
        session = self._session
        if session is None:
            return False
        session.cancelled = True
        self._release(session)
        self._session = None
        log.info("draw %s cancelled during %s", session.session_id, session.phase.value)
        session.logger.stage(
            "draw:cancelled",
            {"session_id": session.session_id, "phase": DrawPhase.IDLE.value, "cancelled_in": session.phase.value},
        )
        return True

    def _schedule(self, session: DrawSession, delay_ms: int, step: Callable[[DrawSession], None]) -> None:
        if session.timer is not None:
            session.timer.cancel()
        session.timer = self._active_scheduler.call_later(
            delay_ms / 1000, self._fire, session.generation, step
        )

    def _fire(self, generation: int, step: Callable[[DrawSession], None]) -> None:
        session = self._current(generation)
        if session is None:
            log.debug("stale draw timer for generation %d ignored", generation)
            return
        session.timer = None
        step(session)

    def _current(self, generation: int) -> Optional[DrawSession]:
        session = self._session
        if session is None or session.cancelled or session.generation != generation:
            return None
        return session

    def _release(self, session: DrawSession) -> None:
        if session.timer is not None:
            session.timer.cancel()
            session.timer = None
        if session.reveals is not None:
            session.reveals.cancel()

    def _stage(self, session: DrawSession, name: str) -> bool:
        """Publish the session snapshot. False when a listener ended the session."""
        session.logger.stage(name, session.snapshot().model_dump(mode="json", by_alias=True))
        return self._current(session.generation) is not None

    def _dispatch(self, name: str, evt: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(name, evt)
            except Exception:
                log.exception("draw listener failed on %s", name)

    def _countdown_tick(self, session: DrawSession) -> None:
        session.countdown_remaining -= 1
        if not self._stage(session, "draw:countdown"):
            return
        if session.countdown_remaining <= 0:
            self._enter_cycling(session)
        else:
            self._schedule(session, self.timings.countdown_tick_ms, self._countdown_tick)

    def _enter_cycling(self, session: DrawSession) -> None:
        session.phase = DrawPhase.CYCLING
        session.countdown_remaining = 0
        session.cycle_elapsed_ms = 0
        session.displayed = session.pool[0]
        session.cycle_index = 1 % len(session.pool)
        if not self._stage(session, "draw:cycling"):
            return
        if self.timings.cycle_duration_ms <= 0:
            self._finish_cycling(session)
        else:
            self._schedule(session, self.timings.cycle_tick_ms, self._cycle_tick)

    def _cycle_tick(self, session: DrawSession) -> None:
        session.displayed = session.pool[session.cycle_index]
        session.cycle_index = (session.cycle_index + 1) % len(session.pool)
        session.cycle_elapsed_ms += self.timings.cycle_tick_ms
        if not self._stage(session, "draw:cycle"):
            return
        if session.cycle_elapsed_ms >= self.timings.cycle_duration_ms:
            self._finish_cycling(session)
        else:
            self._schedule(session, self.timings.cycle_tick_ms, self._cycle_tick)

    def _finish_cycling(self, session: DrawSession) -> None:
        session.winners = tuple(weighted_sample(session.pool, session.winner_count, self._rng))
        log.info("draw %s selected %d winners", session.session_id, len(session.winners))
        if not session.winners:
            self._enter_complete(session)
            return

        session.phase = DrawPhase.REVEALING
        generation = session.generation

        def on_each_reveal(winner: Candidate, index: int) -> None:
            if self._current(generation) is None:
                return
            session.reveal_index = index
            session.displayed = winner
            self._stage(session, "draw:reveal")

        def on_done() -> None:
            if self._current(generation) is None:
                return
            self._enter_complete(session)

        session.reveals.reveal(session.winners, on_each_reveal, on_done)

    def _enter_complete(self, session: DrawSession) -> None:
        session.phase = DrawPhase.COMPLETE
        if not self._stage(session, "draw:complete"):
            return
        self._schedule(session, self.timings.settle_ms, self._settle)

    def _settle(self, session: DrawSession) -> None:
        session.finished_at = time.time()
        self.last_result = DrawResult(
            session_id=session.session_id,
            started_at=session.started_at,
            finished_at=session.finished_at,
            winner_count=session.winner_count,
            pool_size=len(session.pool),
            winners=list(session.winners),
        )
        self._release(session)
        self._session = None
        self._stage(session, "draw:finished")
        log.info("draw %s finished", session.session_id)
        if session.on_complete is not None:
            try:
                session.on_complete(list(session.winners))
            except Exception:
                log.exception("draw %s completion callback failed", session.session_id)
