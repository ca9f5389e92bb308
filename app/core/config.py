import os

from pydantic import BaseModel, Field


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class DrawTimings(BaseModel):
    """Cadences of the draw phases. Durations are in milliseconds."""

    countdown_seconds: int = Field(3, ge=0)
    countdown_tick_ms: int = Field(1000, gt=0)
    cycle_tick_ms: int = Field(50, gt=0)
    cycle_duration_ms: int = Field(5000, ge=0)
    reveal_interval_ms: int = Field(3000, ge=0)
    settle_ms: int = Field(2000, ge=0)


def load_timings() -> DrawTimings:
    """Build timings from DRAW_* env vars. Malformed values keep the default."""
    defaults = DrawTimings()
    return DrawTimings(
        countdown_seconds=max(0, _env_int("DRAW_COUNTDOWN_SECONDS", defaults.countdown_seconds)),
        countdown_tick_ms=max(1, _env_int("DRAW_COUNTDOWN_TICK_MS", defaults.countdown_tick_ms)),
        cycle_tick_ms=max(1, _env_int("DRAW_CYCLE_TICK_MS", defaults.cycle_tick_ms)),
        cycle_duration_ms=max(0, _env_int("DRAW_CYCLE_DURATION_MS", defaults.cycle_duration_ms)),
        reveal_interval_ms=max(0, _env_int("DRAW_REVEAL_INTERVAL_MS", defaults.reveal_interval_ms)),
        settle_ms=max(0, _env_int("DRAW_SETTLE_MS", defaults.settle_ms)),
    )
