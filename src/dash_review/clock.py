"""Virtual playback clock shared by every camera of a clip."""
from __future__ import annotations

import asyncio
import logging
import math
import time
from enum import Enum
from typing import Callable, Optional

from .config import ViewerSettings

logger = logging.getLogger(__name__)

TickListener = Callable[[float], None]


class ClockState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"


class PlaybackClock:
    """Advance a position over wall-clock time, scaled by a rate multiplier.

    Reaching ``duration`` does not pause the clock; the position simply stops
    moving and consumers treat :attr:`at_end` as the end of the clip.
    """

    def __init__(
        self,
        duration: float,
        *,
        rate: float = 1.0,
        settings: ViewerSettings | None = None,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings if settings is not None else ViewerSettings()
        self._time_source = time_source
        self._duration = self._validate_duration(duration)
        self._position = 0.0
        self._rate = 1.0
        self._state = ClockState.STOPPED
        self._last_tick = time_source()
        self._listeners: list[TickListener] = []
        self._task: Optional[asyncio.Task[None]] = None
        self.set_rate(rate)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def playing(self) -> bool:
        return self._state is ClockState.PLAYING

    @property
    def position(self) -> float:
        return self._position

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def at_end(self) -> bool:
        return self._position >= self._duration

    # ------------------------------------------------------------------
    # Transport controls
    # ------------------------------------------------------------------
    def play(self) -> None:
        if self._state is ClockState.PLAYING:
            return
        self._last_tick = self._time_source()
        self._state = ClockState.PLAYING

    def pause(self) -> None:
        if self._state is ClockState.STOPPED:
            return
        self.tick()
        self._state = ClockState.STOPPED

    def toggle(self) -> ClockState:
        if self.playing:
            self.pause()
        else:
            self.play()
        return self._state

    def seek(self, position: float) -> float:
        self._position = self._clamp(float(position))
        if self.playing:
            # Time elapsed before the seek belongs to the old position.
            self._last_tick = self._time_source()
        return self._position

    def jump(self, delta: float) -> float:
        return self.seek(self._position + float(delta))

    def set_rate(self, rate: float) -> float:
        value = float(rate)
        if not math.isfinite(value) or value <= 0:
            raise ValueError("Playback rate must be a positive number")
        if self.playing:
            # Bank the time already played at the previous rate.
            self.tick()
        self._rate = value
        return self._rate

    def reset_rate(self) -> float:
        return self.set_rate(1.0)

    def set_duration(self, duration: float) -> None:
        self._duration = self._validate_duration(duration)
        self._position = self._clamp(self._position)

    def tick(self, now: float | None = None) -> float:
        """Advance the position by the wall-clock time since the previous tick."""

        current = self._time_source() if now is None else float(now)
        elapsed = max(0.0, current - self._last_tick)
        self._last_tick = current
        if self._state is ClockState.PLAYING:
            self._position = self._clamp(self._position + elapsed * self._rate)
        return self._position

    # ------------------------------------------------------------------
    # Cooperative ticking
    # ------------------------------------------------------------------
    def add_listener(self, listener: TickListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TickListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Begin ticking on the running event loop."""

        if self.running:
            return
        self._last_tick = self._time_source()
        self._task = asyncio.create_task(self._run(), name="dash-review-playback-clock")

    async def stop(self) -> None:
        """Stop re-arming the tick loop."""

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run(self) -> None:
        interval = self._settings.tick_interval_s
        while True:
            position = self.tick()
            for listener in list(self._listeners):
                try:
                    listener(position)
                except Exception:  # pragma: no cover - listener bugs must not stop playback
                    logger.exception("Playback clock listener failed")
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    def _clamp(self, position: float) -> float:
        if math.isnan(position):
            return self._position
        return min(max(position, 0.0), self._duration)

    @staticmethod
    def _validate_duration(duration: float) -> float:
        value = float(duration)
        if not math.isfinite(value) or value < 0:
            raise ValueError("Duration must be a finite, non-negative number")
        return value


__all__ = ["ClockState", "PlaybackClock", "TickListener"]
