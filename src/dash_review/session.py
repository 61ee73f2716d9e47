"""Playback of one clip: clock, camera sources and duration refinement."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .clock import PlaybackClock
from .config import ViewerSettings
from .duration import DurationEstimator, DurationResult
from .models import Clip
from .naming import CAMERA_GRID, REQUIRED_CAMERAS, CameraId
from .timeline import SourceRef, event_seek_position, initial_position, resolve, resolve_all

logger = logging.getLogger(__name__)


class PlaybackSession:
    """Coordinate playback of a single clip across all cameras."""

    def __init__(
        self,
        clip: Clip,
        *,
        estimator: DurationEstimator | None = None,
        settings: ViewerSettings | None = None,
        clock: PlaybackClock | None = None,
    ) -> None:
        self._clip = clip
        self._settings = settings if settings is not None else ViewerSettings()
        self._estimator = (
            estimator if estimator is not None else DurationEstimator(settings=self._settings)
        )
        self._clock = (
            clock
            if clock is not None
            else PlaybackClock(clip.duration_s, settings=self._settings)
        )
        self._selected_camera = self._settings.default_camera
        self._refine_task: Optional[asyncio.Task[DurationResult]] = None
        self._open = False

    # ------------------------------------------------------------------
    @property
    def clip(self) -> Clip:
        return self._clip

    @property
    def clock(self) -> PlaybackClock:
        return self._clock

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def selected_camera(self) -> CameraId:
        return self._selected_camera

    @property
    def calculating_duration(self) -> bool:
        return self._refine_task is not None and not self._refine_task.done()

    @property
    def grid(self) -> tuple[tuple[CameraId, ...], ...]:
        return CAMERA_GRID

    # ------------------------------------------------------------------
    async def open(self) -> None:
        """Start playback near the event and begin measuring the duration."""

        if self._open:
            return
        self._open = True
        self._clock.seek(initial_position(self._clip, self._settings.event_lead_in_s))
        if self._settings.auto_play:
            self._clock.play()
        await self._clock.start()
        if self._clip.duration_measured:
            self._clock.set_duration(self._clip.duration_s)
        elif not self.calculating_duration:
            self._refine_task = asyncio.create_task(
                self._refine(), name=f"dash-review-duration-{self._clip.id}"
            )

    async def close(self) -> None:
        """Stop playback. A running duration measurement is left to finish."""

        if not self._open:
            return
        self._open = False
        self._clock.pause()
        await self._clock.stop()

    async def wait_for_duration(self) -> DurationResult | None:
        task = self._refine_task
        if task is None:
            return None
        return await asyncio.shield(task)

    async def _refine(self) -> DurationResult:
        result = await self._estimator.refine(self._clip)
        self.apply_duration(result)
        return result

    def apply_duration(self, result: DurationResult) -> bool:
        """Adopt a measured duration if it belongs to the clip still being played."""

        if result.clip_id != self._clip.id or not self._open:
            logger.debug(
                "Ignoring duration for %s; session is showing %s (open=%s)",
                result.clip_id,
                self._clip.id,
                self._open,
            )
            return False
        self._clock.set_duration(result.duration_s)
        return True

    # ------------------------------------------------------------------
    def source(self, camera: CameraId | None = None) -> SourceRef:
        target = camera if camera is not None else self._selected_camera
        return resolve(self._clip, self._clock.position, target)

    def sources(self) -> dict[CameraId, SourceRef]:
        return resolve_all(self._clip, self._clock.position, REQUIRED_CAMERAS)

    def needs_seek(self, camera: CameraId, current_offset: float) -> bool:
        """Return ``True`` when *camera*'s player has drifted from the clock."""

        return self.source(camera).needs_seek(
            current_offset, tolerance=self._settings.drift_tolerance_s
        )

    def select_camera(self, camera: CameraId | str) -> CameraId:
        self._selected_camera = CameraId(camera)
        return self._selected_camera

    def set_rate(self, rate: float) -> float:
        bounded = min(max(float(rate), self._settings.min_rate), self._settings.max_rate)
        return self._clock.set_rate(bounded)

    def jump_forward(self) -> float:
        return self._clock.jump(self._settings.jump_step_s)

    def jump_back(self) -> float:
        return self._clock.jump(-self._settings.jump_step_s)

    def goto_event(self) -> float | None:
        position = event_seek_position(self._clip, self._settings.event_seek_lead_s)
        if position is None:
            return None
        return self._clock.seek(position)


__all__ = ["PlaybackSession"]
