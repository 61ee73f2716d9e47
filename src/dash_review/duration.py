"""Clip duration heuristics and measurement."""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import BinaryIO, Protocol, Sequence

import av

from .config import DEFAULT_SEGMENT_FALLBACK_S, ViewerSettings
from .diagnostics import DiagnosticLog
from .entries import ArchiveEntry
from .models import Clip, Segment

logger = logging.getLogger(__name__)


class ProbeError(RuntimeError):
    """Raised when the length of a media file cannot be determined."""


def estimate_duration(
    segments: Sequence[Segment], fallback_s: float = DEFAULT_SEGMENT_FALLBACK_S
) -> float:
    """Return the span between the first and last segment plus *fallback_s*."""

    if not segments:
        return 0.0
    span = (segments[-1].timestamp - segments[0].timestamp).total_seconds()
    return span + float(fallback_s)


class MediaProbe(Protocol):
    """Anything able to report the playable length of an entry."""

    async def probe(self, entry: ArchiveEntry) -> float:  # pragma: no cover - protocol
        """Return the length of *entry* in seconds or raise :class:`ProbeError`."""


class AvMediaProbe:
    """Read container headers with PyAV to find a fragment's length."""

    async def probe(self, entry: ArchiveEntry) -> float:
        return await asyncio.to_thread(self._probe_source, entry.media_source(), entry.path)

    @staticmethod
    def _probe_source(source: str | BinaryIO, label: str) -> float:
        try:
            container = av.open(source, mode="r")
        except (av.FFmpegError, OSError, ValueError) as exc:
            raise ProbeError(f"Unable to open {label}: {exc}") from exc
        with container:
            seconds: float | None = None
            if container.duration is not None and container.duration > 0:
                seconds = container.duration / av.time_base
            else:
                for stream in container.streams.video:
                    if stream.duration is not None and stream.time_base is not None:
                        seconds = float(stream.duration * stream.time_base)
                    break
        if seconds is None or not math.isfinite(seconds) or seconds <= 0:
            raise ProbeError(f"{label} does not report a duration")
        return float(seconds)


@dataclass(frozen=True, slots=True)
class DurationResult:
    """Outcome of one measurement pass, keyed by the clip it targeted."""

    clip_id: str
    duration_s: float
    probed: int
    failed: int


class DurationEstimator:
    """Replace a clip's estimated duration with the sum of measured segments."""

    def __init__(
        self,
        probe: MediaProbe | None = None,
        *,
        settings: ViewerSettings | None = None,
        diagnostics: DiagnosticLog | None = None,
    ) -> None:
        self._probe = probe if probe is not None else AvMediaProbe()
        self._settings = settings if settings is not None else ViewerSettings()
        self._diagnostics = diagnostics

    async def refine(self, clip: Clip) -> DurationResult:
        """Measure *clip* once and store the total on that clip.

        Segments are probed one after another in timeline order. A segment
        whose probe fails contributes the fallback length instead.
        """

        if clip.duration_measured:
            return DurationResult(clip.id, clip.duration_s, probed=0, failed=0)
        fallback = self._settings.segment_fallback_s
        total = 0.0
        probed = 0
        failed = 0
        for index, segment in enumerate(clip.segments):
            fragment = segment.representative()
            if fragment is None:
                continue
            try:
                length = await self._probe.probe(fragment.entry)
                if not math.isfinite(length) or length <= 0:
                    raise ProbeError(f"{fragment.key} reported length {length!r}")
            except (ProbeError, OSError, ValueError) as exc:
                logger.warning(
                    "Duration probe failed for %s segment %d (%s); using %.0fs",
                    clip.id,
                    index,
                    exc,
                    fallback,
                )
                self._record_failure(clip, index, fragment.key, exc)
                failed += 1
                total += fallback
                continue
            except Exception as exc:
                logger.exception(
                    "Unexpected probe error for %s segment %d; using %.0fs",
                    clip.id,
                    index,
                    fallback,
                )
                self._record_failure(clip, index, fragment.key, exc)
                failed += 1
                total += fallback
                continue
            probed += 1
            total += length
            logger.debug("Segment %d of %s measured at %.3fs", index, clip.id, length)
        clip.duration_s = total
        clip.duration_measured = True
        logger.info("Measured duration for %s: %.3fs", clip.id, total)
        return DurationResult(clip.id, total, probed=probed, failed=failed)

    def _record_failure(self, clip: Clip, index: int, path: str, exc: Exception) -> None:
        if self._diagnostics is not None:
            self._diagnostics.record(
                "duration",
                "probe_failed",
                f"Could not measure segment {index} of {clip.id}",
                metadata={"clip": clip.id, "path": path, "error": str(exc)},
            )


__all__ = [
    "AvMediaProbe",
    "DurationEstimator",
    "DurationResult",
    "MediaProbe",
    "ProbeError",
    "estimate_duration",
]
