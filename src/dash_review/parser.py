"""Turn a flat list of archive files into validated clips.

The archive written by the vehicle looks like::

    TeslaCam/SavedClips/2023-01-01_10-05-12/
        thumb.png
        event.json
        2023-01-01_10-00-00-front.mp4
        2023-01-01_10-00-00-back.mp4
        ...

Every clip folder must contain a thumbnail, an ``event.json`` and, for each
recorded minute, one fragment per camera. Folders failing any of these checks
are dropped and reported; the parser itself never raises for them.
"""
from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from pydantic import ValidationError

from .config import ViewerSettings
from .diagnostics import DiagnosticLog
from .duration import estimate_duration
from .entries import ArchiveEntry
from .models import Clip, EventMetadata, Segment, SegmentFile
from .naming import (
    ArchiveKind,
    CameraId,
    decode_camera,
    decode_event_time,
    decode_group_folder,
    decode_timestamp,
    is_event_metadata,
    is_thumbnail,
    is_video_fragment,
)
from .reasons import classify

logger = logging.getLogger(__name__)

GroupKey = tuple[ArchiveKind, str]


class ClipExcluded(Exception):
    """Internal signal that a clip folder failed validation."""

    def __init__(self, event: str, message: str, **metadata: object) -> None:
        super().__init__(message)
        self.event = event
        self.message = message
        self.metadata = metadata


@dataclass(slots=True)
class _ClipGroup:
    kind: ArchiveKind
    folder: str
    entries: list[ArchiveEntry] = field(default_factory=list)


class ArchiveParser:
    """Group, validate and assemble clips from archive entries."""

    def __init__(
        self,
        *,
        settings: ViewerSettings | None = None,
        diagnostics: DiagnosticLog | None = None,
    ) -> None:
        self._settings = settings if settings is not None else ViewerSettings()
        self._diagnostics = diagnostics

    async def parse(self, entries: Iterable[ArchiveEntry]) -> list[Clip]:
        """Return the valid clips found in *entries*, most recent first."""

        groups = self.group_entries(entries)
        clips: list[Clip] = []
        for group in groups.values():
            try:
                clip = await self._build_clip(group)
            except ClipExcluded as exc:
                self._report(
                    "warning",
                    exc.event,
                    f"[Skipped] Clip {group.folder}: {exc.message}",
                    clip=group.folder,
                    kind=group.kind.value,
                    **exc.metadata,
                )
                continue
            clips.append(clip)
        clips.sort(key=lambda clip: (clip.timestamp, clip.kind.value, clip.id), reverse=True)
        logger.info("Parsed %d clip(s) from %d folder(s)", len(clips), len(groups))
        return clips

    def group_entries(self, entries: Iterable[ArchiveEntry]) -> dict[GroupKey, _ClipGroup]:
        groups: dict[GroupKey, _ClipGroup] = {}
        for entry in entries:
            decoded = decode_group_folder(entry.path)
            if decoded is None:
                continue
            group = groups.get(decoded)
            if group is None:
                group = groups[decoded] = _ClipGroup(kind=decoded[0], folder=decoded[1])
            group.entries.append(entry)
        return groups

    # ------------------------------------------------------------------
    # Clip assembly
    # ------------------------------------------------------------------
    async def _build_clip(self, group: _ClipGroup) -> Clip:
        thumbnail = self._single(group, "thumbnail", [e for e in group.entries if is_thumbnail(e.name)])
        event_file = self._single(
            group, "event.json", [e for e in group.entries if is_event_metadata(e.name)]
        )
        metadata = await self._load_metadata(event_file)

        classification, display_reason, recognised = classify(metadata.reason, group.kind)
        if not recognised:
            self._report(
                "info",
                "unknown_reason",
                f"Clip {group.folder} has unrecognised reason {metadata.reason!r}",
                clip=group.folder,
                reason=metadata.reason,
            )
        metadata = metadata.model_copy(update={"display_reason": display_reason})

        segments = self._build_segments(group)
        if not segments:
            raise ClipExcluded("no_segments", "no video fragments with a timestamp")

        timestamp = (
            decode_event_time(metadata.timestamp)
            or decode_timestamp(group.folder)
            or segments[-1].timestamp
        )
        return Clip(
            id=group.folder,
            name=group.folder,
            kind=group.kind,
            classification=classification,
            timestamp=timestamp,
            thumbnail=thumbnail,
            metadata=metadata,
            segments=tuple(segments),
            duration_s=estimate_duration(segments, self._settings.segment_fallback_s),
        )

    @staticmethod
    def _single(group: _ClipGroup, label: str, matches: Sequence[ArchiveEntry]) -> ArchiveEntry:
        if not matches:
            raise ClipExcluded("missing_companion", f"missing {label}", file=label)
        if len(matches) > 1:
            raise ClipExcluded(
                "ambiguous_companion",
                f"found {len(matches)} {label} files",
                file=label,
            )
        return matches[0]

    async def _load_metadata(self, entry: ArchiveEntry) -> EventMetadata:
        try:
            text = await entry.read_text()
        except (OSError, UnicodeDecodeError) as exc:
            raise ClipExcluded("metadata_unreadable", f"cannot read {entry.name}: {exc}") from exc
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ClipExcluded("metadata_invalid", f"{entry.name} is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise ClipExcluded("metadata_invalid", f"{entry.name} is not a JSON object")
        try:
            return EventMetadata.model_validate(raw)
        except ValidationError as exc:
            raise ClipExcluded(
                "metadata_invalid",
                f"{entry.name} has unexpected field types: {exc.error_count()} error(s)",
            ) from exc

    def _build_segments(self, group: _ClipGroup) -> list[Segment]:
        buckets: dict[datetime, dict[CameraId, SegmentFile]] = defaultdict(dict)
        for entry in group.entries:
            if not is_video_fragment(entry.name):
                continue
            start = decode_timestamp(entry.name)
            if start is None:
                self._report_fragment(group, entry, "fragment_without_timestamp")
                continue
            camera = decode_camera(entry.name)
            if camera is None:
                self._report_fragment(group, entry, "fragment_without_camera")
                continue
            bucket = buckets[start]
            if camera in bucket:
                self._report_fragment(group, entry, "duplicate_camera")
                continue
            bucket[camera] = SegmentFile(camera=camera, start=start, entry=entry)

        segments: list[Segment] = []
        for start in sorted(buckets):
            segment = Segment(timestamp=start, cameras=buckets[start])
            missing = segment.missing_cameras()
            if missing:
                names = ", ".join(camera.value for camera in missing)
                raise ClipExcluded(
                    "incomplete_segment",
                    f"part {start.isoformat()} missing cameras: {names}",
                    segment=start.isoformat(),
                    missing=[camera.value for camera in missing],
                )
            segments.append(segment)
        return segments

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def _report_fragment(self, group: _ClipGroup, entry: ArchiveEntry, event: str) -> None:
        self._report(
            "debug",
            event,
            f"Ignoring fragment {entry.path} in clip {group.folder}",
            clip=group.folder,
            path=entry.path,
        )

    def _report(self, level: str, event: str, message: str, **metadata: object) -> None:
        getattr(logger, level)(message)
        if self._diagnostics is not None:
            self._diagnostics.record("archive", event, message, metadata=dict(metadata))


async def parse_archive(
    entries: Iterable[ArchiveEntry],
    *,
    settings: ViewerSettings | None = None,
    diagnostics: DiagnosticLog | None = None,
) -> list[Clip]:
    """Parse *entries* into clips, see :class:`ArchiveParser`."""

    parser = ArchiveParser(settings=settings, diagnostics=diagnostics)
    return await parser.parse(entries)


__all__ = ["ArchiveParser", "ClipExcluded", "parse_archive"]
