"""Review dashcam clip archives as synchronised multi-camera recordings."""

from .clock import ClockState, PlaybackClock
from .config import ViewerSettings, ViewerSettingsStore
from .diagnostics import DiagnosticLog
from .duration import AvMediaProbe, DurationEstimator, DurationResult, ProbeError
from .entries import LocalArchiveEntry, MemoryArchiveEntry, collect_entries
from .models import Clip, EventMetadata, Segment, SegmentFile
from .naming import ArchiveKind, CameraId, Classification
from .parser import ArchiveParser, parse_archive
from .session import PlaybackSession
from .timeline import SourceRef, resolve, resolve_all
from .version import APP_VERSION

__all__ = [
    "APP_VERSION",
    "ArchiveKind",
    "ArchiveParser",
    "AvMediaProbe",
    "CameraId",
    "Classification",
    "Clip",
    "ClockState",
    "DiagnosticLog",
    "DurationEstimator",
    "DurationResult",
    "EventMetadata",
    "LocalArchiveEntry",
    "MemoryArchiveEntry",
    "PlaybackClock",
    "PlaybackSession",
    "ProbeError",
    "Segment",
    "SegmentFile",
    "SourceRef",
    "ViewerSettings",
    "ViewerSettingsStore",
    "collect_entries",
    "parse_archive",
    "resolve",
    "resolve_all",
]
