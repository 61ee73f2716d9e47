"""Lookup table mapping ``event.json`` reasons onto clip classifications."""
from __future__ import annotations

from dataclasses import dataclass

from .naming import ArchiveKind, Classification


@dataclass(frozen=True, slots=True)
class ReasonInfo:
    """Classification and translation key for a known trigger reason."""

    classification: Classification
    display_key: str


KNOWN_REASONS: dict[str, ReasonInfo] = {
    "user_interaction_honk": ReasonInfo(Classification.SAVED, "reason_honk"),
    "user_interaction_dashcam_panel_save": ReasonInfo(
        Classification.SAVED, "reason_dashcam_panel_save"
    ),
    "user_interaction_dashcam_icon_tapped": ReasonInfo(
        Classification.SAVED, "reason_dashcam_icon_tapped"
    ),
    "user_interaction_dashcam_launcher_action_tapped": ReasonInfo(
        Classification.SAVED, "reason_dashcam_launcher"
    ),
    "vehicle_auto_emergency_braking": ReasonInfo(
        Classification.SAVED, "reason_emergency_braking"
    ),
    "sentry_aware_object_detection": ReasonInfo(
        Classification.SENTRY, "reason_sentry_object_detection"
    ),
    "sentry_aware_accel": ReasonInfo(Classification.SENTRY, "reason_sentry_accel"),
    "sentry_panic_accel": ReasonInfo(Classification.SENTRY, "reason_sentry_panic_accel"),
    "sentry_locked_handle_pulled": ReasonInfo(
        Classification.SENTRY, "reason_sentry_handle_pulled"
    ),
}

# Triggers whose reason string ends with a measured magnitude.
MAGNITUDE_REASONS = frozenset({"sentry_aware_accel", "sentry_panic_accel"})


def lookup_reason(reason: str) -> ReasonInfo | None:
    """Return the table entry for *reason*, if any."""

    info = KNOWN_REASONS.get(reason)
    if info is not None:
        return info
    prefix, _, suffix = reason.rpartition("_")
    if prefix in MAGNITUDE_REASONS and suffix.replace(".", "", 1).isdigit():
        return KNOWN_REASONS[prefix]
    return None


def classify(
    reason: str | None, kind: ArchiveKind
) -> tuple[Classification, str | None, bool]:
    """Resolve ``(classification, display_reason, recognised)`` for a clip.

    Unknown reasons keep the classification implied by the archive folder and
    are displayed verbatim. A clip without a reason has nothing to report.
    """

    default = kind.default_classification
    if not reason:
        return default, None, True
    info = lookup_reason(reason)
    if info is None:
        return default, reason, False
    return info.classification, info.display_key, True


__all__ = ["KNOWN_REASONS", "MAGNITUDE_REASONS", "ReasonInfo", "classify", "lookup_reason"]
