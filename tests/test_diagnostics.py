import pytest

from dash_review.diagnostics import DiagnosticLog


def test_record_and_tail_filters() -> None:
    log = DiagnosticLog()
    log.record("archive", "missing_companion", "Clip a missing thumbnail", metadata={"clip": "a"})
    log.record("archive", "incomplete_segment", "Clip b missing cameras")
    log.record("duration", "probe_failed", "Segment 0 of c", metadata={"clip": "c", "error": None})

    assert len(log) == 3
    assert [entry.event for entry in log.tail(category="archive")] == [
        "missing_companion",
        "incomplete_segment",
    ]
    assert [entry.event for entry in log.tail(1)] == ["probe_failed"]
    [probe] = log.tail(event="probe_failed")
    assert probe.metadata == {"clip": "c"}
    assert probe.to_dict()["metadata"] == {"clip": "c"}


def test_blank_category_defaults_to_general() -> None:
    log = DiagnosticLog()

    entry = log.record("  ", "event", "message", metadata={"unused": None})

    assert entry.category == "general"
    assert entry.metadata is None
    assert "metadata" not in entry.to_dict()


def test_log_is_bounded_and_clearable() -> None:
    log = DiagnosticLog(max_entries=2)
    for index in range(5):
        log.record("archive", f"event-{index}", "message")

    assert [entry.event for entry in log.tail()] == ["event-3", "event-4"]
    log.clear()
    assert log.tail() == []


def test_max_entries_must_be_positive() -> None:
    with pytest.raises(ValueError):
        DiagnosticLog(max_entries=0)
