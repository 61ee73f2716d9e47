from __future__ import annotations

import asyncio
import math

import pytest

from dash_review.clock import ClockState, PlaybackClock
from dash_review.config import ViewerSettings


def test_clock_starts_stopped_at_zero(fake_time) -> None:
    clock = PlaybackClock(120.0, time_source=fake_time)

    fake_time.advance(5)
    clock.tick()

    assert clock.state is ClockState.STOPPED
    assert clock.position == 0.0
    assert clock.rate == 1.0


def test_playing_advances_by_elapsed_time_times_rate(fake_time) -> None:
    clock = PlaybackClock(120.0, time_source=fake_time)
    clock.play()

    fake_time.advance(2.0)
    assert clock.tick() == pytest.approx(2.0)

    clock.set_rate(2.0)
    fake_time.advance(3.0)
    assert clock.tick() == pytest.approx(8.0)

    clock.set_rate(0.5)
    fake_time.advance(4.0)
    assert clock.tick() == pytest.approx(10.0)


def test_rate_change_banks_time_played_at_previous_rate(fake_time) -> None:
    clock = PlaybackClock(120.0, time_source=fake_time)
    clock.play()

    fake_time.advance(4.0)
    clock.set_rate(3.0)
    fake_time.advance(1.0)

    assert clock.tick() == pytest.approx(7.0)


def test_paused_time_is_not_played(fake_time) -> None:
    clock = PlaybackClock(120.0, time_source=fake_time)
    clock.play()
    fake_time.advance(1.0)
    clock.pause()

    fake_time.advance(30.0)
    clock.tick()
    assert clock.position == pytest.approx(1.0)

    clock.play()
    fake_time.advance(1.0)
    assert clock.tick() == pytest.approx(2.0)


def test_toggle_switches_state(fake_time) -> None:
    clock = PlaybackClock(10.0, time_source=fake_time)

    assert clock.toggle() is ClockState.PLAYING
    assert clock.playing
    assert clock.toggle() is ClockState.STOPPED


def test_position_clamps_at_duration_without_stopping(fake_time) -> None:
    clock = PlaybackClock(10.0, time_source=fake_time)
    clock.play()

    fake_time.advance(25.0)
    clock.tick()

    assert clock.position == 10.0
    assert clock.at_end
    assert clock.state is ClockState.PLAYING


def test_seek_and_jump_clamp(fake_time) -> None:
    clock = PlaybackClock(60.0, time_source=fake_time)

    assert clock.seek(-4.0) == 0.0
    assert clock.seek(75.0) == 60.0
    assert clock.seek(30.0) == 30.0
    assert clock.jump(5.0) == 35.0
    assert clock.jump(-50.0) == 0.0
    assert clock.seek(math.nan) == 0.0


def test_seek_works_while_playing(fake_time) -> None:
    clock = PlaybackClock(60.0, time_source=fake_time)
    clock.play()
    fake_time.advance(1.0)
    clock.seek(40.0)

    fake_time.advance(1.0)
    assert clock.tick() == pytest.approx(41.0)


@pytest.mark.parametrize("rate", [0.0, -1.0, math.inf, math.nan])
def test_invalid_rates_are_rejected(fake_time, rate: float) -> None:
    clock = PlaybackClock(60.0, time_source=fake_time)

    with pytest.raises(ValueError):
        clock.set_rate(rate)


def test_reset_rate(fake_time) -> None:
    clock = PlaybackClock(60.0, rate=4.0, time_source=fake_time)

    assert clock.rate == 4.0
    assert clock.reset_rate() == 1.0


def test_set_duration_reclamps_position(fake_time) -> None:
    clock = PlaybackClock(180.0, time_source=fake_time)
    clock.seek(170.0)

    clock.set_duration(150.0)

    assert clock.duration == 150.0
    assert clock.position == 150.0
    with pytest.raises(ValueError):
        clock.set_duration(-1.0)


def test_tick_loop_rearms_until_stopped() -> None:
    async def runner() -> None:
        settings = ViewerSettings(tick_interval_s=0.005)
        clock = PlaybackClock(60.0, settings=settings)
        seen: list[float] = []
        clock.add_listener(seen.append)
        clock.play()

        await clock.start()
        assert clock.running
        await asyncio.sleep(0.1)
        await clock.stop()

        assert not clock.running
        assert len(seen) > 2
        assert seen == sorted(seen)
        assert seen[-1] > 0.0

        count = len(seen)
        await asyncio.sleep(0.03)
        assert len(seen) == count

        clock.remove_listener(seen.append)

    asyncio.run(runner())
