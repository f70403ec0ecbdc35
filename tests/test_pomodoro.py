"""
Unit tests for the Pomodoro state machine.
"""
from __future__ import annotations

import asyncio

import pytest

from studydesk.domain.common.errors import ValidationError
from studydesk.domain.pomodoro.timer import PomodoroTimer, format_clock

from fakes import RecordingNotifier


def _timer(work=50, brk=10):
    notifier = RecordingNotifier()
    return PomodoroTimer(notifier, work_minutes=work, break_minutes=brk), notifier


def test_idle_until_started():
    async def _run():
        timer, notifier = _timer()
        assert timer.state.mode == "idle"
        assert timer.state.time_left == 50 * 60
        assert await timer.tick(60) is None
        assert timer.state.time_left == 50 * 60
        assert notifier.sent == []

    asyncio.run(_run())


def test_work_phase_ends_in_break_with_notification():
    async def _run():
        timer, notifier = _timer(work=1, brk=2)
        timer.start()
        assert await timer.tick(59) is None
        assert await timer.tick(1) == "work"

        state = timer.state
        assert state.mode == "break"
        assert state.time_left == 120
        assert state.is_active is True
        assert len(notifier.sent) == 1

        assert await timer.tick(120) == "break"
        assert timer.state.mode == "work"
        assert len(notifier.sent) == 2

    asyncio.run(_run())


def test_toggle_pauses_and_resumes():
    async def _run():
        timer, _ = _timer()
        timer.toggle()  # idle -> running work
        await timer.tick(10)
        paused = timer.toggle()
        assert paused.is_active is False
        await timer.tick(100)
        assert timer.state.time_left == 50 * 60 - 10
        assert timer.toggle().is_active is True

    asyncio.run(_run())


def test_skip_and_reset():
    timer, _ = _timer()
    assert timer.skip().mode == "idle"
    timer.start()
    assert timer.skip().mode == "break"
    assert timer.skip().mode == "work"
    reset = timer.reset()
    assert reset.mode == "idle"
    assert reset.is_active is False
    assert reset.time_left == 50 * 60


def test_set_durations_applies_to_next_phase():
    async def _run():
        timer, _ = _timer()
        assert timer.set_durations(25, 5).time_left == 25 * 60

        timer.start()
        await timer.tick(60)
        running = timer.set_durations(30, 5)
        assert running.time_left == 24 * 60
        assert timer.skip().time_left == 5 * 60

    asyncio.run(_run())


def test_durations_are_validated():
    with pytest.raises(ValidationError):
        PomodoroTimer(RecordingNotifier(), work_minutes=0)
    timer, _ = _timer()
    with pytest.raises(ValidationError):
        timer.set_durations(25, 181)


def test_progress_and_clock_format():
    timer, _ = _timer(work=10)
    timer.start()
    asyncio.run(timer.tick(150))
    assert timer.state.progress == pytest.approx(25.0)
    assert format_clock(timer.state.time_left) == "07:30"
    assert format_clock(-5) == "00:00"
