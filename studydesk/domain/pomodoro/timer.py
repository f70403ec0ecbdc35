from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from studydesk.constants import DEFAULT_BREAK_MINUTES, DEFAULT_WORK_MINUTES, MAX_POMODORO_MINUTES
from studydesk.domain.common.errors import ValidationError
from studydesk.domain.common.ports import Notifier

logger = logging.getLogger(__name__)

MODE_IDLE = "idle"
MODE_WORK = "work"
MODE_BREAK = "break"

_PHASE_END_MESSAGES = {
    MODE_WORK: ("Work session complete", "Time for a break."),
    MODE_BREAK: ("Break is over", "Back to work."),
}


@dataclass(frozen=True)
class TimerState:
    mode: str
    time_left: int  # seconds
    is_active: bool
    work_seconds: int
    break_seconds: int

    @property
    def total_seconds(self) -> int:
        return self.break_seconds if self.mode == MODE_BREAK else self.work_seconds

    @property
    def progress(self) -> float:
        """0..100 of the current phase."""
        if self.total_seconds <= 0:
            return 0.0
        return (self.total_seconds - self.time_left) / self.total_seconds * 100


def format_clock(seconds: int) -> str:
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{secs:02d}"


class PomodoroTimer:
    """
    Work/break countdown. Idle until started; then alternates work and break
    phases until reset. The caller drives time by calling tick().
    """

    def __init__(
        self,
        notifier: Notifier,
        work_minutes: int = DEFAULT_WORK_MINUTES,
        break_minutes: int = DEFAULT_BREAK_MINUTES,
    ) -> None:
        self._notifier = notifier
        self._work = _minutes_to_seconds(work_minutes)
        self._break = _minutes_to_seconds(break_minutes)
        self._mode = MODE_IDLE
        self._time_left = self._work
        self._active = False

    @property
    def state(self) -> TimerState:
        return TimerState(self._mode, self._time_left, self._active, self._work, self._break)

    def start(self) -> TimerState:
        if self._mode == MODE_IDLE:
            self._enter(MODE_WORK)
        self._active = True
        return self.state

    def toggle(self) -> TimerState:
        if self._mode == MODE_IDLE:
            return self.start()
        self._active = not self._active
        return self.state

    def reset(self) -> TimerState:
        self._mode = MODE_IDLE
        self._time_left = self._work
        self._active = False
        return self.state

    def skip(self) -> TimerState:
        if self._mode == MODE_IDLE:
            return self.state
        self._enter(MODE_BREAK if self._mode == MODE_WORK else MODE_WORK)
        return self.state

    def set_durations(self, work_minutes: int, break_minutes: int) -> TimerState:
        """Running phases keep their countdown; the new lengths apply from the next phase."""
        self._work = _minutes_to_seconds(work_minutes)
        self._break = _minutes_to_seconds(break_minutes)
        if self._mode == MODE_IDLE:
            self._time_left = self._work
        return self.state

    async def tick(self, seconds: int = 1) -> Optional[str]:
        """
        Count down. When the phase runs out, switch to the other one and notify.
        Returns the mode that just finished, or None.
        """
        if not self._active or self._mode == MODE_IDLE:
            return None
        self._time_left -= seconds
        if self._time_left > 0:
            return None

        finished = self._mode
        self._enter(MODE_BREAK if finished == MODE_WORK else MODE_WORK)
        title, body = _PHASE_END_MESSAGES[finished]
        logger.info("Pomodoro %s phase finished", finished)
        await self._notifier.notify(title, body)
        return finished

    def _enter(self, mode: str) -> None:
        self._mode = mode
        self._time_left = self._break if mode == MODE_BREAK else self._work


def _minutes_to_seconds(minutes: int) -> int:
    if not 1 <= minutes <= MAX_POMODORO_MINUTES:
        raise ValidationError(f"Duration must be between 1 and {MAX_POMODORO_MINUTES} minutes.")
    return minutes * 60
