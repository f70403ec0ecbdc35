from __future__ import annotations

from html import escape

from studydesk.domain.pomodoro.timer import MODE_BREAK, MODE_IDLE, MODE_WORK, TimerState, format_clock
from studydesk.domain.stats.semester import SemesterProgress

_MODE_LABELS = {MODE_IDLE: "Idle", MODE_WORK: "Work", MODE_BREAK: "Break"}


def progress_bar(percentage: float, width: int = 10) -> str:
    filled = round(max(0.0, min(percentage, 100.0)) / 100 * width)
    return "▓" * filled + "░" * (width - filled)


def render_semester(progress: SemesterProgress) -> str:
    if progress.not_started:
        return "🎓 Semester: on break"
    if progress.days_remaining < 0:
        return f"🎓 Semester: finished {progress_bar(100)} 100%"
    return (
        f"🎓 Semester: {progress_bar(progress.percentage)} {progress.percentage:.0f}%\n"
        f"{progress.days_remaining} days remaining"
    )


def render_timer(state: TimerState) -> str:
    label = _MODE_LABELS.get(state.mode, state.mode)
    paused = " (paused)" if state.mode != MODE_IDLE and not state.is_active else ""
    return f"🍅 {label}{paused}: <b>{format_clock(state.time_left)}</b>"


def render_dashboard(
    user_name: str,
    progress: SemesterProgress,
    timer: TimerState,
    open_tasks: int,
    overdue: int,
    done_today: int,
) -> str:
    greeting = f"Hi {escape(user_name)}!" if user_name else "Hi!"
    lines = [
        f"<b>{greeting}</b>",
        "",
        render_semester(progress),
        "",
        f"📋 Open tasks: {open_tasks}" + (f" (⚠️ {overdue} overdue)" if overdue else ""),
        f"✅ Done today: {done_today}",
        "",
        render_timer(timer),
    ]
    return "\n".join(lines)
