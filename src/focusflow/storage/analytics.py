"""Analytics derived from persisted sessions.

Everything here is a pure function over lists of records, so the memory
and SQLite backends share one implementation.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from focusflow.storage.models import Distraction, FocusSession, SessionStats

DEFAULT_BEST_HOUR = 9


def total_focus_hours(sessions: Iterable[FocusSession]) -> float:
    """Sum of completed work durations in hours."""
    return sum(s.duration for s in sessions if s.completed and s.is_work) / 60


def completion_rate(sessions: list[FocusSession]) -> float:
    """Percentage of sessions that completed naturally."""
    if not sessions:
        return 0.0
    completed = sum(1 for s in sessions if s.completed)
    return completed / len(sessions) * 100


def distraction_free_rate(
    sessions: Iterable[FocusSession], distractions: Iterable[Distraction]
) -> float:
    """Percentage of completed work sessions with no logged distraction."""
    completed_work = [s for s in sessions if s.completed and s.is_work]
    if not completed_work:
        return 100.0
    distracted = {d.session_id for d in distractions}
    clean = sum(1 for s in completed_work if s.id not in distracted)
    return clean / len(completed_work) * 100


def _focus_days(sessions: Iterable[FocusSession]) -> set[date]:
    return {s.start_time.date() for s in sessions if s.completed and s.is_work}


def longest_streak(sessions: Iterable[FocusSession]) -> int:
    """Longest run of consecutive days with a completed work session."""
    days = sorted(_focus_days(sessions))
    best = run = 0
    previous: date | None = None
    for day in days:
        run = run + 1 if previous and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def current_streak(sessions: Iterable[FocusSession], today: date | None = None) -> int:
    """Consecutive focus days ending today, or yesterday if today has none yet."""
    days = _focus_days(sessions)
    cursor = today or date.today()
    if cursor not in days:
        cursor -= timedelta(days=1)

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def best_day(sessions: Iterable[FocusSession]) -> str:
    """Weekday name with the most completed work sessions."""
    counts = Counter(s.start_time.strftime("%A") for s in sessions if s.completed and s.is_work)
    if not counts:
        return ""
    return counts.most_common(1)[0][0]


def best_hour(sessions: Iterable[FocusSession]) -> int:
    """Hour of day in which most completed work sessions started."""
    counts = Counter(s.start_time.hour for s in sessions if s.completed and s.is_work)
    if not counts:
        return DEFAULT_BEST_HOUR
    return counts.most_common(1)[0][0]


def compute_session_stats(
    sessions: list[FocusSession],
    distractions: Iterable[Distraction] = (),
    today: date | None = None,
) -> SessionStats:
    return SessionStats(
        total_sessions=len(sessions),
        total_hours=total_focus_hours(sessions),
        completion_rate=completion_rate(sessions),
        distraction_free_rate=distraction_free_rate(sessions, distractions),
        longest_streak=longest_streak(sessions),
        current_streak=current_streak(sessions, today),
        best_day=best_day(sessions),
        best_hour=best_hour(sessions),
    )


def heatmap(sessions: Iterable[FocusSession], year: int | None = None) -> dict[str, int]:
    """Completed sessions per start date, keyed ``YYYY-MM-DD``."""
    data: dict[str, int] = {}
    for session in sessions:
        if not session.completed:
            continue
        if year is not None and session.start_time.year != year:
            continue
        key = session.start_time.strftime("%Y-%m-%d")
        data[key] = data.get(key, 0) + 1
    return dict(sorted(data.items()))


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """Start of the year and start of the next one."""
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)
