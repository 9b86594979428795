from __future__ import annotations

from datetime import date, timezone, tzinfo
from typing import Callable, Dict, Iterable, Set, Tuple

from .calendar_days import previous_days, to_calendar_day

DEFAULT_MAX_DAYS = 30

CompletionLookup = Callable[[int, date], bool]


def build_completion_lookup(completions: Iterable, tz: tzinfo = timezone.utc) -> CompletionLookup:
    """Bucket completion rows by (habit_id, local day)."""
    completed: Set[Tuple[int, date]] = {
        (completion.habit_id, to_calendar_day(completion.completed_at, tz))
        for completion in completions
    }

    def has_completion(habit_id: int, day: date) -> bool:
        return (habit_id, day) in completed

    return has_completion


def compute_streak(
    habit_id: int,
    has_completion: CompletionLookup,
    today: date,
    max_days: int = DEFAULT_MAX_DAYS,
) -> int:
    # the scan includes today, so an unfinished today means no streak yet
    streak = 0
    for day in previous_days(today, max_days):
        if not has_completion(habit_id, day):
            break
        streak += 1
    return streak


def compute_streaks(
    habit_ids: Iterable[int],
    has_completion: CompletionLookup,
    today: date,
    max_days: int = DEFAULT_MAX_DAYS,
) -> Dict[int, int]:
    return {
        habit_id: compute_streak(habit_id, has_completion, today, max_days)
        for habit_id in habit_ids
    }
