from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Dict, List, Optional, Sequence

from .calendar_days import to_calendar_day, weekday_name

NO_DATA = "N/A"
TREND_WINDOW = 3
TREND_THRESHOLD = 0.5


@dataclass
class MoodAnalytics:
    average_mood: float
    mood_trend: str
    best_day: str
    total_entries: int
    generated_at: datetime


def average_mood(scores: Sequence[float]) -> float:
    # 0 doubles as "no data"; total_entries disambiguates
    if not scores:
        return 0
    return statistics.mean(scores)


def classify_mood_trend(scores: Sequence[float]) -> str:
    if len(scores) < 2:
        return "neutral"
    recent = list(scores[-TREND_WINDOW:])
    older = list(scores[-2 * TREND_WINDOW:-TREND_WINDOW])
    if not recent or not older:
        return "neutral"

    recent_avg = statistics.mean(recent)
    older_avg = statistics.mean(older)
    if recent_avg > older_avg + TREND_THRESHOLD:
        return "improving"
    if recent_avg < older_avg - TREND_THRESHOLD:
        return "declining"
    return "stable"


def compute_best_day(entries: Sequence, tz: tzinfo = timezone.utc) -> str:
    buckets: Dict[str, List[int]] = {}
    for entry in entries:
        day = weekday_name(to_calendar_day(entry.created_at, tz))
        buckets.setdefault(day, []).append(entry.mood_score)

    best_day = NO_DATA
    best_average: Optional[float] = None
    for day, scores in buckets.items():
        average = statistics.mean(scores)
        if best_average is None or average > best_average:
            best_average = average
            best_day = day
    return best_day


def compute_analytics(
    entries: Sequence,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> MoodAnalytics:
    """Summarize mood entries already filtered to a range and sorted oldest first.

    Entries only need ``mood_score`` and ``created_at`` attributes, so ORM rows
    and plain records both work.
    """
    scores = [entry.mood_score for entry in entries]
    return MoodAnalytics(
        average_mood=average_mood(scores),
        mood_trend=classify_mood_trend(scores),
        best_day=compute_best_day(entries, tz),
        total_entries=len(scores),
        generated_at=now or datetime.utcnow(),
    )
