from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from .calendar_days import day_bounds
from .habit_streaks import DEFAULT_MAX_DAYS, build_completion_lookup, compute_streaks
from .models import ChatMessage, Habit, HabitCompletion, MoodEntry


def create_mood_entry(
    db: Session,
    user_id: int,
    mood: str,
    mood_score: int,
    journal_entry: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> MoodEntry:
    entry = MoodEntry(
        user_id=user_id,
        mood=mood,
        mood_score=mood_score,
        journal_entry=journal_entry,
        created_at=created_at or datetime.utcnow(),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def get_user_mood_entries(db: Session, user_id: int, limit: int = 10) -> List[MoodEntry]:
    return (
        db.query(MoodEntry)
        .filter(MoodEntry.user_id == user_id)
        .order_by(MoodEntry.created_at.desc(), MoodEntry.id.desc())
        .limit(limit)
        .all()
    )


def get_mood_entries_in_range(db: Session, user_id: int, start: datetime, end: datetime) -> List[MoodEntry]:
    return (
        db.query(MoodEntry)
        .filter(
            MoodEntry.user_id == user_id,
            MoodEntry.created_at >= start,
            MoodEntry.created_at <= end,
        )
        .order_by(MoodEntry.created_at.asc(), MoodEntry.id.asc())
        .all()
    )


def create_chat_message(
    db: Session,
    user_id: int,
    message: str,
    is_user: bool,
    sentiment: Optional[str] = None,
) -> ChatMessage:
    chat_message = ChatMessage(
        user_id=user_id,
        message=message,
        is_user=is_user,
        sentiment=sentiment,
        created_at=datetime.utcnow(),
    )
    db.add(chat_message)
    db.commit()
    db.refresh(chat_message)
    return chat_message


def get_user_chat_messages(db: Session, user_id: int, limit: int = 50) -> List[ChatMessage]:
    """Most recent messages first."""
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.user_id == user_id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(limit)
        .all()
    )


def create_habit(db: Session, user_id: int, name: str, description: Optional[str] = None) -> Habit:
    habit = Habit(
        user_id=user_id,
        name=name,
        description=description,
        is_active=True,
        created_at=datetime.utcnow(),
    )
    db.add(habit)
    db.commit()
    db.refresh(habit)
    return habit


def get_user_habits(db: Session, user_id: int) -> List[Habit]:
    return (
        db.query(Habit)
        .filter(Habit.user_id == user_id, Habit.is_active.is_(True))
        .order_by(Habit.created_at.asc(), Habit.id.asc())
        .all()
    )


def get_user_habit(db: Session, user_id: int, habit_id: int) -> Optional[Habit]:
    return (
        db.query(Habit)
        .filter(
            Habit.id == habit_id,
            Habit.user_id == user_id,
            Habit.is_active.is_(True),
        )
        .first()
    )


def deactivate_habit(db: Session, habit: Habit) -> Habit:
    habit.is_active = False
    db.commit()
    db.refresh(habit)
    return habit


def complete_habit(
    db: Session,
    user_id: int,
    habit_id: int,
    completed_at: Optional[datetime] = None,
) -> HabitCompletion:
    # no unique constraint: concurrent calls for the same day can both land
    completion = HabitCompletion(
        habit_id=habit_id,
        user_id=user_id,
        completed_at=completed_at or datetime.utcnow(),
    )
    db.add(completion)
    db.commit()
    db.refresh(completion)
    return completion


def get_habit_completions(
    db: Session,
    user_id: int,
    habit_id: int,
    day: date,
    tz: tzinfo = timezone.utc,
) -> List[HabitCompletion]:
    start, end = day_bounds(day, tz)
    return (
        db.query(HabitCompletion)
        .filter(
            HabitCompletion.user_id == user_id,
            HabitCompletion.habit_id == habit_id,
            HabitCompletion.completed_at >= start,
            HabitCompletion.completed_at < end,
        )
        .all()
    )


def get_habit_streaks(
    db: Session,
    user_id: int,
    today: date,
    tz: tzinfo = timezone.utc,
    max_days: int = DEFAULT_MAX_DAYS,
) -> Dict[int, int]:
    habit_ids = [habit.id for habit in get_user_habits(db, user_id)]
    if not habit_ids:
        return {}
    window_start, _ = day_bounds(today - timedelta(days=max_days - 1), tz)
    _, window_end = day_bounds(today, tz)
    completions = (
        db.query(HabitCompletion)
        .filter(
            HabitCompletion.user_id == user_id,
            HabitCompletion.habit_id.in_(habit_ids),
            HabitCompletion.completed_at >= window_start,
            HabitCompletion.completed_at < window_end,
        )
        .all()
    )
    lookup = build_completion_lookup(completions, tz)
    return compute_streaks(habit_ids, lookup, today, max_days)
