import os
import sys
import unittest
from datetime import date, datetime, timedelta

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from serenity.backend.app import models, storage
from serenity.backend.app.database import Base


class StorageTests(unittest.TestCase):
    def setUp(self):
        engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
        Base.metadata.create_all(engine)
        self.db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
        user = models.User(email="test@example.com", hashed_password="x")
        self.db.add(user)
        self.db.commit()
        self.user_id = user.id

    def tearDown(self):
        self.db.close()

    def test_mood_entries_in_range_are_ascending_and_inclusive(self):
        base = datetime(2025, 5, 1, 9, 0)
        for offset, score in enumerate([4, 6, 8, 2]):
            storage.create_mood_entry(self.db, self.user_id, "okay", score, created_at=base + timedelta(days=offset))
        entries = storage.get_mood_entries_in_range(
            self.db, self.user_id, base, base + timedelta(days=2)
        )
        self.assertEqual([e.mood_score for e in entries], [4, 6, 8])

        latest = storage.get_user_mood_entries(self.db, self.user_id, limit=2)
        self.assertEqual([e.mood_score for e in latest], [2, 8])

    def test_chat_messages_newest_first(self):
        storage.create_chat_message(self.db, self.user_id, "first", is_user=True)
        storage.create_chat_message(self.db, self.user_id, "second", is_user=False, sentiment="supportive")
        messages = storage.get_user_chat_messages(self.db, self.user_id, limit=5)
        self.assertEqual([m.message for m in messages], ["second", "first"])

    def test_deactivated_habits_are_hidden(self):
        keep = storage.create_habit(self.db, self.user_id, "Meditate")
        drop = storage.create_habit(self.db, self.user_id, "Journal", "Evening pages")
        storage.deactivate_habit(self.db, drop)
        self.assertEqual([h.id for h in storage.get_user_habits(self.db, self.user_id)], [keep.id])
        self.assertIsNone(storage.get_user_habit(self.db, self.user_id, drop.id))
        self.assertIsNone(storage.get_user_habit(self.db, self.user_id + 1, keep.id))

    def test_completions_for_a_day(self):
        habit = storage.create_habit(self.db, self.user_id, "Walk")
        day = date(2025, 5, 3)
        storage.complete_habit(self.db, self.user_id, habit.id, datetime(2025, 5, 3, 0, 0))
        storage.complete_habit(self.db, self.user_id, habit.id, datetime(2025, 5, 3, 23, 59))
        storage.complete_habit(self.db, self.user_id, habit.id, datetime(2025, 5, 4, 0, 0))
        found = storage.get_habit_completions(self.db, self.user_id, habit.id, day)
        self.assertEqual(len(found), 2)

    def test_duplicate_completions_can_both_persist(self):
        habit = storage.create_habit(self.db, self.user_id, "Stretch")
        now = datetime(2025, 5, 3, 10, 0)
        storage.complete_habit(self.db, self.user_id, habit.id, now)
        storage.complete_habit(self.db, self.user_id, habit.id, now)
        found = storage.get_habit_completions(self.db, self.user_id, habit.id, now.date())
        self.assertEqual(len(found), 2)

    def test_habit_streaks(self):
        today = date(2025, 5, 10)
        walk = storage.create_habit(self.db, self.user_id, "Walk")
        read = storage.create_habit(self.db, self.user_id, "Read")
        for offset in (0, 1, 3):
            storage.complete_habit(
                self.db, self.user_id, walk.id, datetime.combine(today - timedelta(days=offset), datetime.min.time())
            )
        storage.complete_habit(self.db, self.user_id, walk.id, datetime(2025, 5, 10, 18, 0))
        storage.complete_habit(self.db, self.user_id, read.id, datetime(2025, 5, 9, 12, 0))

        streaks = storage.get_habit_streaks(self.db, self.user_id, today)
        self.assertEqual(streaks, {walk.id: 2, read.id: 0})


if __name__ == "__main__":
    unittest.main()
