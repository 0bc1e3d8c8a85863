"""
Unlock schedule tests.

2025-07-24 is a Thursday; 2025-07-27 is a Sunday.
"""

import dataclasses
import logging
from datetime import date, datetime, timedelta

import pytest

from coursegate.classroom import (
    DEFAULT_CHAPTER_LESSON_COUNTS,
    UnlockSchedule,
    compute_unlock_dates,
    enumerate_course_lessons,
    enumerate_lessons,
    lesson_id_for,
)
from coursegate.classroom.schedule import SUNDAY
from coursegate.schemas import Lesson
from coursegate.utils import ScheduleConfig


START = date(2025, 7, 24)


@pytest.fixture
def schedule():
    return UnlockSchedule.build(START)


class TestEnumeration:
    """Test lesson enumeration."""

    def test_default_course_has_120_lessons(self):
        slots = enumerate_lessons()
        assert len(slots) == 120
        assert sum(DEFAULT_CHAPTER_LESSON_COUNTS.values()) == 120

    def test_chapter_sizes(self):
        assert DEFAULT_CHAPTER_LESSON_COUNTS[1] == 9
        assert DEFAULT_CHAPTER_LESSON_COUNTS[5] == 11
        assert DEFAULT_CHAPTER_LESSON_COUNTS[12] == 10

    def test_order_and_ids(self):
        slots = enumerate_lessons()
        assert slots[0].id == "les_1_1"
        assert slots[8].id == "les_1_9"
        assert slots[9].id == "les_2_1"
        assert slots[-1].id == "les_12_10"
        assert [slot.global_index for slot in slots] == list(range(120))

    def test_chapters_sorted(self):
        slots = enumerate_lessons({2: 1, 1: 2})
        assert [slot.id for slot in slots] == ["les_1_1", "les_1_2", "les_2_1"]

    def test_lesson_id_for(self):
        assert lesson_id_for(3, 7) == "les_3_7"

    def test_course_enumeration(self, course):
        slots = enumerate_course_lessons(course)
        assert [slot.id for slot in slots] == ["les_1_1", "les_1_2", "les_2_1"]
        assert (slots[2].chapter_number, slots[2].lesson_number) == (2, 1)


class TestUnlockDates:
    """Test release day assignment."""

    def test_first_days(self, schedule):
        assert schedule.get_unlock_date("les_1_1") == date(2025, 7, 24)
        assert schedule.get_unlock_date("les_1_2") == date(2025, 7, 25)
        assert schedule.get_unlock_date("les_1_3") == date(2025, 7, 26)

    def test_sunday_skipped(self, schedule):
        assert schedule.get_unlock_date("les_1_4") == date(2025, 7, 28)

    def test_chapter_two_starts_after_chapter_one(self, schedule):
        assert schedule.get_unlock_date("les_2_1") == date(2025, 8, 4)

    def test_no_sundays_and_strictly_increasing(self, schedule):
        days = [entry.unlock_date for entry in schedule.lessons]
        assert all(day.weekday() != SUNDAY for day in days)
        assert all(later > earlier for earlier, later in zip(days, days[1:]))

    def test_gaps_are_one_or_two_days(self, schedule):
        days = [entry.unlock_date for entry in schedule.lessons]
        gaps = {(later - earlier).days for earlier, later in zip(days, days[1:])}
        assert gaps <= {1, 2}

    def test_sunday_start(self):
        entries = compute_unlock_dates(date(2025, 7, 27), enumerate_lessons({1: 2}))
        assert entries[0].unlock_date == date(2025, 7, 27)
        assert entries[0].is_first_lesson
        assert entries[1].unlock_date == date(2025, 7, 28)
        assert not entries[1].is_first_lesson

    def test_datetime_start_truncated(self):
        schedule = UnlockSchedule.build(datetime(2025, 7, 24, 18, 30))
        assert schedule.start_date == START
        assert schedule.get_unlock_date("les_1_1") == START

    def test_unknown_lesson_has_no_date(self, schedule):
        assert schedule.get_unlock_date("les_99_1") is None


class TestQueries:
    """Test unlock queries."""

    def test_lesson_unlocked_on_release_day(self, schedule):
        assert not schedule.is_lesson_unlocked("les_1_2", date(2025, 7, 24))
        assert schedule.is_lesson_unlocked("les_1_2", date(2025, 7, 25))
        assert schedule.is_lesson_unlocked("les_1_2", datetime(2025, 7, 25, 0, 0))

    def test_before_course_start(self, schedule):
        assert not schedule.is_lesson_unlocked("les_1_1", date(2025, 7, 23))

    def test_default_is_today(self):
        schedule = UnlockSchedule.build(date.today() + timedelta(days=3), {1: 1})
        assert not schedule.is_lesson_unlocked("les_1_1")

    def test_unknown_lesson_fails_open(self, schedule, caplog):
        with caplog.at_level(logging.WARNING):
            assert schedule.is_lesson_unlocked("custom_lesson", date(2000, 1, 1))
        assert "custom_lesson" in caplog.text

    def test_days_until_unlock(self, schedule):
        assert schedule.days_until_unlock("les_1_4", date(2025, 7, 24)) == 4
        assert schedule.days_until_unlock("les_1_4", date(2025, 7, 28)) == 0
        assert schedule.days_until_unlock("les_1_4", date(2025, 9, 1)) == 0
        assert schedule.days_until_unlock("custom_lesson", date(2025, 7, 24)) == 0

    def test_chapter_unlocked_when_any_lesson_is(self, schedule):
        chapter_two = [lesson_id_for(2, n) for n in range(1, 11)]
        assert not schedule.is_chapter_unlocked(2, chapter_two, date(2025, 8, 2))
        assert schedule.is_chapter_unlocked(2, chapter_two, date(2025, 8, 4))

    def test_chapter_unlocked_accepts_lessons(self, schedule):
        lessons = [Lesson(id="les_1_1", name="A", chapter_id="ch1", course_id="c1")]
        assert schedule.is_chapter_unlocked(1, lessons, START)

    def test_empty_chapter_locked(self, schedule):
        assert not schedule.is_chapter_unlocked(1, [], START)

    def test_unlocked_lesson_ids(self, schedule):
        assert schedule.unlocked_lesson_ids(date(2025, 7, 26)) == ["les_1_1", "les_1_2", "les_1_3"]

    def test_next_locked_lesson(self, schedule, course):
        lessons = course.chapters[0].lessons
        assert schedule.next_locked_lesson(lessons, START).id == "les_1_2"
        assert schedule.next_locked_lesson(lessons, date(2025, 7, 25)) is None

    def test_immutable(self, schedule):
        with pytest.raises(dataclasses.FrozenInstanceError):
            schedule.start_date = date(2026, 1, 1)


class TestBuilders:
    """Test alternative schedule constructors."""

    def test_from_course(self, course):
        schedule = UnlockSchedule.from_course(START, course)
        assert schedule.lesson_ids() == ["les_1_1", "les_1_2", "les_2_1"]
        assert schedule.get_unlock_date("les_2_1") == date(2025, 7, 26)

    def test_from_config(self):
        config = ScheduleConfig(course_start=date(2025, 9, 1), chapters={1: 2, 2: 1})
        schedule = UnlockSchedule.from_config(config)
        assert schedule.start_date == date(2025, 9, 1)
        assert schedule.lesson_ids() == ["les_1_1", "les_1_2", "les_2_1"]

    def test_same_inputs_same_schedule(self):
        assert UnlockSchedule.build(START) == UnlockSchedule.build(START)
