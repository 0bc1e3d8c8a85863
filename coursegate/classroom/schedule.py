"""
UnlockSchedule - Date-based lesson release.

Lessons are released one per day from the course start, skipping Sundays.
A schedule is an immutable value computed once from (start date, lesson
enumeration); queries take it explicitly instead of reading global state.

Lesson ids missing from the schedule are treated as unlocked and logged.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional, Union

from coursegate.schemas import Course, Lesson, LessonSlot, ScheduledLesson


logger = logging.getLogger(__name__)

SUNDAY = 6  # date.weekday()

# Chapter 1 has 9 lessons, chapter 5 has 11, chapters 2-12 otherwise 10
DEFAULT_CHAPTER_LESSON_COUNTS: dict[int, int] = {
    chapter: 9 if chapter == 1 else 11 if chapter == 5 else 10
    for chapter in range(1, 13)
}

DateLike = Union[date, datetime]


def _to_day(value: Optional[DateLike]) -> date:
    """Truncate to the calendar day; None means today (local time)."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def lesson_id_for(chapter_number: int, lesson_number: int) -> str:
    return f"les_{chapter_number}_{lesson_number}"


# -----------------------------------------------------------------------------
# Enumeration
# -----------------------------------------------------------------------------

def enumerate_lessons(chapter_lesson_counts: Mapping[int, int] = DEFAULT_CHAPTER_LESSON_COUNTS) -> list[LessonSlot]:
    """Release order of generated lesson ids (les_{chapter}_{n}), chapters ascending."""
    slots = []
    for chapter_number in sorted(chapter_lesson_counts):
        for lesson_number in range(1, chapter_lesson_counts[chapter_number] + 1):
            slots.append(LessonSlot(
                id=lesson_id_for(chapter_number, lesson_number),
                chapter_number=chapter_number,
                lesson_number=lesson_number,
                global_index=len(slots),
            ))
    return slots


def enumerate_course_lessons(course: Course) -> list[LessonSlot]:
    """
    Release order taken from a fetched course tree.

    Chapters and lessons are numbered by position (1-based). A lesson id
    repeated in a later chapter keeps its first slot.
    """
    slots = []
    seen: set[str] = set()
    for chapter_number, chapter in enumerate(course.chapters, start=1):
        for lesson_number, lesson in enumerate(chapter.lessons, start=1):
            if lesson.id in seen:
                continue
            seen.add(lesson.id)
            slots.append(LessonSlot(
                id=lesson.id,
                chapter_number=chapter_number,
                lesson_number=lesson_number,
                global_index=len(slots),
            ))
    return slots


def next_release_day(day: date) -> date:
    """The day after `day`, moved past Sunday."""
    day += timedelta(days=1)
    while day.weekday() == SUNDAY:
        day += timedelta(days=1)
    return day


def compute_unlock_dates(start: date, slots: Iterable[LessonSlot]) -> list[ScheduledLesson]:
    """
    Assign release days.

    The first lesson unlocks on `start` (even a Sunday); every following
    lesson unlocks on the next non-Sunday after its predecessor.
    """
    scheduled = []
    current = start
    for index, slot in enumerate(slots):
        if index > 0:
            current = next_release_day(current)
        scheduled.append(ScheduledLesson(
            **slot.model_dump(),
            unlock_date=current,
            is_first_lesson=index == 0,
        ))
    return scheduled


# -----------------------------------------------------------------------------
# Schedule value
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class UnlockSchedule:
    """Immutable release table for one course start date."""
    start_date: date
    lessons: tuple[ScheduledLesson, ...]
    _index: dict[str, ScheduledLesson] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        index: dict[str, ScheduledLesson] = {}
        for entry in self.lessons:
            index.setdefault(entry.id, entry)
        object.__setattr__(self, '_index', index)

    @classmethod
    def build(
        cls,
        start_date: DateLike,
        chapter_lesson_counts: Mapping[int, int] = DEFAULT_CHAPTER_LESSON_COUNTS,
    ) -> "UnlockSchedule":
        """Schedule for the generated les_{chapter}_{n} enumeration."""
        start = _to_day(start_date)
        return cls(start, tuple(compute_unlock_dates(start, enumerate_lessons(chapter_lesson_counts))))

    @classmethod
    def from_course(cls, start_date: DateLike, course: Course) -> "UnlockSchedule":
        """Schedule for the lessons a fetched course actually contains."""
        start = _to_day(start_date)
        return cls(start, tuple(compute_unlock_dates(start, enumerate_course_lessons(course))))

    @classmethod
    def from_config(cls, config) -> "UnlockSchedule":
        """Schedule from coursegate.utils.ScheduleConfig."""
        return cls.build(config.course_start, config.chapters)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_entry(self, lesson_id: str) -> Optional[ScheduledLesson]:
        return self._index.get(lesson_id)

    def lesson_ids(self) -> list[str]:
        return [entry.id for entry in self.lessons]

    def get_unlock_date(self, lesson_id: str) -> Optional[date]:
        """Release day of a lesson, or None when it is not scheduled."""
        entry = self._index.get(lesson_id)
        return entry.unlock_date if entry else None

    def is_lesson_unlocked(self, lesson_id: str, as_of: Optional[DateLike] = None) -> bool:
        """
        Whether a lesson is open on `as_of` (default: today).

        Unlocking happens at the start of the release day. Lessons that are
        not in the schedule are unlocked.
        """
        entry = self._index.get(lesson_id)
        if entry is None:
            logger.warning(f"Lesson {lesson_id} not found in unlock schedule; treating as unlocked")
            return True
        return _to_day(as_of) >= entry.unlock_date

    def days_until_unlock(self, lesson_id: str, as_of: Optional[DateLike] = None) -> int:
        """Whole days until release; 0 when released or not scheduled."""
        unlock = self.get_unlock_date(lesson_id)
        if unlock is None:
            return 0
        return max(0, (unlock - _to_day(as_of)).days)

    def is_chapter_unlocked(
        self,
        chapter_index: int,
        lessons: Iterable[Union[Lesson, str]],
        as_of: Optional[DateLike] = None,
    ) -> bool:
        """
        A chapter is open when at least one of its lessons is.

        `chapter_index` identifies the chapter for the caller only; chapters
        have no release day of their own.
        """
        day = _to_day(as_of)
        return any(
            self.is_lesson_unlocked(lesson if isinstance(lesson, str) else lesson.id, day)
            for lesson in lessons
        )

    def unlocked_lesson_ids(self, as_of: Optional[DateLike] = None) -> list[str]:
        day = _to_day(as_of)
        return [entry.id for entry in self.lessons if day >= entry.unlock_date]

    def next_locked_lesson(self, lessons: Iterable[Lesson], as_of: Optional[DateLike] = None) -> Optional[Lesson]:
        """First lesson of `lessons` that is still locked."""
        day = _to_day(as_of)
        for lesson in lessons:
            if not self.is_lesson_unlocked(lesson.id, day):
                return lesson
        return None
