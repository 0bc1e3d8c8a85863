"""
Navigator - Course view-state for presentation.

Provides:
- Lesson availability from release dates and completion
- Course tree with per-chapter lock state and progress
- Recommended next lesson
- Course-level progress summary
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from coursegate.schemas import Chapter, ChapterProgress, Course, Lesson, LessonCompletion

from .builder import find_course
from .reconciler import CompletionReconciler
from .schedule import DateLike, UnlockSchedule


class LessonAvailability(str, Enum):
    """Lesson availability status for UI display."""
    LOCKED = "locked"            # Release date not reached
    AVAILABLE = "available"      # Can start
    IN_PROGRESS = "in_progress"  # Started but not completed
    COMPLETED = "completed"      # Finished


@dataclass
class NavigationLesson:
    """Lesson with navigation metadata."""
    lesson: Lesson
    availability: LessonAvailability
    unlock_date: Optional[date]  # None when the lesson is not scheduled
    days_until_unlock: int
    completion: LessonCompletion


@dataclass
class NavigationChapter:
    """Chapter with lessons and navigation metadata."""
    chapter: Chapter
    number: int  # 1-based position in the course
    unlocked: bool
    lessons: list[NavigationLesson]
    progress: ChapterProgress
    completed: bool


class Navigator:
    """
    Navigate a course with release-date and completion checking.

    Combines the content tree, the UnlockSchedule and the
    CompletionReconciler (user state). Everything is recomputed from
    persisted state on each call, so a navigator can be reused after a
    progress-changed notification.
    """

    def __init__(self, courses: list[Course], schedule: UnlockSchedule, reconciler: CompletionReconciler):
        """
        Initialize navigator.

        Args:
            courses: Content tree from organize_tasks()
            schedule: Release table
            reconciler: Completion reads for the current learner
        """
        self.courses = courses
        self.schedule = schedule
        self.reconciler = reconciler

    # -------------------------------------------------------------------------
    # Availability Checking
    # -------------------------------------------------------------------------

    def get_lesson_availability(
        self,
        course_id: str,
        lesson: Lesson,
        as_of: Optional[DateLike] = None,
    ) -> LessonAvailability:
        if not self.schedule.is_lesson_unlocked(lesson.id, as_of):
            return LessonAvailability.LOCKED
        return self._availability(self.reconciler.lesson_status(course_id, lesson))

    @staticmethod
    def _availability(completion: LessonCompletion) -> LessonAvailability:
        if completion.complete:
            return LessonAvailability.COMPLETED
        if completion.stats.completed_tasks > 0 or completion.learning_complete:
            return LessonAvailability.IN_PROGRESS
        return LessonAvailability.AVAILABLE

    def _navigation_lesson(self, course_id: str, lesson: Lesson, as_of: Optional[DateLike]) -> NavigationLesson:
        completion = self.reconciler.lesson_status(course_id, lesson)
        if self.schedule.is_lesson_unlocked(lesson.id, as_of):
            availability = self._availability(completion)
        else:
            availability = LessonAvailability.LOCKED
        return NavigationLesson(
            lesson=lesson,
            availability=availability,
            unlock_date=self.schedule.get_unlock_date(lesson.id),
            days_until_unlock=self.schedule.days_until_unlock(lesson.id, as_of),
            completion=completion,
        )

    # -------------------------------------------------------------------------
    # Course Tree
    # -------------------------------------------------------------------------

    def get_course_tree(self, course_id: str, as_of: Optional[DateLike] = None) -> Optional[list[NavigationChapter]]:
        """
        Chapters of a course with navigation metadata, or None if the course
        does not exist.
        """
        course = find_course(self.courses, course_id)
        if course is None:
            return None

        tree = []
        for number, chapter in enumerate(course.chapters, start=1):
            tree.append(NavigationChapter(
                chapter=chapter,
                number=number,
                unlocked=self.schedule.is_chapter_unlocked(number, chapter.lessons, as_of),
                lessons=[self._navigation_lesson(course_id, lesson, as_of) for lesson in chapter.lessons],
                progress=self.reconciler.chapter_progress(course_id, chapter),
                completed=self.reconciler.is_chapter_complete(course_id, chapter),
            ))
        return tree

    def get_next_locked_lesson(self, chapter: Chapter, as_of: Optional[DateLike] = None) -> Optional[Lesson]:
        return self.schedule.next_locked_lesson(chapter.lessons, as_of)

    def get_recommended_lesson(self, course_id: str, as_of: Optional[DateLike] = None) -> Optional[Lesson]:
        """
        Recommended next lesson.

        Priority:
        1. First unlocked lesson in progress
        2. First unlocked lesson not yet started
        """
        course = find_course(self.courses, course_id)
        if course is None:
            return None

        available = None
        for lesson in course.iter_lessons():
            availability = self.get_lesson_availability(course_id, lesson, as_of)
            if availability == LessonAvailability.IN_PROGRESS:
                return lesson
            if availability == LessonAvailability.AVAILABLE and available is None:
                available = lesson
        return available

    # -------------------------------------------------------------------------
    # Progress Summary
    # -------------------------------------------------------------------------

    def get_course_summary(self, course_id: str, as_of: Optional[DateLike] = None) -> Optional[dict]:
        """Get progress summary for display, or None if the course does not exist."""
        tree = self.get_course_tree(course_id, as_of)
        if tree is None:
            return None

        total_lessons = sum(ch.progress.total_lessons for ch in tree)
        completed_lessons = sum(ch.progress.completed_lessons for ch in tree)
        total_xp = sum(ch.progress.total_xp for ch in tree)
        earned_xp = sum(ch.progress.earned_xp for ch in tree)
        recommended = self.get_recommended_lesson(course_id, as_of)

        return {
            "course_id": course_id,
            "total_lessons": total_lessons,
            "completed_lessons": completed_lessons,
            "completion_percent": round(completed_lessons / total_lessons * 100, 1) if total_lessons > 0 else 0,
            "total_xp": total_xp,
            "earned_xp": earned_xp,
            "chapters_completed": sum(1 for ch in tree if ch.completed),
            "chapters_unlocked": sum(1 for ch in tree if ch.unlocked),
            "chapters": [
                {
                    "id": ch.chapter.id,
                    "name": ch.chapter.name,
                    "unlocked": ch.unlocked,
                    "completed": ch.progress.completed_lessons,
                    "total": ch.progress.total_lessons,
                }
                for ch in tree
            ],
            "recommended_lesson_id": recommended.id if recommended else None,
        }
