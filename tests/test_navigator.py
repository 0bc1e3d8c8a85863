"""
Navigator tests.

Schedule from the fixture course: les_1_1 on 2025-07-24, les_1_2 on
2025-07-25, les_2_1 on 2025-07-26.
"""

from datetime import date

import pytest

from coursegate.classroom import (
    CompletionReconciler,
    LessonAvailability,
    Navigator,
    UnlockSchedule,
    organize_tasks,
)
from coursegate.schemas import TaskRow


START = date(2025, 7, 24)


@pytest.fixture
def reconciler(store):
    return CompletionReconciler(store, learning_lessons={"les_1_1", "les_2_1"})


@pytest.fixture
def navigator(courses, course, reconciler):
    return Navigator(courses, UnlockSchedule.from_course(START, course), reconciler)


class TestAvailability:
    """Test lesson availability."""

    def test_locked_and_available(self, navigator, course):
        lessons = course.chapters[0].lessons
        assert navigator.get_lesson_availability("c1", lessons[0], START) == LessonAvailability.AVAILABLE
        assert navigator.get_lesson_availability("c1", lessons[1], START) == LessonAvailability.LOCKED

    def test_in_progress_after_a_task(self, navigator, store, course):
        store.mark_task_completed("c1", "t1")
        lesson = course.chapters[0].lessons[0]
        assert navigator.get_lesson_availability("c1", lesson, START) == LessonAvailability.IN_PROGRESS

    def test_completed_by_learning(self, navigator, store, course):
        store.set_learning_done("les_1_1")
        lesson = course.chapters[0].lessons[0]
        assert navigator.get_lesson_availability("c1", lesson, START) == LessonAvailability.COMPLETED

    def test_completed_lesson_still_locked_before_release(self, navigator, store, course):
        store.mark_task_completed("c1", "t3")
        lesson = course.chapters[0].lessons[1]
        assert navigator.get_lesson_availability("c1", lesson, START) == LessonAvailability.LOCKED

    def test_unscheduled_lesson_is_open(self, courses, reconciler, course):
        navigator = Navigator(courses, UnlockSchedule.build(START, {1: 1}), reconciler)
        lesson = course.chapters[1].lessons[0]
        assert navigator.get_lesson_availability("c1", lesson, START) == LessonAvailability.AVAILABLE


class TestCourseTree:
    """Test the course tree."""

    def test_unknown_course(self, navigator):
        assert navigator.get_course_tree("missing", START) is None
        assert navigator.get_course_summary("missing", START) is None
        assert navigator.get_recommended_lesson("missing", START) is None

    def test_chapters(self, navigator):
        tree = navigator.get_course_tree("c1", START)
        assert [ch.chapter.id for ch in tree] == ["ch1", "ch2"]
        assert [ch.number for ch in tree] == [1, 2]
        assert tree[0].unlocked
        assert not tree[1].unlocked
        assert not tree[0].completed

    def test_lessons(self, navigator):
        lessons = navigator.get_course_tree("c1", START)[0].lessons
        assert lessons[0].availability == LessonAvailability.AVAILABLE
        assert lessons[1].availability == LessonAvailability.LOCKED
        assert lessons[1].unlock_date == date(2025, 7, 25)
        assert lessons[1].days_until_unlock == 1
        assert lessons[0].completion.lesson_id == "les_1_1"

    def test_chapter_progress(self, navigator, store):
        store.mark_lesson_completed("c1", "les_1_1")
        store.mark_task_completed("c1", "t3")
        store.mark_lesson_completed("c1", "les_1_2")
        chapter = navigator.get_course_tree("c1", START)[0]
        assert chapter.completed
        assert chapter.progress.completed_lessons == 2
        assert chapter.progress.completion_percentage == 100

    def test_next_locked_lesson(self, navigator, course):
        chapter = course.chapters[0]
        assert navigator.get_next_locked_lesson(chapter, START).id == "les_1_2"
        assert navigator.get_next_locked_lesson(chapter, date(2025, 7, 25)) is None


class TestRecommendation:
    """Test the recommended lesson."""

    def test_first_available(self, navigator):
        assert navigator.get_recommended_lesson("c1", date(2025, 7, 26)).id == "les_1_1"

    def test_skips_completed_lessons(self, navigator, store):
        store.set_learning_done("les_1_1")
        store.mark_task_completed("c1", "t4")
        assert navigator.get_recommended_lesson("c1", date(2025, 7, 26)).id == "les_1_2"

    def test_in_progress_beats_earlier_available(self, store):
        courses = organize_tasks([
            TaskRow(course_id="c1", chapter_id="ch1", lesson_id="l1", task_id="a1"),
            TaskRow(course_id="c1", chapter_id="ch1", lesson_id="l2", task_id="b1"),
            TaskRow(course_id="c1", chapter_id="ch1", lesson_id="l2", task_id="b2"),
        ])
        reconciler = CompletionReconciler(store)
        navigator = Navigator(courses, UnlockSchedule.from_course(START, courses[0]), reconciler)
        store.mark_task_completed("c1", "b1")
        assert navigator.get_recommended_lesson("c1", date(2025, 7, 26)).id == "l2"

    def test_nothing_open(self, navigator, store):
        store.set_learning_done("les_1_1")
        assert navigator.get_recommended_lesson("c1", START) is None


class TestSummary:
    """Test the course summary."""

    def test_summary(self, navigator, store):
        store.mark_task_completed("c1", "t3")
        summary = navigator.get_course_summary("c1", date(2025, 7, 26))
        assert summary["total_lessons"] == 3
        assert summary["completed_lessons"] == 1
        assert summary["completion_percent"] == 33.3
        assert summary["total_xp"] == 35
        assert summary["chapters_unlocked"] == 2
        assert summary["chapters_completed"] == 0
        assert summary["recommended_lesson_id"] == "les_1_1"
        assert summary["chapters"][0] == {
            "id": "ch1",
            "name": "Foundations",
            "unlocked": True,
            "completed": 1,
            "total": 2,
        }
