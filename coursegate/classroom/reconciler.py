"""
Completion reconciler - One lesson-complete answer from several signals.

Lessons come in three shapes, each with its own completeness rule:
- task-only:     every task is done (and there is at least one task)
- learning-only: the lesson is in the completed-lessons list OR its
                 learning-done flag is set
- mixed:         tasks done OR learning done (either path satisfies it)

The reconciler also owns the write side of the learning flow (topic watched,
quiz submitted) and the task flow (resources visited, task completed). Every
write is synchronous and followed by a progress-changed broadcast.
"""

import logging
from typing import Callable, Iterable, Optional, Sequence

from coursegate.schemas import (
    Chapter,
    ChapterProgress,
    Course,
    Lesson,
    LessonCompletion,
    LessonShape,
    QuizQuestion,
    QuizResult,
    Task,
    TaskCompletionOutcome,
)

from .events import ProgressNotifier
from .progress import calculate_progress, chapter_progress
from .store import CompletionStore, KeyValueStore, SQLiteStore


logger = logging.getLogger(__name__)

DEFAULT_QUIZ_PASS_PERCENT = 80


# -----------------------------------------------------------------------------
# Pure rules
# -----------------------------------------------------------------------------

def lesson_shape(lesson: Lesson, has_learning: bool) -> LessonShape:
    has_tasks = len(lesson.tasks) > 0
    if has_tasks and has_learning:
        return LessonShape.MIXED
    if has_tasks:
        return LessonShape.TASK_ONLY
    if has_learning:
        return LessonShape.LEARNING_ONLY
    return LessonShape.EMPTY


def all_tasks_done(lesson: Lesson, completed_task_ids: Iterable[str]) -> bool:
    completed = set(completed_task_ids)
    return len(lesson.tasks) > 0 and all(task.id in completed for task in lesson.tasks)


_COMPLETION_RULES: dict[LessonShape, Callable[[bool, bool], bool]] = {
    LessonShape.TASK_ONLY: lambda tasks_done, learning_done: tasks_done,
    LessonShape.LEARNING_ONLY: lambda tasks_done, learning_done: learning_done,
    LessonShape.MIXED: lambda tasks_done, learning_done: tasks_done or learning_done,
    LessonShape.EMPTY: lambda tasks_done, learning_done: False,
}


def _resolve(
    lesson: Lesson,
    completed_lesson_ids: Iterable[str],
    learning_done: bool,
    has_learning: Optional[bool],
) -> tuple[bool, LessonShape]:
    learning_complete = learning_done or lesson.id in set(completed_lesson_ids)
    # A lesson that recorded learning completion has learning content
    return learning_complete, lesson_shape(lesson, bool(has_learning) or learning_complete)


def is_lesson_complete(
    lesson: Lesson,
    completed_task_ids: Iterable[str],
    completed_lesson_ids: Iterable[str],
    learning_done: bool,
    has_learning: Optional[bool] = None,
) -> bool:
    """
    Whether a lesson counts as complete.

    Args:
        lesson: Lesson to check
        completed_task_ids: Completed task ids (course-wide is fine)
        completed_lesson_ids: Lessons recorded as completed
        learning_done: The lesson's learning-done flag
        has_learning: Whether the lesson owns topics; inferred from the
            learning signals when None
    """
    learning_complete, shape = _resolve(lesson, completed_lesson_ids, learning_done, has_learning)
    return _COMPLETION_RULES[shape](all_tasks_done(lesson, completed_task_ids), learning_complete)


def combined_progress_value(
    lesson: Lesson,
    completed_task_ids: Iterable[str],
    completed_lesson_ids: Iterable[str],
    learning_done: bool,
    has_learning: Optional[bool] = None,
) -> float:
    """
    Display percentage for a lesson.

    Mixed lessons average task percentage with a 0/100 learning percentage;
    learning-only lessons are 0/100; task-only lessons use task percentage.
    """
    learning_complete, shape = _resolve(lesson, completed_lesson_ids, learning_done, has_learning)
    task_percentage = calculate_progress(lesson.tasks, completed_task_ids).completion_percentage
    learning_percentage = 100.0 if learning_complete else 0.0

    if shape == LessonShape.MIXED:
        return (task_percentage + learning_percentage) / 2
    if shape == LessonShape.LEARNING_ONLY:
        return learning_percentage
    if shape == LessonShape.TASK_ONLY:
        return task_percentage
    return 0.0


def required_resource_ids(task: Task) -> list[str]:
    """Resources a learner must open before completing a task: pdf_{i}, form_{i}."""
    return (
        [f"pdf_{i}" for i in range(len(task.resources.pdfs))]
        + [f"form_{i}" for i in range(len(task.resources.forms))]
    )


def grade_quiz(
    lesson_id: str,
    questions: Sequence[QuizQuestion],
    answers: Sequence[Optional[int]],
    pass_percent: int = DEFAULT_QUIZ_PASS_PERCENT,
) -> QuizResult:
    """
    Grade selected option indexes against the questions, position by position.

    Missing answers count as wrong. A quiz without questions scores 100.
    """
    total = len(questions)
    correct = sum(
        1 for i, question in enumerate(questions)
        if i < len(answers) and answers[i] == question.correct_index
    )
    score = (correct / total) * 100 if total > 0 else 100.0
    return QuizResult(
        lesson_id=lesson_id,
        correct=correct,
        total=total,
        score_percent=score,
        passed=score >= pass_percent,
    )


# -----------------------------------------------------------------------------
# Stateful facade
# -----------------------------------------------------------------------------

class CompletionReconciler:
    """
    Read and write lesson completion through a CompletionStore.

    Combines persisted markers with knowledge of which lessons own learning
    content (topics) to answer completion questions for any lesson.
    """

    def __init__(
        self,
        store: CompletionStore,
        notifier: Optional[ProgressNotifier] = None,
        learning_lessons: Iterable[str] = (),
        pass_percent: int = DEFAULT_QUIZ_PASS_PERCENT,
    ):
        """
        Initialize reconciler.

        Args:
            store: Completion markers
            notifier: Receives a publish() after every write (default: new notifier)
            learning_lessons: Ids of lessons that own topics
            pass_percent: Minimum quiz score that passes
        """
        self.store = store
        self.notifier = notifier or ProgressNotifier()
        self.learning_lessons = set(learning_lessons)
        self.pass_percent = pass_percent

    @classmethod
    def from_settings(
        cls,
        settings,
        notifier: Optional[ProgressNotifier] = None,
        learning_lessons: Iterable[str] = (),
        session: Optional[KeyValueStore] = None,
    ) -> "CompletionReconciler":
        """Build a reconciler over the progress database named by coursegate.utils.Settings."""
        store = CompletionStore(SQLiteStore(settings.progress_db_path), session)
        return cls(store, notifier, learning_lessons, settings.quiz_pass_percent)

    def has_learning(self, lesson_id: str) -> bool:
        return lesson_id in self.learning_lessons

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def lesson_status(self, course_id: str, lesson: Lesson) -> LessonCompletion:
        """Full reconciled state of a lesson."""
        completed_tasks = self.store.completed_task_ids(course_id)
        completed_lessons = self.store.completed_lesson_ids(course_id)
        learning_done = self.store.is_learning_done(lesson.id)
        has_learning = self.has_learning(lesson.id)

        learning_complete, shape = _resolve(lesson, completed_lessons, learning_done, has_learning)
        tasks_complete = all_tasks_done(lesson, completed_tasks)

        return LessonCompletion(
            lesson_id=lesson.id,
            shape=shape,
            stats=calculate_progress(lesson.tasks, completed_tasks),
            tasks_complete=tasks_complete,
            learning_complete=learning_complete,
            quiz_passed=self.store.is_quiz_passed(lesson.id),
            complete=_COMPLETION_RULES[shape](tasks_complete, learning_complete),
            combined_progress=combined_progress_value(
                lesson, completed_tasks, completed_lessons, learning_done, has_learning
            ),
        )

    def is_lesson_complete(self, course_id: str, lesson: Lesson) -> bool:
        return self.lesson_status(course_id, lesson).complete

    def is_chapter_complete(self, course_id: str, chapter: Chapter) -> bool:
        """Every lesson of a non-empty chapter is recorded as completed."""
        if not chapter.lessons:
            return False
        completed = self.store.completed_lesson_ids(course_id)
        return all(lesson.id in completed for lesson in chapter.lessons)

    def chapter_progress(self, course_id: str, chapter: Chapter) -> ChapterProgress:
        return chapter_progress(chapter, lambda lesson: self.is_lesson_complete(course_id, lesson))

    def is_task_accessible(self, task: Task) -> bool:
        """Tasks of a lesson with learning content open once its quiz is passed."""
        if not self.has_learning(task.lesson_id):
            return True
        return self.store.is_quiz_passed(task.lesson_id)

    def can_complete_task(self, task: Task) -> bool:
        """All required resources of the task have been opened."""
        required = required_resource_ids(task)
        return len(self.store.visited_resource_ids(task.id, required)) == len(required)

    # -------------------------------------------------------------------------
    # Learning flow
    # -------------------------------------------------------------------------

    def record_topic_watched(
        self,
        course_id: str,
        lesson_id: str,
        topic_id: str,
        lesson_topic_ids: Sequence[str],
    ) -> bool:
        """
        Mark a topic watched.

        When every topic of the lesson has been watched, the lesson's
        learning is marked done and the lesson is recorded as completed.

        Returns:
            True if the lesson's learning is now done
        """
        self.store.mark_topic_watched(lesson_id, topic_id)
        watched = set(self.store.watched_topic_ids(lesson_id))

        learning_done = len(lesson_topic_ids) > 0 and all(t in watched for t in lesson_topic_ids)
        if learning_done:
            self.store.set_learning_done(lesson_id)
            self.store.mark_lesson_completed(course_id, lesson_id)
            logger.info(f"All topics watched for lesson {lesson_id}")

        self.notifier.publish()
        return learning_done

    def record_quiz_result(
        self,
        course_id: str,
        lesson_id: str,
        questions: Sequence[QuizQuestion],
        answers: Sequence[Optional[int]],
    ) -> QuizResult:
        """
        Grade and store a quiz attempt.

        Submitting the quiz finishes the lesson's learning whether or not it
        passed; the pass flag alone gates the lesson's tasks.
        """
        result = grade_quiz(lesson_id, questions, answers, self.pass_percent)

        self.store.set_quiz_score(lesson_id, result.score_percent)
        self.store.set_quiz_passed(lesson_id, result.passed)
        self.store.set_learning_done(lesson_id)
        self.store.mark_lesson_completed(course_id, lesson_id)
        logger.info(
            f"Quiz for lesson {lesson_id}: {result.correct}/{result.total} "
            f"({result.score_percent:.0f}%), {'passed' if result.passed else 'not passed'}"
        )

        self.notifier.publish()
        return result

    # -------------------------------------------------------------------------
    # Task flow
    # -------------------------------------------------------------------------

    def record_resource_visited(self, task: Task, resource_id: str) -> bool:
        """
        Mark a task resource opened.

        Returns:
            True if every required resource of the task has now been opened
        """
        was_ready = self.can_complete_task(task)
        self.store.mark_resource_visited(task.id, resource_id)
        ready = self.can_complete_task(task)
        if ready and not was_ready:
            self.notifier.publish()
        return ready

    def record_task_completed(self, course: Course, chapter_id: str, task: Task) -> TaskCompletionOutcome:
        """
        Record a task as completed and roll completion up the tree.

        When every task of the task's lesson is done the lesson is recorded
        as completed; the outcome reports whether that finished the chapter.
        """
        self.store.mark_task_completed(course.id, task.id)

        chapter = next((ch for ch in course.chapters if ch.id == chapter_id), None)
        lesson = None
        if chapter is not None:
            lesson = next((ls for ls in chapter.lessons if ls.id == task.lesson_id), None)

        lesson_completed = False
        chapter_completed = False
        if lesson is not None and all_tasks_done(lesson, self.store.completed_task_ids(course.id)):
            self.store.mark_lesson_completed(course.id, lesson.id)
            lesson_completed = True
            chapter_completed = self.is_chapter_complete(course.id, chapter)
        elif lesson is None:
            logger.warning(f"Lesson {task.lesson_id} not found in chapter {chapter_id} of course {course.id}")

        self.notifier.publish()
        return TaskCompletionOutcome(
            task_id=task.id,
            lesson_id=task.lesson_id,
            lesson_completed=lesson_completed,
            chapter_completed=chapter_completed,
        )
