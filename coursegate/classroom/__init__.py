"""
coursegate Classroom - Runtime components for course content and progress.

This module provides:
- SheetLoader: Fetch and cache the published CSV feeds
- Builder: Course tree, topics and quiz questions from sheet rows
- CompletionStore: Persisted completion markers
- UnlockSchedule: Date-based lesson release
- CompletionReconciler: Lesson/chapter completion and the learning/task flows
- Navigator: Course view-state
"""

from .loader import (
    SheetLoader,
    CourseData,
    FeedSource,
    FeedFetchError,
    fetch_csv_text,
    parse_task_rows,
    parse_topic_rows,
    parse_quiz_rows,
)

from .builder import (
    InvalidQuizAnswerError,
    organize_tasks,
    organize_topics,
    organize_quiz,
    find_course,
    find_chapter,
    find_lesson,
    find_task,
    topics_for_lesson,
    quiz_for_lesson,
    lesson_ids_with_learning,
    split_urls,
    extract_youtube_id,
)

from .progress import (
    calculate_progress,
    chapter_progress,
)

from .store import (
    KeyValueStore,
    MemoryStore,
    SQLiteStore,
    CompletionStore,
    DEFAULT_PROGRESS_DIR,
    DEFAULT_PROGRESS_DB,
)

from .events import (
    ProgressNotifier,
    PROGRESS_CHANGED,
)

from .schedule import (
    UnlockSchedule,
    DEFAULT_CHAPTER_LESSON_COUNTS,
    enumerate_lessons,
    enumerate_course_lessons,
    compute_unlock_dates,
    lesson_id_for,
)

from .reconciler import (
    CompletionReconciler,
    is_lesson_complete,
    combined_progress_value,
    lesson_shape,
    grade_quiz,
    required_resource_ids,
)

from .navigator import (
    Navigator,
    LessonAvailability,
    NavigationLesson,
    NavigationChapter,
)

__all__ = [
    # Loader
    "SheetLoader",
    "CourseData",
    "FeedSource",
    "FeedFetchError",
    "fetch_csv_text",
    "parse_task_rows",
    "parse_topic_rows",
    "parse_quiz_rows",
    # Builder
    "InvalidQuizAnswerError",
    "organize_tasks",
    "organize_topics",
    "organize_quiz",
    "find_course",
    "find_chapter",
    "find_lesson",
    "find_task",
    "topics_for_lesson",
    "quiz_for_lesson",
    "lesson_ids_with_learning",
    "split_urls",
    "extract_youtube_id",
    # Progress
    "calculate_progress",
    "chapter_progress",
    # Store
    "KeyValueStore",
    "MemoryStore",
    "SQLiteStore",
    "CompletionStore",
    "DEFAULT_PROGRESS_DIR",
    "DEFAULT_PROGRESS_DB",
    # Events
    "ProgressNotifier",
    "PROGRESS_CHANGED",
    # Schedule
    "UnlockSchedule",
    "DEFAULT_CHAPTER_LESSON_COUNTS",
    "enumerate_lessons",
    "enumerate_course_lessons",
    "compute_unlock_dates",
    "lesson_id_for",
    # Reconciler
    "CompletionReconciler",
    "is_lesson_complete",
    "combined_progress_value",
    "lesson_shape",
    "grade_quiz",
    "required_resource_ids",
    # Navigator
    "Navigator",
    "LessonAvailability",
    "NavigationLesson",
    "NavigationChapter",
]
