#!/usr/bin/env python3
"""
inspect_course_data.py - Load the course feeds and report on their shape.

Builds the content tree, topics and quiz from the three CSV feeds (fetched
from the published spreadsheet or read from local files) and prints:
- Course / chapter / lesson / task counts
- Lessons with learning content and quiz questions per lesson
- Duplicate quiz question ids
- Lessons in the tree that the unlock schedule does not know about
- Optionally the release dates of the first N lessons
- Optionally the saved learner progress (COURSEGATE_DATA_DIR/progress.db)

Usage:
  python scripts/inspect_course_data.py
  python scripts/inspect_course_data.py --tasks data/tasks.csv --topics data/topics.csv --quiz data/quiz.csv
  python scripts/inspect_course_data.py --schedule 20 --from-course
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from coursegate.classroom import (
    CompletionReconciler,
    CourseData,
    FeedFetchError,
    Navigator,
    SheetLoader,
    UnlockSchedule,
    lesson_ids_with_learning,
    organize_quiz,
    organize_tasks,
    organize_topics,
    parse_quiz_rows,
    parse_task_rows,
    parse_topic_rows,
    quiz_for_lesson,
)
from coursegate.utils import load_schedule_config, load_settings, parse_csv, serialize_csv

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------

def read_local_feed(path: Path | None, parse_rows) -> list:
    if path is None:
        return []
    text = path.read_text(encoding="utf-8")
    return parse_rows(parse_csv(text))


def load_course_data(args, settings) -> CourseData:
    """Local files when any is given, otherwise all three feeds over HTTP."""
    if args.tasks or args.topics or args.quiz:
        logger.info("Reading local CSV files")
        return CourseData(
            task_rows=read_local_feed(args.tasks, parse_task_rows),
            topic_rows=read_local_feed(args.topics, parse_topic_rows),
            quiz_rows=read_local_feed(args.quiz, parse_quiz_rows),
        )
    return SheetLoader.from_settings(settings).load_all()


# -----------------------------------------------------------------------------
# Export
# -----------------------------------------------------------------------------

EXPORT_HEADER = ["courseId", "chapterId", "lessonId", "lessonName", "tasks", "totalXp", "hasLearning", "unlockDate"]


def export_lessons(path: Path, courses, learning_lessons: set[str], schedule: UnlockSchedule):
    """Write one CSV row per lesson with its task count, XP and release day."""
    rows = [EXPORT_HEADER]
    for course in courses:
        for lesson in course.iter_lessons():
            unlock = schedule.get_unlock_date(lesson.id)
            rows.append([
                course.id,
                lesson.chapter_id,
                lesson.id,
                lesson.name,
                str(len(lesson.tasks)),
                str(lesson.total_xp),
                "yes" if lesson.id in learning_lessons else "no",
                unlock.isoformat() if unlock else "",
            ])
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_csv(rows), encoding="utf-8")
    logger.info(f"Exported {len(rows) - 1} lessons to {path}")


# -----------------------------------------------------------------------------
# Progress
# -----------------------------------------------------------------------------

def print_progress(courses, schedule: UnlockSchedule, learning_lessons: set[str], settings, as_of=None):
    """Summarize the learner progress stored under COURSEGATE_DATA_DIR."""
    reconciler = CompletionReconciler.from_settings(settings, learning_lessons=learning_lessons)
    navigator = Navigator(courses, schedule, reconciler)
    print(f"Progress ({settings.progress_db_path}):")
    for course in courses:
        summary = navigator.get_course_summary(course.id, as_of)
        print(
            f"  {course.id}: {summary['completed_lessons']}/{summary['total_lessons']} lessons "
            f"({summary['completion_percent']}%), {summary['earned_xp']}/{summary['total_xp']} XP, "
            f"next: {summary['recommended_lesson_id'] or '-'}"
        )


def main():
    parser = argparse.ArgumentParser(
        description="Inspect the course feeds: tree shape, quiz health and release schedule.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch the published feeds (URLs from .env or defaults)
  python scripts/inspect_course_data.py

  # Use downloaded copies
  python scripts/inspect_course_data.py --tasks tasks.csv --topics topics.csv --quiz quiz.csv

  # Release dates of the first 20 lessons, scheduled from the tree itself
  python scripts/inspect_course_data.py --schedule 20 --from-course
        """,
    )
    parser.add_argument("--tasks", type=Path, help="Local tasks CSV file")
    parser.add_argument("--topics", type=Path, help="Local topics CSV file")
    parser.add_argument("--quiz", type=Path, help="Local quiz CSV file")
    parser.add_argument(
        "--schedule",
        type=int,
        default=0,
        metavar="N",
        help="Print release dates of the first N lessons (default: 0)",
    )
    parser.add_argument(
        "--schedule-config",
        type=str,
        default="schedule",
        help="Schedule YAML name in config/ (default: schedule)",
    )
    parser.add_argument(
        "--from-course",
        action="store_true",
        help="Schedule the lessons found in the first course instead of the configured enumeration",
    )
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Reference day for unlock checks, YYYY-MM-DD (default: today)",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Print saved learner progress per course from the progress database",
    )
    parser.add_argument(
        "--export",
        type=Path,
        default=None,
        help="Write a per-lesson CSV summary to this path",
    )

    args = parser.parse_args()
    settings = load_settings()

    try:
        data = load_course_data(args, settings)
    except FeedFetchError as e:
        logger.error(str(e))
        sys.exit(1)

    courses = organize_tasks(data.task_rows)
    topics = organize_topics(data.topic_rows)
    quiz = organize_quiz(data.quiz_rows, policy=settings.quiz_answer_policy)
    learning_lessons = lesson_ids_with_learning(topics)

    # COURSEGATE_COURSE_START, when set, overrides the start date in the YAML file
    config = load_schedule_config(args.schedule_config, course_start=settings.course_start)
    if args.from_course and courses:
        schedule = UnlockSchedule.from_course(config.course_start, courses[0])
    else:
        schedule = UnlockSchedule.from_config(config)

    print(f"Courses: {len(courses)}")
    for course in courses:
        lessons = list(course.iter_lessons())
        tasks = sum(len(lesson.tasks) for lesson in lessons)
        print(f"  {course.id} ({course.name}): {len(course.chapters)} chapters, {len(lessons)} lessons, {tasks} tasks")
        for chapter in course.chapters:
            print(f"    {chapter.id} {chapter.name}: {len(chapter.lessons)} lessons")

    print(f"Topics: {len(topics)} across {len(learning_lessons)} lessons")
    print(f"Quiz questions: {len(quiz.questions)}")
    for lesson_id in sorted(learning_lessons):
        count = len(quiz_for_lesson(quiz.questions, lesson_id))
        if count == 0:
            print(f"  WARNING: lesson {lesson_id} has topics but no quiz questions")
    if quiz.duplicate_ids:
        print(f"  Duplicate question ids: {', '.join(quiz.duplicate_ids)}")

    scheduled = set(schedule.lesson_ids())
    missing = [
        lesson.id
        for course in courses
        for lesson in course.iter_lessons()
        if lesson.id not in scheduled
    ]
    print(f"Schedule: {len(scheduled)} lessons from {schedule.start_date.isoformat()}")
    if missing:
        print(f"  {len(missing)} lessons not in schedule (always unlocked): {', '.join(missing[:10])}")

    if args.schedule > 0:
        for entry in schedule.lessons[:args.schedule]:
            state = "open" if schedule.is_lesson_unlocked(entry.id, args.as_of) else "locked"
            print(f"  {entry.id:<10} {entry.unlock_date.isoformat()} {entry.unlock_date.strftime('%a')} {state}")

    if args.progress:
        print_progress(courses, schedule, learning_lessons, settings, args.as_of)

    if args.export:
        export_lessons(args.export, courses, learning_lessons, schedule)


if __name__ == "__main__":
    main()
