"""
Hierarchy builder - Fold flat sheet rows into course content.

Provides:
- Course -> Chapter -> Lesson -> Task tree from task rows
- Lookups by id inside the tree
- Topic and quiz lists keyed by lesson id
"""

import logging
import re
import uuid
from typing import Iterable, Optional

from coursegate.schemas import (
    Chapter,
    Course,
    Lesson,
    OrganizedQuiz,
    QuizAnswerPolicy,
    QuizQuestion,
    QuizRow,
    Task,
    TaskResources,
    TaskRow,
    Topic,
    TopicRow,
)


logger = logging.getLogger(__name__)

ANSWER_LETTERS = ("A", "B", "C", "D")
MAX_QUIZ_OPTIONS = len(ANSWER_LETTERS)

_URL_SEPARATORS = re.compile(r"[;|,]")
_OPTION_MARKER = re.compile(r"^([A-D]\)|[A-D]\.)\s*", re.IGNORECASE)
_LINE_BREAKS = re.compile(r"\r\n|\r|\n")

_YOUTUBE_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#]+)"),
    re.compile(r"^([a-zA-Z0-9_-]{11})$"),  # bare video id
)


class InvalidQuizAnswerError(ValueError):
    """A quiz row names a correct answer outside A-D or past its last option."""

    def __init__(self, question_id: str, letter: str):
        self.question_id = question_id
        self.letter = letter
        super().__init__(f"Question {question_id!r} has invalid correct option {letter!r}")


def split_urls(value: Optional[str]) -> list[str]:
    """Split a URL list cell on comma, semicolon or pipe; blanks dropped."""
    if not value:
        return []
    return [url.strip() for url in _URL_SEPARATORS.split(value) if url.strip()]


def extract_youtube_id(url: str) -> Optional[str]:
    """Video id from watch/short/embed URLs or a bare 11-character id."""
    if not url:
        return None
    for pattern in _YOUTUBE_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


# -----------------------------------------------------------------------------
# Task tree
# -----------------------------------------------------------------------------

def _task_from_row(row: TaskRow) -> Task:
    return Task(
        id=row.task_id,
        title=row.task_title,
        scenario=row.scenario,
        xp=row.xp,
        resources=TaskResources(
            pdfs=split_urls(row.pdf_urls),
            forms=split_urls(row.tally_urls),
            answer_key=row.answer_key_url or "",
        ),
        instructions=row.instructions.replace("\\n", "\n") if row.instructions else None,
        lesson_id=row.lesson_id,
        chapter_id=row.chapter_id,
        course_id=row.course_id,
    )


def organize_tasks(rows: Iterable[TaskRow]) -> list[Course]:
    """
    Build the content tree in one pass.

    Each course, chapter and lesson is created the first time its key is
    seen; later rows with the same key keep the first name. Chapters are
    scoped by (course, chapter) and lessons by (course, chapter, lesson).
    Child lists keep first-seen order.
    """
    courses: dict[str, Course] = {}
    chapters: dict[tuple[str, str], Chapter] = {}
    lessons: dict[tuple[str, str, str], Lesson] = {}

    for row in rows:
        course = courses.get(row.course_id)
        if course is None:
            course = Course(id=row.course_id, name=row.course_name)
            courses[row.course_id] = course

        chapter_key = (row.course_id, row.chapter_id)
        chapter = chapters.get(chapter_key)
        if chapter is None:
            chapter = Chapter(id=row.chapter_id, name=row.chapter_name, course_id=row.course_id)
            chapters[chapter_key] = chapter
            course.chapters.append(chapter)

        lesson_key = (row.course_id, row.chapter_id, row.lesson_id)
        lesson = lessons.get(lesson_key)
        if lesson is None:
            lesson = Lesson(
                id=row.lesson_id,
                name=row.lesson_name,
                chapter_id=row.chapter_id,
                course_id=row.course_id,
            )
            lessons[lesson_key] = lesson
            chapter.lessons.append(lesson)

        lesson.tasks.append(_task_from_row(row))

    return list(courses.values())


def find_course(courses: list[Course], course_id: str) -> Optional[Course]:
    for course in courses:
        if course.id == course_id:
            return course
    return None


def find_chapter(courses: list[Course], course_id: str, chapter_id: str) -> Optional[Chapter]:
    course = find_course(courses, course_id)
    if not course:
        return None
    for chapter in course.chapters:
        if chapter.id == chapter_id:
            return chapter
    return None


def find_lesson(courses: list[Course], course_id: str, chapter_id: str, lesson_id: str) -> Optional[Lesson]:
    chapter = find_chapter(courses, course_id, chapter_id)
    if not chapter:
        return None
    for lesson in chapter.lessons:
        if lesson.id == lesson_id:
            return lesson
    return None


def find_task(courses: list[Course], course_id: str, chapter_id: str, task_id: str) -> Optional[Task]:
    """Find a task anywhere in the chapter (task ids are unique per chapter)."""
    chapter = find_chapter(courses, course_id, chapter_id)
    if not chapter:
        return None
    for lesson in chapter.lessons:
        for task in lesson.tasks:
            if task.id == task_id:
                return task
    return None


# -----------------------------------------------------------------------------
# Learning content
# -----------------------------------------------------------------------------

def organize_topics(rows: Iterable[TopicRow]) -> list[Topic]:
    """Topics sorted by `order`; ties keep sheet order."""
    topics = [
        Topic(
            id=row.topic_id,
            title=row.topic_title,
            video_url=row.video_url,
            description=row.description,
            order=row.order,
            lesson_id=row.lesson_id,
            chapter_id=row.chapter_id,
            course_id=row.course_id,
            youtube_id=extract_youtube_id(row.video_url),
        )
        for row in rows
    ]
    return sorted(topics, key=lambda topic: topic.order)


def _quiz_options(row: QuizRow) -> list[str]:
    if row.options.strip():
        flattened = _LINE_BREAKS.sub(" ", row.options)
        options = [_OPTION_MARKER.sub("", opt.strip()) for opt in flattened.split("|")]
    else:
        options = [row.option_a, row.option_b, row.option_c, row.option_d]
    return [opt.strip() for opt in options if opt.strip()]


def _correct_index(row: QuizRow, question_id: str, options: list[str], policy: QuizAnswerPolicy) -> int:
    letter = row.correct_option.strip().upper()
    if letter in ANSWER_LETTERS:
        index = ANSWER_LETTERS.index(letter)
        if not options or index < len(options):
            return index
        if policy == QuizAnswerPolicy.FAIL_CLOSED:
            raise InvalidQuizAnswerError(question_id, row.correct_option)
        logger.warning(
            f"Question {question_id} has correct option {row.correct_option!r} "
            f"but only {len(options)} options"
        )
        return index
    if policy == QuizAnswerPolicy.FAIL_CLOSED:
        raise InvalidQuizAnswerError(question_id, row.correct_option)
    logger.warning(
        f"Question {question_id} has correct option {row.correct_option!r}; "
        f"treating the first option as correct"
    )
    return 0


def organize_quiz(
    rows: Iterable[QuizRow],
    policy: QuizAnswerPolicy = QuizAnswerPolicy.FAIL_OPEN,
) -> OrganizedQuiz:
    """
    Turn quiz rows into questions.

    Options come from the pipe-separated `options` cell when it is filled
    (leading "A)" / "A." markers stripped), else from optionA-D. Duplicate
    question ids are kept and reported.

    Raises:
        InvalidQuizAnswerError: Under FAIL_CLOSED, for a correct option outside A-D
            or one pointing past the last option
    """
    seen: set[str] = set()
    duplicates: list[str] = []
    questions = []

    for row in rows:
        if row.question_id:
            if row.question_id in seen:
                if row.question_id not in duplicates:
                    duplicates.append(row.question_id)
            else:
                seen.add(row.question_id)

        question_id = row.question_id or f"{row.lesson_id or 'lesson'}_{uuid.uuid4().hex[:7]}"

        options = _quiz_options(row)
        if len(options) > MAX_QUIZ_OPTIONS:
            logger.warning(
                f"Question {question_id} has {len(options)} options; keeping the first {MAX_QUIZ_OPTIONS}"
            )
            options = options[:MAX_QUIZ_OPTIONS]

        questions.append(QuizQuestion(
            id=question_id,
            question=row.question,
            options=options,
            correct_index=_correct_index(row, question_id, options, policy),
            lesson_id=row.lesson_id,
            topic_id=row.topic_id,
        ))

    if duplicates:
        logger.warning(
            f"Duplicate questionId(s) found in quiz CSV: {', '.join(duplicates)}. "
            f"Consider giving each question a unique questionId."
        )

    return OrganizedQuiz(questions=questions, duplicate_ids=duplicates)


def topics_for_lesson(topics: list[Topic], lesson_id: str) -> list[Topic]:
    return [topic for topic in topics if topic.lesson_id == lesson_id]


def quiz_for_lesson(questions: list[QuizQuestion], lesson_id: str) -> list[QuizQuestion]:
    return [question for question in questions if question.lesson_id == lesson_id]


def lesson_ids_with_learning(topics: Iterable[Topic]) -> set[str]:
    """Lessons that own at least one topic."""
    return {topic.lesson_id for topic in topics if topic.lesson_id}
