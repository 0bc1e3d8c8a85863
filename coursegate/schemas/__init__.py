"""
coursegate Schemas - Pydantic models for the course progress engine.

This module exports all schema classes for:
- Course: task sheet rows and the Course/Chapter/Lesson/Task tree
- Learning: topic and quiz rows, topics, quiz questions
- Progress: task/XP statistics and lesson completion
- Schedule: lesson release slots
"""

# Course schemas
from .course import (
    TaskRow,
    TaskResources,
    Task,
    Lesson,
    Chapter,
    Course,
    coerce_int,
)

# Learning schemas
from .learning import (
    QuizAnswerPolicy,
    TopicRow,
    QuizRow,
    Topic,
    QuizQuestion,
    OrganizedQuiz,
    QuizResult,
)

# Progress schemas
from .progress import (
    ProgressStats,
    ChapterProgress,
    LessonShape,
    LessonCompletion,
    TaskCompletionOutcome,
)

# Schedule schemas
from .schedule import (
    LessonSlot,
    ScheduledLesson,
)

__all__ = [
    # Course
    'TaskRow',
    'TaskResources',
    'Task',
    'Lesson',
    'Chapter',
    'Course',
    'coerce_int',
    # Learning
    'QuizAnswerPolicy',
    'TopicRow',
    'QuizRow',
    'Topic',
    'QuizQuestion',
    'OrganizedQuiz',
    'QuizResult',
    # Progress
    'ProgressStats',
    'ChapterProgress',
    'LessonShape',
    'LessonCompletion',
    'TaskCompletionOutcome',
    # Schedule
    'LessonSlot',
    'ScheduledLesson',
]
