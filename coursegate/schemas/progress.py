"""
Progress schemas for coursegate.

Defines Pydantic models for derived progress state:
- Task/XP statistics for any task subset
- Lesson-level chapter statistics
- Lesson completion by content shape
"""

from enum import Enum

from pydantic import BaseModel, Field


class ProgressStats(BaseModel):
    total_tasks: int = Field(..., ge=0)
    completed_tasks: int = Field(..., ge=0)
    completion_percentage: float = Field(..., ge=0.0, le=100.0)
    total_xp: int = Field(..., ge=0)
    earned_xp: int = Field(..., ge=0)
    xp_percentage: float = Field(..., ge=0.0, le=100.0)


class ChapterProgress(BaseModel):
    """Chapter statistics counted in lessons; XP comes from fully complete lessons."""
    total_lessons: int = Field(..., ge=0)
    completed_lessons: int = Field(..., ge=0)
    completion_percentage: int = Field(..., ge=0, le=100)
    total_xp: int = Field(..., ge=0)
    earned_xp: int = Field(..., ge=0)
    xp_percentage: int = Field(..., ge=0, le=100)


class LessonShape(str, Enum):
    TASK_ONLY = "task_only"
    LEARNING_ONLY = "learning_only"
    MIXED = "mixed"
    EMPTY = "empty"


class LessonCompletion(BaseModel):
    """Reconciled completion state of one lesson."""
    lesson_id: str
    shape: LessonShape
    stats: ProgressStats
    tasks_complete: bool
    learning_complete: bool
    quiz_passed: bool
    complete: bool
    combined_progress: float = Field(..., ge=0.0, le=100.0)


class TaskCompletionOutcome(BaseModel):
    """What a task completion caused further up the tree."""
    task_id: str
    lesson_id: str
    lesson_completed: bool
    chapter_completed: bool
