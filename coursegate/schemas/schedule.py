"""
Release schedule schemas for coursegate.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class LessonSlot(BaseModel):
    """A lesson position in the release order."""
    model_config = ConfigDict(frozen=True)

    id: str
    chapter_number: int = Field(..., ge=1)
    lesson_number: int = Field(..., ge=1)
    global_index: int = Field(..., ge=0)


class ScheduledLesson(LessonSlot):
    unlock_date: date
    is_first_lesson: bool = False
