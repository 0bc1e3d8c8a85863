"""
Course content schemas for coursegate.

Defines Pydantic models for the task spreadsheet and the content tree:
- TaskRow: one flat row of the tasks sheet
- Course -> Chapter -> Lesson -> Task hierarchy
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# CELL COERCION: spreadsheet cells are text; numeric columns read the leading
# integer and fall back to 0 ("15xp" -> 15, "" -> 0, "abc" -> 0)
# =============================================================================

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_int(value, default: int = 0) -> int:
    """Read the leading integer of a cell; `default` when there is none."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    return int(match.group(1))


# -----------------------------------------------------------------------------
# Spreadsheet row
# -----------------------------------------------------------------------------

class TaskRow(BaseModel):
    """One row of the tasks sheet. Column headers are the camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)

    course_id: str = Field(default="", alias="courseId")
    course_name: str = Field(default="", alias="courseName")
    chapter_id: str = Field(default="", alias="chapterId")
    chapter_name: str = Field(default="", alias="chapterName")
    lesson_id: str = Field(default="", alias="lessonId")
    lesson_name: str = Field(default="", alias="lessonName")
    task_id: str = Field(default="", alias="taskId")
    task_title: str = Field(default="", alias="taskTitle")
    scenario: str = ""
    pdf_urls: str = Field(default="", alias="pdfUrls")      # comma/semicolon/pipe separated
    tally_urls: str = Field(default="", alias="tallyUrls")  # comma/semicolon/pipe separated
    answer_key_url: str = Field(default="", alias="answerKeyUrl")
    xp: int = 0
    instructions: str = ""  # may contain literal \n escapes

    @field_validator('xp', mode='before')
    @classmethod
    def xp_non_negative(cls, v):
        return max(0, coerce_int(v))


# -----------------------------------------------------------------------------
# Content tree
# -----------------------------------------------------------------------------

class TaskResources(BaseModel):
    model_config = ConfigDict(frozen=True)

    pdfs: list[str] = []
    forms: list[str] = []
    answer_key: str = ""


class Task(BaseModel):
    """A practical task; immutable once the tree is built."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    scenario: str = ""
    xp: int = Field(default=0, ge=0)
    resources: TaskResources = TaskResources()
    instructions: Optional[str] = None
    lesson_id: str
    chapter_id: str
    course_id: str


class Lesson(BaseModel):
    id: str
    name: str
    chapter_id: str
    course_id: str
    tasks: list[Task] = []

    @property
    def task_ids(self) -> list[str]:
        return [task.id for task in self.tasks]

    @property
    def total_xp(self) -> int:
        return sum(task.xp for task in self.tasks)


class Chapter(BaseModel):
    id: str
    name: str
    course_id: str
    lessons: list[Lesson] = []


class Course(BaseModel):
    id: str
    name: str
    chapters: list[Chapter] = []

    def iter_lessons(self):
        """Yield lessons in chapter order."""
        for chapter in self.chapters:
            yield from chapter.lessons
