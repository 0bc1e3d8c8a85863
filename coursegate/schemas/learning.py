"""
Learning content schemas for coursegate.

Defines Pydantic models for the topics and quiz sheets:
- TopicRow / Topic: video units attached to a lesson
- QuizRow / QuizQuestion: multiple-choice questions attached to a lesson
"""

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .course import coerce_int


class QuizAnswerPolicy(str, Enum):
    """What to do with a correct-answer letter outside A-D."""
    FAIL_OPEN = "fail_open"      # treat the first option as correct
    FAIL_CLOSED = "fail_closed"  # reject the question


# -----------------------------------------------------------------------------
# Spreadsheet rows (cell values are whitespace-trimmed)
# -----------------------------------------------------------------------------

class _TrimmedRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    @field_validator('*', mode='before')
    @classmethod
    def strip_cells(cls, v):
        return v.strip() if isinstance(v, str) else v


class TopicRow(_TrimmedRow):
    course_id: str = Field(default="", alias="courseId")
    chapter_id: str = Field(default="", alias="chapterId")
    lesson_id: str = Field(default="", alias="lessonId")
    topic_id: str = Field(default="", alias="topicId")
    topic_title: str = Field(default="", validation_alias=AliasChoices("topicTitle", "title", "topic_title"))
    video_url: str = Field(default="", alias="videoUrl")
    description: str = ""
    order: int = 0

    @field_validator('order', mode='before')
    @classmethod
    def order_as_int(cls, v):
        return coerce_int(v)


class QuizRow(_TrimmedRow):
    course_id: str = Field(default="", alias="courseId")
    chapter_id: str = Field(default="", alias="chapterId")
    lesson_id: str = Field(default="", alias="lessonId")
    topic_id: str = Field(default="", alias="topicId")
    question_id: str = Field(default="", validation_alias=AliasChoices("questionId", "id", "question_id"))
    question: str = ""
    option_a: str = Field(default="", validation_alias=AliasChoices("optionA", "A", "option_a"))
    option_b: str = Field(default="", validation_alias=AliasChoices("optionB", "B", "option_b"))
    option_c: str = Field(default="", validation_alias=AliasChoices("optionC", "C", "option_c"))
    option_d: str = Field(default="", validation_alias=AliasChoices("optionD", "D", "option_d"))
    options: str = ""  # optional pipe-separated alternative to optionA-D
    correct_option: str = Field(
        default="",
        validation_alias=AliasChoices("correctOption", "correct", "answer", "correct_option"),
    )


# -----------------------------------------------------------------------------
# Organized learning content
# -----------------------------------------------------------------------------

class Topic(BaseModel):
    id: str
    title: str
    video_url: str = ""
    description: str = ""
    order: int = 0
    lesson_id: str
    chapter_id: str = ""
    course_id: str = ""
    youtube_id: Optional[str] = None  # derived from video_url


class QuizQuestion(BaseModel):
    id: str
    question: str
    options: list[str] = Field(default=[], max_length=4)
    correct_index: int = Field(default=0, ge=0)
    lesson_id: str
    topic_id: str = ""


class OrganizedQuiz(BaseModel):
    """Quiz questions in sheet order plus the question ids seen more than once."""
    questions: list[QuizQuestion]
    duplicate_ids: list[str] = []


class QuizResult(BaseModel):
    lesson_id: str
    correct: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    score_percent: float = Field(..., ge=0.0, le=100.0)
    passed: bool
