"""
Configuration loader for coursegate.

Settings come from environment variables (optionally seeded from a .env
file); the lesson release calendar comes from YAML files in config/.
"""

import os
from datetime import date
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from coursegate.schemas import QuizAnswerPolicy


PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

DEFAULT_TASKS_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vRrzHdNL8FRSooYojNPyBU2f66Tgr-DgwA6xB_HAK-azRx_s8PvbKUwzO5OzjzVdPGw-qeNOl68Asx6/pub?output=csv"
)
DEFAULT_TOPICS_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vQY0i2Sx-BZjlA9e0jwY15h-4JT4Q3tvPFbTM2yqgqG2dTzRGqewryeZjRv-MCSvkD6Dx8JCuXj8ZxS/pub?output=csv"
)
DEFAULT_QUIZ_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vQe58NeZ7swOYrjuXOfTNit7st2UaEjX6c1jHIJQMUGqt7-qQdhHRALvjCJzTI27fNRYAMzc3542eYa/pub?output=csv"
)
DEFAULT_COURSE_START = date(2025, 7, 24)
DEFAULT_DATA_DIR = Path.home() / ".coursegate"


class Settings(BaseModel):
    """Runtime settings resolved from the environment."""
    tasks_csv_url: str = DEFAULT_TASKS_CSV_URL
    topics_csv_url: str = DEFAULT_TOPICS_CSV_URL
    quiz_csv_url: str = DEFAULT_QUIZ_CSV_URL
    course_start: Optional[date] = None  # overrides the schedule file when set
    data_dir: Path = DEFAULT_DATA_DIR
    cache_ttl_minutes: int = Field(default=30, ge=0)
    quiz_pass_percent: int = Field(default=80, ge=0, le=100)
    quiz_answer_policy: QuizAnswerPolicy = QuizAnswerPolicy.FAIL_OPEN

    @property
    def progress_db_path(self) -> Path:
        return self.data_dir / "progress.db"


class ScheduleConfig(BaseModel):
    """Lesson release calendar: course start plus lesson count per chapter."""
    course_start: date = DEFAULT_COURSE_START
    chapters: dict[int, int] = Field(..., min_length=1)  # chapter number -> lesson count


# Environment variable -> Settings field
_ENV_FIELDS = {
    "COURSEGATE_TASKS_CSV_URL": "tasks_csv_url",
    "COURSEGATE_TOPICS_CSV_URL": "topics_csv_url",
    "COURSEGATE_QUIZ_CSV_URL": "quiz_csv_url",
    "COURSEGATE_COURSE_START": "course_start",
    "COURSEGATE_DATA_DIR": "data_dir",
    "COURSEGATE_CACHE_TTL_MINUTES": "cache_ttl_minutes",
    "COURSEGATE_QUIZ_PASS_PERCENT": "quiz_pass_percent",
    "COURSEGATE_QUIZ_ANSWER_POLICY": "quiz_answer_policy",
}


def load_settings(env_file: Path | None = None) -> Settings:
    """
    Load settings from the environment.

    Args:
        env_file: Optional .env file (default: .env at the project root).
            Variables already set in the process environment win.

    Returns:
        Validated Settings

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    values: dict[str, Any] = {}
    for env_name, field_name in _ENV_FIELDS.items():
        raw = os.environ.get(env_name)
        if raw is not None and raw.strip() != "":
            values[field_name] = raw.strip()
    if "data_dir" in values:
        values["data_dir"] = Path(values["data_dir"]).expanduser()
    return Settings(**values)


def load_schedule_config(
    name: str = "schedule",
    config_dir: Path | None = None,
    course_start: Optional[date] = None,
) -> ScheduleConfig:
    """
    Load a release calendar by name.

    Args:
        name: File name without .yaml extension (e.g., "schedule")
        config_dir: Optional custom config directory
        course_start: Overrides the start date in the file

    Returns:
        ScheduleConfig with keys:
        - course_start: first release day
        - chapters: chapter number -> number of lessons

    Raises:
        FileNotFoundError: If the config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    dir_path = config_dir or CONFIG_DIR
    file_path = dir_path / f"{name}.yaml"

    if not file_path.exists():
        raise FileNotFoundError(f"Schedule config not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if course_start is not None:
        data["course_start"] = course_start
    return ScheduleConfig(**data)


def get_available_schedules(config_dir: Path | None = None) -> list[str]:
    """List release calendars in the config directory (names without .yaml)."""
    dir_path = config_dir or CONFIG_DIR
    if not dir_path.exists():
        return []
    return sorted(p.stem for p in dir_path.glob("*.yaml"))
