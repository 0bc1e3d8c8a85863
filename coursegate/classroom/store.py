"""
CompletionStore - Persisted completion markers.

Two storage scopes hold learner state:
- durable: survives restarts (SQLite file, default ~/.coursegate/progress.db)
- session: lives as long as the process (in memory)

Completed task ids were historically written to the session scope and are
now written to the durable one, so reads merge both by set union. Callers
only talk to CompletionStore and never pick a scope themselves.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol


logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_DIR = Path.home() / ".coursegate"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"


class KeyValueStore(Protocol):
    """String key-value storage scope."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Session-scoped storage, cleared when the process exits."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def clear(self):
        self._data.clear()


class SQLiteStore:
    """
    Durable storage in a SQLite file.

    Each call opens its own connection, so writes are committed and visible
    to the next read as soon as the call returns.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize durable store.

        Args:
            db_path: Path to progress.db (default: ~/.coursegate/progress.db)
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def get(self, key: str) -> Optional[str]:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            )
            row = cursor.fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """INSERT INTO kv_store (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                     value = excluded.value,
                     updated_at = excluded.updated_at""",
                (key, value, now)
            )
            conn.commit()
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = self._get_connection()
        try:
            cursor = conn.execute("SELECT key FROM kv_store ORDER BY key")
            return [row["key"] for row in cursor.fetchall()]
        finally:
            conn.close()

    def clear(self):
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv_store")
            conn.commit()
        finally:
            conn.close()


# -----------------------------------------------------------------------------
# Storage keys
# -----------------------------------------------------------------------------

def completed_tasks_key(course_id: str) -> str:
    return f"course_{course_id}_completed_tasks"


def completed_lessons_key(course_id: str) -> str:
    return f"course_{course_id}_completed_lessons"


def watched_topics_key(lesson_id: str) -> str:
    return f"lesson_{lesson_id}_watchedTopics"


def quiz_score_key(lesson_id: str) -> str:
    return f"lesson_{lesson_id}_quizScore"


def quiz_passed_key(lesson_id: str) -> str:
    return f"lesson_{lesson_id}_quizPassed"


def learning_done_key(lesson_id: str) -> str:
    return f"lesson_{lesson_id}_learningDone"


def resource_visited_key(task_id: str, resource_id: str) -> str:
    return f"task_{task_id}_resource_{resource_id}_visited"


def _read_list(scope: KeyValueStore, key: str) -> list[str]:
    raw = scope.get(key)
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Ignoring malformed list stored under {key!r}")
        return []
    if not isinstance(value, list):
        logger.warning(f"Ignoring non-list value stored under {key!r}")
        return []
    return [str(item) for item in value]


def _append_unique(scope: KeyValueStore, key: str, item: str) -> bool:
    """Append item to the list under key. Returns False if it was already there."""
    items = _read_list(scope, key)
    if item in items:
        return False
    items.append(item)
    scope.set(key, json.dumps(items))
    return True


def _read_flag(scope: KeyValueStore, key: str) -> bool:
    return scope.get(key) == "true"


def _write_flag(scope: KeyValueStore, key: str, value: bool):
    scope.set(key, "true" if value else "false")


class CompletionStore:
    """
    Completion markers for one learner profile.

    Key layout:
    - course_{courseId}_completed_tasks      durable + session (union on read)
    - course_{courseId}_completed_lessons    durable
    - lesson_{lessonId}_watchedTopics        durable
    - lesson_{lessonId}_quizScore            durable (integer 0-100)
    - lesson_{lessonId}_quizPassed           durable
    - lesson_{lessonId}_learningDone         durable
    - task_{taskId}_resource_{id}_visited    session
    """

    def __init__(self, durable: KeyValueStore, session: Optional[KeyValueStore] = None):
        """
        Initialize completion store.

        Args:
            durable: Long-lived scope (e.g., SQLiteStore)
            session: Process-lifetime scope (default: a fresh MemoryStore)
        """
        self.durable = durable
        self.session = session if session is not None else MemoryStore()

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def completed_task_ids(self, course_id: str) -> set[str]:
        """Completed task ids for a course, merged from both scopes."""
        key = completed_tasks_key(course_id)
        return set(_read_list(self.durable, key)) | set(_read_list(self.session, key))

    def mark_task_completed(self, course_id: str, task_id: str) -> bool:
        """Record a task as completed in the durable scope. Returns False if it already was there."""
        return _append_unique(self.durable, completed_tasks_key(course_id), task_id)

    def is_task_completed(self, course_id: str, task_id: str) -> bool:
        return task_id in self.completed_task_ids(course_id)

    # -------------------------------------------------------------------------
    # Lessons
    # -------------------------------------------------------------------------

    def completed_lesson_ids(self, course_id: str) -> set[str]:
        return set(_read_list(self.durable, completed_lessons_key(course_id)))

    def mark_lesson_completed(self, course_id: str, lesson_id: str) -> bool:
        return _append_unique(self.durable, completed_lessons_key(course_id), lesson_id)

    # -------------------------------------------------------------------------
    # Learning flow
    # -------------------------------------------------------------------------

    def watched_topic_ids(self, lesson_id: str) -> list[str]:
        """Watched topic ids in the order they were first watched."""
        return _read_list(self.durable, watched_topics_key(lesson_id))

    def mark_topic_watched(self, lesson_id: str, topic_id: str) -> bool:
        return _append_unique(self.durable, watched_topics_key(lesson_id), topic_id)

    def quiz_score(self, lesson_id: str) -> Optional[int]:
        raw = self.durable.get(quiz_score_key(lesson_id))
        if raw is None or raw == "":
            return None
        try:
            return int(float(raw))
        except (ValueError, OverflowError):
            logger.warning(f"Ignoring malformed quiz score for lesson {lesson_id}: {raw!r}")
            return None

    def set_quiz_score(self, lesson_id: str, score: float):
        """Store a quiz score as an integer percentage clamped to 0-100."""
        value = max(0, min(100, int(round(score))))
        self.durable.set(quiz_score_key(lesson_id), str(value))

    def is_quiz_passed(self, lesson_id: str) -> bool:
        return _read_flag(self.durable, quiz_passed_key(lesson_id))

    def set_quiz_passed(self, lesson_id: str, passed: bool):
        _write_flag(self.durable, quiz_passed_key(lesson_id), passed)

    def is_learning_done(self, lesson_id: str) -> bool:
        return _read_flag(self.durable, learning_done_key(lesson_id))

    def set_learning_done(self, lesson_id: str, done: bool = True):
        _write_flag(self.durable, learning_done_key(lesson_id), done)

    # -------------------------------------------------------------------------
    # Task resources
    # -------------------------------------------------------------------------

    def is_resource_visited(self, task_id: str, resource_id: str) -> bool:
        return _read_flag(self.session, resource_visited_key(task_id, resource_id))

    def mark_resource_visited(self, task_id: str, resource_id: str):
        _write_flag(self.session, resource_visited_key(task_id, resource_id), True)

    def visited_resource_ids(self, task_id: str, resource_ids) -> set[str]:
        """Subset of resource_ids visited for a task."""
        return {rid for rid in resource_ids if self.is_resource_visited(task_id, rid)}
