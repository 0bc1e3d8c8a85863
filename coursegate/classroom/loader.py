"""
SheetLoader - Load course data from published spreadsheet CSV feeds.

Provides:
- One GET per feed (tasks, topics, quiz), no authentication
- Raw payload cache in the session scope with a freshness window
- Typed row parsing for each feed
"""

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from http.client import HTTPException
from typing import Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from coursegate.schemas import QuizRow, TaskRow, TopicRow
from coursegate.utils.csv_parser import parse_csv, records_from_matrix

from .store import KeyValueStore, MemoryStore


logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_MINUTES = 30
DEFAULT_TIMEOUT = 30  # seconds
USER_AGENT = "coursegate/0.1 (course progress engine)"


class FeedSource(str, Enum):
    """Spreadsheet feeds and their session cache keys."""
    TASKS = "tasks"
    TOPICS = "topics"
    QUIZ = "quiz"

    @property
    def cache_key(self) -> str:
        return _CACHE_KEYS[self]


_CACHE_KEYS = {
    FeedSource.TASKS: "zane_omega_csv_data",
    FeedSource.TOPICS: "learning_topics_data",
    FeedSource.QUIZ: "learning_quiz_data",
}


class FeedFetchError(RuntimeError):
    """A feed could not be fetched (network error or non-success status)."""

    def __init__(self, source: FeedSource, url: str, status: Optional[int] = None, reason: str = ""):
        self.source = source
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"{status} {reason}".strip() if status is not None else reason
        super().__init__(f"Failed to fetch {source.value} CSV: {detail}")


# -----------------------------------------------------------------------------
# Fetching
# -----------------------------------------------------------------------------

def fetch_csv_text(url: str, source: FeedSource, timeout: float = DEFAULT_TIMEOUT) -> str:
    """
    Fetch a CSV feed.

    Args:
        url: Published CSV URL
        source: Which feed this is (for error reporting)
        timeout: Socket timeout in seconds

    Returns:
        The payload decoded as UTF-8

    Raises:
        FeedFetchError: On network errors or a non-success HTTP status
    """
    req = Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urlopen(req, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise FeedFetchError(source, url, status, getattr(response, "reason", ""))
            return response.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        logger.error(f"Fetching {source.value} CSV failed: {e.code} {e.reason}")
        raise FeedFetchError(source, url, e.code, str(e.reason)) from e
    except URLError as e:
        logger.error(f"Fetching {source.value} CSV failed: {e.reason}")
        raise FeedFetchError(source, url, None, str(e.reason)) from e
    except (OSError, HTTPException) as e:
        logger.error(f"Fetching {source.value} CSV failed: {e!r}")
        raise FeedFetchError(source, url, None, str(e) or type(e).__name__) from e


# -----------------------------------------------------------------------------
# Row parsing
# -----------------------------------------------------------------------------

def parse_task_rows(matrix: list[list[str]]) -> list[TaskRow]:
    """Tasks sheet rows; cell values are kept as written."""
    rows = []
    for record in records_from_matrix(matrix):
        rows.append(TaskRow.model_validate(record))
    return rows


def _non_empty(record: dict[str, str]) -> bool:
    return any(value.strip() != "" for value in record.values())


def parse_topic_rows(matrix: list[list[str]]) -> list[TopicRow]:
    """Topics sheet rows; all-empty rows are skipped."""
    return [
        TopicRow.model_validate(record)
        for record in records_from_matrix(matrix)
        if _non_empty(record)
    ]


def parse_quiz_rows(matrix: list[list[str]]) -> list[QuizRow]:
    """Quiz sheet rows; all-empty rows are skipped."""
    return [
        QuizRow.model_validate(record)
        for record in records_from_matrix(matrix)
        if _non_empty(record)
    ]


_ROW_PARSERS = {
    FeedSource.TASKS: parse_task_rows,
    FeedSource.TOPICS: parse_topic_rows,
    FeedSource.QUIZ: parse_quiz_rows,
}


@dataclass
class CourseData:
    """Parsed rows of all three feeds from one load cycle."""
    task_rows: list[TaskRow] = field(default_factory=list)
    topic_rows: list[TopicRow] = field(default_factory=list)
    quiz_rows: list[QuizRow] = field(default_factory=list)


class SheetLoader:
    """
    Load feeds with a session-scoped payload cache.

    Concurrent misses may fetch the same feed twice; both write an
    equivalent payload, so the cache needs no lock.
    """

    def __init__(
        self,
        urls: dict[FeedSource, str],
        cache: Optional[KeyValueStore] = None,
        ttl_minutes: int = DEFAULT_CACHE_TTL_MINUTES,
        clock: Callable[[], float] = time.time,
        fetcher: Callable[[str, FeedSource], str] = fetch_csv_text,
    ):
        """
        Initialize loader.

        Args:
            urls: CSV URL per feed
            cache: Session-scope store for raw payloads (default: MemoryStore)
            ttl_minutes: Freshness window of a cached payload
            clock: Returns the current time in seconds
            fetcher: Performs the GET; (url, source) -> text
        """
        self.urls = dict(urls)
        self.cache = cache if cache is not None else MemoryStore()
        self.ttl_seconds = ttl_minutes * 60
        self._clock = clock
        self._fetch = fetcher

    @classmethod
    def from_settings(cls, settings, cache: Optional[KeyValueStore] = None) -> "SheetLoader":
        """Build a loader from coursegate.utils.Settings."""
        return cls(
            urls={
                FeedSource.TASKS: settings.tasks_csv_url,
                FeedSource.TOPICS: settings.topics_csv_url,
                FeedSource.QUIZ: settings.quiz_csv_url,
            },
            cache=cache,
            ttl_minutes=settings.cache_ttl_minutes,
        )

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _cached_payload(self, source: FeedSource) -> Optional[str]:
        raw = self.cache.get(source.cache_key)
        if not raw:
            return None
        try:
            entry = json.loads(raw)
            data, timestamp = entry["data"], float(entry["timestamp"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            logger.warning(f"Discarding unreadable {source.value} cache entry")
            self.cache.remove(source.cache_key)
            return None
        if self._clock() - timestamp >= self.ttl_seconds:
            return None
        return data

    def _store_payload(self, source: FeedSource, text: str):
        entry = {"data": text, "timestamp": self._clock()}
        self.cache.set(source.cache_key, json.dumps(entry))

    def clear_cache(self):
        """Drop cached payloads of every feed."""
        for source in FeedSource:
            self.cache.remove(source.cache_key)
        logger.info("CSV cache cleared")

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_text(self, source: FeedSource) -> str:
        """Raw CSV payload of a feed, from cache when fresh."""
        cached = self._cached_payload(source)
        if cached is not None:
            logger.info(f"Using cached {source.value} data")
            return cached

        url = self.urls.get(source)
        if not url:
            raise FeedFetchError(source, "", None, "no URL configured")

        logger.info(f"Fetching {source.value} data from {url}")
        text = self._fetch(url, source)
        self._store_payload(source, text)
        return text

    def load_rows(self, source: FeedSource) -> list:
        rows = _ROW_PARSERS[source](parse_csv(self.load_text(source)))
        logger.info(f"Loaded {len(rows)} {source.value} rows")
        return rows

    def load_tasks(self) -> list[TaskRow]:
        return self.load_rows(FeedSource.TASKS)

    def load_topics(self) -> list[TopicRow]:
        return self.load_rows(FeedSource.TOPICS)

    def load_quiz(self) -> list[QuizRow]:
        return self.load_rows(FeedSource.QUIZ)

    def load_all(self, max_workers: int = 3) -> CourseData:
        """
        Load all three feeds concurrently.

        Raises:
            FeedFetchError: If any feed fails
        """
        results = {}
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(self.load_rows, source): source
                for source in FeedSource
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        return CourseData(
            task_rows=results[FeedSource.TASKS],
            topic_rows=results[FeedSource.TOPICS],
            quiz_rows=results[FeedSource.QUIZ],
        )
