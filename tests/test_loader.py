"""
SheetLoader tests.

Feeds are served by an in-process fetcher or a patched urlopen; no network.
"""

import json
from http.client import IncompleteRead
from urllib.error import HTTPError, URLError

import pytest

from coursegate.classroom import FeedFetchError, FeedSource, MemoryStore, SheetLoader, fetch_csv_text
from coursegate.classroom import loader as loader_module
from coursegate.utils import Settings

from conftest import QUIZ_CSV, TASKS_CSV, TOPICS_CSV


URLS = {
    FeedSource.TASKS: "https://sheets.test/tasks.csv",
    FeedSource.TOPICS: "https://sheets.test/topics.csv",
    FeedSource.QUIZ: "https://sheets.test/quiz.csv",
}

PAYLOADS = {
    FeedSource.TASKS: TASKS_CSV,
    FeedSource.TOPICS: TOPICS_CSV,
    FeedSource.QUIZ: QUIZ_CSV,
}


class FakeFetcher:
    """Records calls and serves the fixture payloads."""

    def __init__(self):
        self.calls = []

    def __call__(self, url, source):
        self.calls.append(source)
        return PAYLOADS[source]


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache():
    return MemoryStore()


@pytest.fixture
def sheet_loader(fetcher, clock, cache):
    return SheetLoader(URLS, cache=cache, ttl_minutes=30, clock=clock, fetcher=fetcher)


class TestFeedSource:
    """Test cache keys of the feeds."""

    def test_cache_keys(self):
        assert FeedSource.TASKS.cache_key == "zane_omega_csv_data"
        assert FeedSource.TOPICS.cache_key == "learning_topics_data"
        assert FeedSource.QUIZ.cache_key == "learning_quiz_data"


class TestLoading:
    """Test row loading."""

    def test_load_tasks(self, sheet_loader):
        rows = sheet_loader.load_tasks()
        assert [row.task_id for row in rows] == ["t1", "t2", "t3", "t4"]
        assert rows[0].scenario == "Scenario, with comma"

    def test_load_topics_skips_blank_rows(self, sheet_loader):
        rows = sheet_loader.load_topics()
        assert [row.topic_id for row in rows] == ["top2", "top1", "top3"]

    def test_load_quiz(self, sheet_loader):
        rows = sheet_loader.load_quiz()
        assert [row.question_id for row in rows] == ["q1", "q2", "q3"]

    def test_load_all(self, sheet_loader, fetcher):
        data = sheet_loader.load_all()
        assert len(data.task_rows) == 4
        assert len(data.topic_rows) == 3
        assert len(data.quiz_rows) == 3
        assert sorted(fetcher.calls) == sorted(FeedSource)

    def test_missing_url(self, cache, clock, fetcher):
        loader = SheetLoader({FeedSource.TASKS: ""}, cache=cache, clock=clock, fetcher=fetcher)
        with pytest.raises(FeedFetchError, match="no URL configured"):
            loader.load_tasks()
        assert fetcher.calls == []

    def test_fetch_error_propagates(self, cache, clock):
        def failing(url, source):
            raise FeedFetchError(source, url, 500, "Internal Server Error")

        loader = SheetLoader(URLS, cache=cache, clock=clock, fetcher=failing)
        with pytest.raises(FeedFetchError) as excinfo:
            loader.load_all()
        assert excinfo.value.status == 500

    def test_from_settings(self):
        settings = Settings(tasks_csv_url="https://x/tasks", cache_ttl_minutes=5)
        loader = SheetLoader.from_settings(settings)
        assert loader.urls[FeedSource.TASKS] == "https://x/tasks"
        assert loader.ttl_seconds == 300


class TestCache:
    """Test the session payload cache."""

    def test_second_load_uses_cache(self, sheet_loader, fetcher):
        sheet_loader.load_tasks()
        sheet_loader.load_tasks()
        assert fetcher.calls == [FeedSource.TASKS]

    def test_cache_entry_layout(self, sheet_loader, cache, clock):
        sheet_loader.load_tasks()
        entry = json.loads(cache.get("zane_omega_csv_data"))
        assert entry["data"] == TASKS_CSV
        assert entry["timestamp"] == clock.now

    def test_fresh_just_before_expiry(self, sheet_loader, fetcher, clock):
        sheet_loader.load_tasks()
        clock.now += 30 * 60 - 1
        sheet_loader.load_tasks()
        assert len(fetcher.calls) == 1

    def test_expired_after_window(self, sheet_loader, fetcher, clock):
        sheet_loader.load_tasks()
        clock.now += 30 * 60
        sheet_loader.load_tasks()
        assert len(fetcher.calls) == 2

    def test_unreadable_entry_discarded(self, sheet_loader, fetcher, cache):
        cache.set("learning_quiz_data", "{not json")
        rows = sheet_loader.load_quiz()
        assert len(rows) == 3
        assert fetcher.calls == [FeedSource.QUIZ]

    def test_clear_cache(self, sheet_loader, fetcher, cache):
        sheet_loader.load_all()
        sheet_loader.clear_cache()
        assert cache.keys() == []
        sheet_loader.load_tasks()
        assert len(fetcher.calls) == 4


class FakeResponse:
    def __init__(self, body, status=200, reason="OK"):
        self._body = body
        self.status = status
        self.reason = reason

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False


class TestFetchCsvText:
    """Test the HTTP GET wrapper with urlopen patched."""

    def test_success(self, monkeypatch):
        seen = {}

        def fake_urlopen(req, timeout):
            seen["url"] = req.full_url
            seen["agent"] = req.get_header("User-agent")
            return FakeResponse("a,b\n1,2".encode("utf-8"))

        monkeypatch.setattr(loader_module, "urlopen", fake_urlopen)
        assert fetch_csv_text("https://sheets.test/tasks.csv", FeedSource.TASKS) == "a,b\n1,2"
        assert seen["url"] == "https://sheets.test/tasks.csv"
        assert seen["agent"] == loader_module.USER_AGENT

    def test_http_error(self, monkeypatch):
        def fake_urlopen(req, timeout):
            raise HTTPError(req.full_url, 404, "Not Found", None, None)

        monkeypatch.setattr(loader_module, "urlopen", fake_urlopen)
        with pytest.raises(FeedFetchError) as excinfo:
            fetch_csv_text("https://sheets.test/tasks.csv", FeedSource.TASKS)
        assert excinfo.value.status == 404
        assert str(excinfo.value) == "Failed to fetch tasks CSV: 404 Not Found"

    def test_network_error(self, monkeypatch):
        def fake_urlopen(req, timeout):
            raise URLError("connection refused")

        monkeypatch.setattr(loader_module, "urlopen", fake_urlopen)
        with pytest.raises(FeedFetchError) as excinfo:
            fetch_csv_text("https://sheets.test/quiz.csv", FeedSource.QUIZ)
        assert excinfo.value.status is None
        assert "connection refused" in str(excinfo.value)

    def test_non_success_status(self, monkeypatch):
        monkeypatch.setattr(
            loader_module, "urlopen",
            lambda req, timeout: FakeResponse(b"", status=204, reason="No Content"),
        )
        assert fetch_csv_text("https://sheets.test/tasks.csv", FeedSource.TASKS) == ""

        monkeypatch.setattr(
            loader_module, "urlopen",
            lambda req, timeout: FakeResponse(b"", status=302, reason="Found"),
        )
        with pytest.raises(FeedFetchError) as excinfo:
            fetch_csv_text("https://sheets.test/tasks.csv", FeedSource.TASKS)
        assert excinfo.value.status == 302

    @pytest.mark.parametrize("error", [
        TimeoutError("timed out"),
        ConnectionResetError("connection reset by peer"),
        IncompleteRead(b"a,b"),
    ])
    def test_read_failure(self, monkeypatch, error):
        class FailingResponse(FakeResponse):
            def read(self):
                raise error

        monkeypatch.setattr(loader_module, "urlopen", lambda req, timeout: FailingResponse(b""))
        with pytest.raises(FeedFetchError) as excinfo:
            fetch_csv_text("https://sheets.test/topics.csv", FeedSource.TOPICS)
        assert excinfo.value.status is None
        assert excinfo.value.source == FeedSource.TOPICS
        assert excinfo.value.__cause__ is error
