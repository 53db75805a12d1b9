"""Shared fixtures and fakes."""

import json
from typing import Dict, List, Optional, Union

import pytest
import requests

from recordwatch.core.exceptions import SendError
from recordwatch.core.models import ReviewRecord
from recordwatch.core.protocols import ChannelMessage, RenderedPage
from recordwatch.infrastructure.storage import WatchStorage

BASE_URL = "https://record.club"


def make_review(n: int, username: str = "alice", **fields) -> ReviewRecord:
    """Review ``n``; higher numbers are newer."""
    data = {
        "username": username,
        "album_title": f"Album {n}",
        "artist_name": f"Artist {n}",
        "rating": "4",
        "review_text": f"Thoughts on album {n}",
        "review_url": f"{BASE_URL}/{username}/reviews/{n}",
        "album_url": f"{BASE_URL}/releases/album-{n}",
        "release_year": "1999",
    }
    data.update(fields)
    return ReviewRecord(**data)


def window(*numbers: int, username: str = "alice", **fields) -> List[ReviewRecord]:
    """Newest-first review window."""
    return [make_review(n, username=username, **fields) for n in numbers]


def make_response(status: int = 200, body=None, headers: Optional[Dict[str, str]] = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body if body is not None else {}).encode("utf-8")
    response.headers.update(headers or {})
    response.url = "https://example.test/"
    return response


class FakeSession:
    """Replays queued responses or exceptions for GET and POST."""

    def __init__(self, *outcomes: Union[requests.Response, Exception]):
        self.headers: Dict[str, str] = {}
        self.outcomes = list(outcomes)
        self.calls: List[dict] = []

    def _next(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)

    def close(self):
        pass


class FakeRenderer:
    """Serves canned HTML keyed by username or URL."""

    def __init__(self, pages: Optional[Dict[str, Union[str, Exception]]] = None):
        self.pages = pages or {}
        self.calls: List[str] = []

    def _page(self, key: str, url: str) -> RenderedPage:
        self.calls.append(key)
        outcome = self.pages[key]
        if isinstance(outcome, Exception):
            raise outcome
        return RenderedPage(url=url, html=outcome)

    def render_reviews(self, username: str) -> RenderedPage:
        return self._page(username, f"{BASE_URL}/{username}/reviews")

    def render(self, url: str) -> RenderedPage:
        return self._page(url, url)


class FakeFetcher:
    """Returns a fresh copy of the configured window for each user."""

    def __init__(self, windows: Dict[str, Union[List[ReviewRecord], Exception]]):
        self.windows = windows
        self.calls: List[str] = []

    def fetch(self, username: str) -> List[ReviewRecord]:
        self.calls.append(username)
        outcome = self.windows[username]
        if isinstance(outcome, Exception):
            raise outcome
        return [review.model_copy() for review in outcome]


class FakeChannelClient:
    """Records sends; channels in ``failing`` raise SendError."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent: List[tuple] = []

    def send(self, channel_id: str, message: ChannelMessage) -> None:
        if channel_id in self.failing:
            raise SendError(channel_id, "403 Forbidden")
        self.sent.append((channel_id, message))


class FakeResolver:
    def __init__(self, year: Optional[str] = "1971"):
        self.year = year
        self.calls: List[tuple] = []

    def resolve_year(self, artist: str, album: str) -> Optional[str]:
        self.calls.append((artist, album))
        return self.year


@pytest.fixture
def storage(tmp_path):
    store = WatchStorage(tmp_path / "recordwatch.sqlite")
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def sleeps(monkeypatch):
    """Capture time.sleep calls instead of waiting."""
    calls: List[float] = []
    monkeypatch.setattr("time.sleep", lambda seconds: calls.append(seconds))
    return calls
