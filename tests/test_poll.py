"""Tests for the polling orchestrator's watermark handling."""

import logging

import pytest

from recordwatch.core.exceptions import SourceFetchError, StorageError, WatermarkNotFoundError
from recordwatch.core.models import CuratedAlbumEntry
from recordwatch.infrastructure.storage import WatchStorage
from recordwatch.output.embed import SOURCE_STYLES
from recordwatch.output.router import NotificationRouter
from recordwatch.pipeline.enrich import ReleaseYearEnricher
from recordwatch.pipeline.poll import PollingOrchestrator, PollOutcome, backlog_since
from recordwatch.pipeline.state import WatchState
from recordwatch.utils.datetime import utc_now

from conftest import FakeChannelClient, FakeFetcher, FakeResolver, make_review, window


class RecordingStorage(WatchStorage):
    """Counts watermark writes."""

    def __init__(self, path):
        super().__init__(path)
        self.watermark_writes = []

    def set_watermark(self, user_key, watermark, checked_at):
        self.watermark_writes.append((user_key, watermark))
        super().set_watermark(user_key, watermark, checked_at)


@pytest.fixture
def store(tmp_path):
    storage = RecordingStorage(tmp_path / "poll.sqlite")
    storage.initialize()
    storage.set_default_channel("guild", "general")
    yield storage
    storage.close()


def orchestrator(store, windows, client=None, **kwargs):
    client = client or FakeChannelClient()
    router = NotificationRouter(client, store.list_org_configs)
    kwargs.setdefault("user_delay", 0)
    return PollingOrchestrator(store, FakeFetcher(windows), router, **kwargs), client


def url(n, username="alice"):
    return make_review(n, username=username).review_url


def sent_titles(client):
    return [message.embed["title"].split(" by ")[0] for _, message in client.sent]


def test_backlog_since():
    reviews = window(5, 4, 3)

    assert [r.album_title for r in backlog_since(reviews, url(3))] == ["Album 5", "Album 4"]
    assert backlog_since(reviews, url(5)) == []
    with pytest.raises(WatermarkNotFoundError):
        backlog_since(reviews, url(1))


def test_first_poll_seeds_without_notifying(store):
    store.link_user("u1", "alice")
    orch, client = orchestrator(store, {"alice": window(3, 2, 1)})

    stats = orch.run_cycle()

    assert stats.results[0].outcome is PollOutcome.SEEDED
    assert store.get_user("u1").watermark == url(3)
    assert client.sent == []


def test_new_reviews_notify_oldest_first(store):
    store.link_user("u1", "alice")
    store.set_watermark("u1", url(1), utc_now())
    orch, client = orchestrator(store, {"alice": window(4, 3, 2, 1)})

    stats = orch.run_cycle()

    assert sent_titles(client) == ["Album 2", "Album 3", "Album 4"]
    assert stats.reviews_dispatched == 3
    assert stats.messages_sent == 3
    assert stats.results[0].outcome is PollOutcome.NOTIFIED
    assert store.get_user("u1").watermark == url(4)


def test_watermark_written_once_per_user(store):
    store.link_user("u1", "alice")
    store.set_watermark("u1", url(1), utc_now())
    store.watermark_writes.clear()
    orch, _ = orchestrator(store, {"alice": window(4, 3, 2, 1)})

    orch.run_cycle()

    assert store.watermark_writes == [("u1", url(4))]


def test_no_duplicates_across_cycles(store):
    store.link_user("u1", "alice")
    store.set_watermark("u1", url(1), utc_now())
    orch, client = orchestrator(store, {"alice": window(2, 1)})

    orch.run_cycle()
    second = orch.run_cycle()

    assert sent_titles(client) == ["Album 2"]
    assert second.results[0].outcome is PollOutcome.UP_TO_DATE


def test_missing_watermark_resets_without_notifying(store, caplog):
    store.link_user("u1", "alice")
    store.set_watermark("u1", url(1), utc_now())
    orch, client = orchestrator(store, {"alice": window(9, 8, 7)})

    with caplog.at_level(logging.WARNING, logger="recordwatch.pipeline.poll"):
        stats = orch.run_cycle()

    assert stats.results[0].outcome is PollOutcome.RESET
    assert stats.watermark_resets == 1
    assert store.get_user("u1").watermark == url(9)
    assert client.sent == []
    assert any("not in the last 3 reviews" in record.getMessage() for record in caplog.records)


def test_empty_window_changes_nothing(store):
    store.link_user("u1", "alice")
    store.set_watermark("u1", url(1), utc_now())
    store.watermark_writes.clear()
    orch, client = orchestrator(store, {"alice": []})

    stats = orch.run_cycle()

    assert stats.results[0].outcome is PollOutcome.EMPTY
    assert store.get_user("u1").watermark == url(1)
    assert store.watermark_writes == []
    assert client.sent == []


def test_one_failing_user_does_not_stop_the_cycle(store):
    store.link_user("u1", "alice")
    store.link_user("u2", "bob")
    store.set_watermark("u1", url(1), utc_now())
    store.set_watermark("u2", url(1, "bob"), utc_now())
    orch, client = orchestrator(
        store,
        {"alice": SourceFetchError("recordclub", "Timed out"), "bob": window(2, 1, username="bob")},
    )

    stats = orch.run_cycle()

    outcomes = {result.username: result.outcome for result in stats.results}
    assert outcomes == {"alice": PollOutcome.FAILED, "bob": PollOutcome.NOTIFIED}
    assert stats.users_failed == 1
    assert store.get_user("u1").watermark == url(1)
    assert len(client.sent) == 1


def test_delay_between_users_but_not_before_first(store, sleeps):
    store.link_user("u1", "alice")
    store.link_user("u2", "bob")
    orch, _ = orchestrator(store, {"alice": window(1), "bob": window(1, username="bob")}, user_delay=5.0)

    orch.run_cycle()

    assert sleeps == [5.0]


def test_overlapping_trigger_is_dropped(store):
    store.link_user("u1", "alice")
    state = WatchState()
    orch, _ = orchestrator(store, {"alice": window(1)}, state=state)
    fetcher = orch.fetcher

    assert state.guard.try_enter()
    try:
        assert orch.run_cycle() is None
    finally:
        state.guard.exit()

    assert fetcher.calls == []
    assert orch.run_cycle() is not None
    assert not state.guard.running


def test_new_reviews_are_classified_and_routed(store):
    store.set_channel_override("guild", "1001", "chan-1001")
    store.link_user("u1", "alice")
    store.set_watermark("u1", url(1), utc_now())
    state = WatchState()
    state.classifier.rebuild([CuratedAlbumEntry(title="Album 2", artist="Artist 2", source="1001")])
    orch, client = orchestrator(store, {"alice": window(3, 2, 1)}, state=state)

    orch.run_cycle()

    channels = [channel for channel, _ in client.sent]
    assert channels == ["chan-1001", "general"]
    assert client.sent[0][1].embed["color"] == SOURCE_STYLES["1001"].color


def test_backlog_enrichment_is_spaced(store, sleeps):
    store.link_user("u1", "alice")
    store.set_watermark("u1", url(1), utc_now())
    resolver = FakeResolver("1971")
    enricher = ReleaseYearEnricher(resolver, min_interval=1.1)
    orch, client = orchestrator(store, {"alice": window(4, 3, 2, 1, release_year=None)}, enricher=enricher)

    stats = orch.run_cycle()

    assert len(resolver.calls) == 3
    assert sleeps == [1.1, 1.1]
    assert stats.enrichment.resolved == 3
    assert all(message.embed["title"].endswith("(1971)") for _, message in client.sent)


class FailingSecondLookup(FakeResolver):
    """Resolves the first album, then blows up."""

    def resolve_year(self, artist, album):
        year = super().resolve_year(artist, album)
        if len(self.calls) == 2:
            raise RuntimeError("unexpected payload")
        return year


def test_enrichment_error_mid_backlog_does_not_resend(store):
    store.link_user("u1", "alice")
    store.set_watermark("u1", url(1), utc_now())
    enricher = ReleaseYearEnricher(FailingSecondLookup("1971"), min_interval=0)
    orch, client = orchestrator(store, {"alice": window(3, 2, 1, release_year=None)}, enricher=enricher)

    first = orch.run_cycle()
    second = orch.run_cycle()

    assert first.results[0].outcome is PollOutcome.NOTIFIED
    assert second.results[0].outcome is PollOutcome.UP_TO_DATE
    assert [message.embed["title"] for _, message in client.sent] == [
        "Album 2 by Artist 2 (1971)",
        "Album 3 by Artist 3",
    ]
    assert store.get_user("u1").watermark == url(3)


def test_send_failures_still_advance_watermark_once(store):
    store.link_user("u1", "alice")
    store.set_watermark("u1", url(1), utc_now())
    store.watermark_writes.clear()
    orch, client = orchestrator(store, {"alice": window(3, 2, 1)}, client=FakeChannelClient(failing={"general"}))

    stats = orch.run_cycle()
    orch.run_cycle()

    assert stats.send_failures == 2
    assert stats.messages_sent == 0
    assert client.sent == []
    assert store.watermark_writes == [("u1", url(3))]


def test_cycle_error_releases_guard(store, monkeypatch):
    store.link_user("u1", "alice")
    orch, _ = orchestrator(store, {"alice": window(1)})
    iter_users = store.iter_users
    calls = []

    def locked_then_ok():
        calls.append(1)
        if len(calls) == 1:
            raise StorageError("database is locked")
        return iter_users()

    monkeypatch.setattr(store, "iter_users", locked_then_ok)

    first = orch.run_cycle()

    assert first.error == "database is locked"
    assert first.users_polled == 0
    assert not orch.state.guard.running

    second = orch.run_cycle()

    assert second.error is None
    assert second.results[0].outcome is PollOutcome.SEEDED
