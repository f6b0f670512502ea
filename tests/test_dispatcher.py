from __future__ import annotations

import asyncio

import pytest

from feed_notifier.dispatcher import NotificationDispatcher
from feed_notifier.errors import DispatchError, NotifyError
from feed_notifier.models import FeedItem, StateRecord

NOW = "2024-01-03T12:00:00.000Z"


class FakeNotifier:
    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.published: list[StateRecord] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def publish(self, record: StateRecord) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        if record.identity in self.fail_on:
            raise NotifyError(f"queue rejected {record.identity}")
        self.published.append(record)


def _items(*identities: str) -> list[FeedItem]:
    return [FeedItem(identity=i, published_at="2024-01-02") for i in identities]


def test_builds_one_record_per_item_with_detection_time() -> None:
    notifier = FakeNotifier()
    dispatcher = NotificationDispatcher(notifier, clock=lambda: NOW)

    records = asyncio.run(dispatcher.dispatch(_items("a", "b")))

    assert records == [
        StateRecord("a", "2024-01-02", NOW),
        StateRecord("b", "2024-01-02", NOW),
    ]
    assert sorted(r.identity for r in notifier.published) == ["a", "b"]


def test_publishes_run_concurrently() -> None:
    notifier = FakeNotifier()
    dispatcher = NotificationDispatcher(notifier, clock=lambda: NOW)

    asyncio.run(dispatcher.dispatch(_items("a", "b", "c")))

    assert notifier.max_in_flight == 3


def test_any_failure_fails_whole_stage_after_all_settle() -> None:
    notifier = FakeNotifier(fail_on={"b"})
    dispatcher = NotificationDispatcher(notifier, clock=lambda: NOW)

    with pytest.raises(DispatchError) as excinfo:
        asyncio.run(dispatcher.dispatch(_items("a", "b", "c")))

    err = excinfo.value
    # the other publishes were not abandoned
    assert sorted(r.identity for r in notifier.published) == ["a", "c"]
    assert err.delivered == 2
    assert err.attempted == 3
    assert [item.identity for item, _ in err.failures] == ["b"]
