from __future__ import annotations

import pytest

from feed_notifier.committer import StateCommitter
from feed_notifier.errors import CommitError
from feed_notifier.models import StateRecord


class FakeStore:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.puts: list[list[StateRecord]] = []

    def batch_get(self, identities):
        return {}

    def batch_put(self, records) -> None:
        if self.fail:
            raise OSError("disk full")
        self.puts.append(list(records))


RECORDS = [
    StateRecord("a", "2024-01-02", "2024-01-03T00:00:00.000Z"),
    StateRecord("b", "2024-01-02", "2024-01-03T00:00:00.000Z"),
]


def test_empty_records_is_a_noop() -> None:
    store = FakeStore()

    StateCommitter(store).commit([])

    assert store.puts == []


def test_writes_all_records_in_one_batch() -> None:
    store = FakeStore()

    StateCommitter(store).commit(RECORDS)

    assert store.puts == [RECORDS]


def test_failure_reports_notified_but_unrecorded_items() -> None:
    with pytest.raises(CommitError) as excinfo:
        StateCommitter(FakeStore(fail=True)).commit(RECORDS)

    assert excinfo.value.records == RECORDS
