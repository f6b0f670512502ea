from __future__ import annotations

from typing import Iterable

import pytest

from feed_notifier.differ import DeltaDetector
from feed_notifier.errors import StoreError
from feed_notifier.models import FeedItem, StateRecord


class FakeStore:
    def __init__(self, identities: Iterable[str] = ()) -> None:
        self.records = {
            identity: StateRecord(identity, "2024-01-01", "2024-01-01T00:00:00.000Z")
            for identity in identities
        }
        self.lookups: list[set[str]] = []

    def batch_get(self, identities: Iterable[str]) -> dict[str, StateRecord]:
        keys = set(identities)
        self.lookups.append(keys)
        return {k: v for k, v in self.records.items() if k in keys}

    def batch_put(self, records) -> None:
        raise AssertionError("detector must not write")


class BrokenStore(FakeStore):
    def batch_get(self, identities: Iterable[str]) -> dict[str, StateRecord]:
        raise RuntimeError("table missing")


def _items(*identities: str) -> list[FeedItem]:
    return [FeedItem(identity=i, published_at="2024-01-02") for i in identities]


def test_lookup_is_keyed_by_candidates_only() -> None:
    store = FakeStore(["a", "old-1", "old-2"])
    detector = DeltaDetector(store)

    existing = detector.lookup(_items("a", "b"))

    assert store.lookups == [{"a", "b"}]
    assert existing == {"a"}


def test_no_candidates_means_no_lookup() -> None:
    store = FakeStore(["a"])
    detector = DeltaDetector(store)

    assert detector.lookup([]) == set()
    assert store.lookups == []


def test_detect_is_disjoint_from_existing_and_subset_of_candidates() -> None:
    candidates = _items("a", "b", "c", "d")
    existing = {"b", "d", "zzz"}

    delta = DeltaDetector.detect(candidates, existing)

    identities = {item.identity for item in delta}
    assert identities.isdisjoint(existing)
    assert identities <= {item.identity for item in candidates}
    assert [item.identity for item in delta] == ["a", "c"]


def test_duplicate_candidates_pass_through_independently() -> None:
    delta = DeltaDetector.detect(_items("a", "a", "b"), {"b"})

    assert [item.identity for item in delta] == ["a", "a"]


def test_identity_is_exact_string_match() -> None:
    delta = DeltaDetector.detect(_items("https://x.test/post/"), {"https://x.test/post"})

    assert len(delta) == 1


def test_store_failure_becomes_store_error() -> None:
    detector = DeltaDetector(BrokenStore())

    with pytest.raises(StoreError):
        detector.lookup(_items("a"))
