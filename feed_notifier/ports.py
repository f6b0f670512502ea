"""Collaborator contracts used by the pipeline.

The pipeline only talks to these protocols, so the HTTP feed, the SQLite
store and the notifiers can be swapped (or faked in tests) without touching
the stages.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Protocol, Sequence

from feed_notifier.models import FetchResult, StateRecord


class FeedSource(Protocol):
    """Fetches one feed snapshot."""

    async def fetch(self, url: str) -> FetchResult:
        ...


class StateStore(Protocol):
    """Durable record of already-notified items, keyed by identity."""

    def batch_get(self, identities: Iterable[str]) -> Mapping[str, StateRecord]:
        ...

    def batch_put(self, records: Sequence[StateRecord]) -> None:
        ...


class Notifier(Protocol):
    """Publishes one notification message per record."""

    async def publish(self, record: StateRecord) -> None:
        ...
