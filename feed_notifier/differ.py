import logging

from feed_notifier.errors import StoreError
from feed_notifier.models import FeedItem
from feed_notifier.ports import StateStore

log = logging.getLogger(__name__)


class DeltaDetector:
    """
    Finds the feed items that have never been notified.

    Unlike an in-memory seen-set, state lives in the store and survives
    across runs. The lookup is keyed by the current candidates only, so its
    cost is bounded by the window, not by the size of the store.

    Identity is compared as an exact string: no trailing-slash or query
    normalisation.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    def lookup(self, candidates: list[FeedItem]) -> set[str]:
        """One batch lookup for the candidates' identities. No candidates, no lookup."""
        if not candidates:
            return set()

        identities = {item.identity for item in candidates}
        try:
            found = self._store.batch_get(identities)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"State lookup failed: {exc}") from exc

        existing = set(found) & identities
        log.info("Found %d of %d candidate(s) in state", len(existing), len(identities))
        return existing

    @staticmethod
    def detect(candidates: list[FeedItem], existing: set[str]) -> list[FeedItem]:
        """
        Candidates whose identity is not already recorded, in feed order.

        Duplicate identities inside candidates are not collapsed: each
        occurrence passes through on its own.
        """
        return [item for item in candidates if item.identity not in existing]
