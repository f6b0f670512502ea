import logging

from feed_notifier.errors import CommitError
from feed_notifier.models import StateRecord
from feed_notifier.ports import StateStore

log = logging.getLogger(__name__)


class StateCommitter:
    """Writes the records of a successful dispatch as one batch."""

    def __init__(self, store: StateStore) -> None:
        self._store = store

    def commit(self, records: list[StateRecord]) -> None:
        if not records:
            log.info("No new items to store")
            return

        try:
            self._store.batch_put(records)
        except Exception as exc:
            # the notifications are already out; these items get re-notified next run
            raise CommitError(
                f"Failed to record {len(records)} notified item(s): {exc}",
                records,
            ) from exc

        log.info("Stored %d new item(s)", len(records))
