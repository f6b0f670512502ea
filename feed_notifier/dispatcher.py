
# NotificationDispatcher: fan-out of one publish per delta item.

# Concurrency model:
#   N publish calls = N asyncio tasks, launched together, joined together.
#   gather(return_exceptions=True) lets every publish settle before we look
#   at the outcome, so no in-flight send is abandoned half way.
#
# Failure policy (all-or-nothing):
#   any failed publish fails the whole stage and NO records are returned,
#   even though the other publishes may already have been delivered and
#   cannot be recalled. Those items are re-notified by the next run.
#   There is no per-item partial-success tracking.

import asyncio
import logging
from typing import Callable

from feed_notifier.errors import DispatchError
from feed_notifier.models import FeedItem, StateRecord, utc_now_iso
from feed_notifier.ports import Notifier

log = logging.getLogger(__name__)


class NotificationDispatcher:

    def __init__(self, notifier: Notifier, clock: Callable[[], str] = utc_now_iso) -> None:
        self._notifier = notifier
        self._clock = clock

    async def dispatch(self, delta: list[FeedItem]) -> list[StateRecord]:
        """
        Publish one notification per item and return the records to persist.

        Raises DispatchError if any publish failed; in that case nothing
        should be committed for this run.
        """
        records = [
            StateRecord(
                identity=item.identity,
                published_at=item.published_at,
                detected_at=self._clock(),
            )
            for item in delta
        ]

        tasks = []
        for index, record in enumerate(records):
            log.info("Triggering notification for %s", record.identity)
            tasks.append(asyncio.create_task(
                self._notifier.publish(record),
                name=f"publish-{index}",
            ))

        # blocks until every publish has succeeded or failed
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        failures = [
            (item, outcome)
            for item, outcome in zip(delta, outcomes)
            if isinstance(outcome, BaseException)
        ]
        if failures:
            for item, exc in failures:
                log.error("Publish failed for %s: %s", item.identity, exc)
            raise DispatchError(
                failures,
                delivered=len(records) - len(failures),
                attempted=len(records),
            )

        log.info("Dispatched %d notification(s)", len(records))
        return records
