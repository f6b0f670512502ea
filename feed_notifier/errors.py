
# error taxonomy for a pipeline run.

# TransportError and its subclasses are fatal to the run: the runner stops
# at the first one, marks the run FAILED and hands the error to the entrypoint.
# Nothing here is retried internally; re-running the whole pipeline is the
# retry, which is safe only because delivery is at-least-once.
#
# Expected empty results (non-200 feed, no candidates, no delta) are NOT
# errors and never appear in this module.

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from feed_notifier.models import FeedItem, StateRecord


class FeedNotifierError(Exception):
    """Base class for every error raised by feed_notifier."""


class ConfigError(FeedNotifierError):
    """Missing or invalid run configuration."""


class TransportError(FeedNotifierError):
    """A collaborator (feed, store, notifier) failed. Fatal to the run."""


class FetchError(TransportError):
    """Network failure or timeout while fetching the feed."""


class FeedParseError(FetchError):
    """The feed answered 200 but the payload is not a usable JSON feed."""


class StoreError(TransportError):
    """State store lookup or write failed."""


class CommitError(StoreError):
    """
    batch_put failed after the notifications were already delivered.

    The records are kept on the error so operators can see which items
    were notified but not recorded (they will be re-notified next run).
    """

    def __init__(self, message: str, records: Sequence[StateRecord]) -> None:
        super().__init__(message)
        self.records = list(records)


class NotifyError(TransportError):
    """A single publish call failed."""


class DispatchError(TransportError):
    """
    At least one publish in a fan-out failed, so the stage failed as a whole.

    delivered > 0 means some messages already went out and cannot be
    recalled; those items will be notified again on the next run.
    """

    def __init__(
        self,
        failures: Sequence[tuple[FeedItem, BaseException]],
        delivered: int,
        attempted: int,
    ) -> None:
        first_item, first_exc = failures[0]
        super().__init__(
            f"{len(failures)} of {attempted} publish call(s) failed "
            f"(first: {first_item.identity}: {first_exc})"
        )
        self.failures = list(failures)
        self.delivered = delivered
        self.attempted = attempted
