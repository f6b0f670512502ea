
# PipelineRunner: one detect -> notify -> persist pass over a feed.

# state machine:
#
#   FETCHED -> FILTERED -> LOOKED_UP -> DIFFED -> NOTIFIED -> COMMITTED
#      |          |                        |
#   NO_FEED   NO_CANDIDATES            NO_DELTA
#
#   any TransportError at any stage -> FAILED (remaining stages skipped)
#
# Dispatch always precedes commit, so a record is never written for an item
# whose notification was not issued. The reverse gap (notified, not recorded)
# is accepted: it only causes a repeat notification on the next run.
# No compensating actions are attempted on failure.

import asyncio
import logging
from typing import Callable

from feed_notifier.committer import StateCommitter
from feed_notifier.differ import DeltaDetector
from feed_notifier.dispatcher import NotificationDispatcher
from feed_notifier.errors import CommitError, DispatchError, TransportError
from feed_notifier.models import (
    TERMINAL_STATES,
    FeedUnavailable,
    RunResult,
    RunState,
    TimeWindow,
    utc_now_iso,
)
from feed_notifier.ports import FeedSource, Notifier, StateStore
from feed_notifier.window import filter_window

log = logging.getLogger(__name__)


class PipelineRunner:
    """
    Runs the stages in order for one feed and one time window.

    Every stage either returns its output or raises a TransportError; the
    runner stops at the first failure and reports it on the RunResult
    rather than raising, so both entrypoints see the same terminal state.
    """

    def __init__(
        self,
        source: FeedSource,
        store: StateStore,
        notifier: Notifier,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self._source = source
        self._detector = DeltaDetector(store)
        self._dispatcher = NotificationDispatcher(notifier, clock)
        self._committer = StateCommitter(store)
        self.state: RunState | None = None

    def _enter(self, state: RunState) -> None:
        self.state = state
        log.debug("Pipeline state -> %s", state.name)

    async def run(self, url: str, window: TimeWindow) -> RunResult:
        self.state = None
        result = RunResult(state=RunState.FAILED)
        try:
            await self._run(url, window, result)
        except TransportError as exc:
            self._fail(exc, result)

        log.info("Run finished in state %s", result.state.name)
        return result

    async def _run(self, url: str, window: TimeWindow, result: RunResult) -> None:
        fetched = await self._source.fetch(url)
        if isinstance(fetched, FeedUnavailable):
            log.info("No feed available from %s (status %d)", url, fetched.status)
            result.state = self._terminal(RunState.NO_FEED)
            return
        self._enter(RunState.FETCHED)
        log.info("Feed has %d item(s)", len(fetched.items))

        result.candidates = filter_window(fetched.items, window)
        self._enter(RunState.FILTERED)
        log.info(
            "%d item(s) published between %s and %s",
            len(result.candidates), window.start.isoformat(), window.end.isoformat(),
        )
        if not result.candidates:
            result.state = self._terminal(RunState.NO_CANDIDATES)
            return

        # sqlite calls block; keep them off the event loop
        existing = await asyncio.to_thread(self._detector.lookup, result.candidates)
        self._enter(RunState.LOOKED_UP)

        result.delta = self._detector.detect(result.candidates, existing)
        self._enter(RunState.DIFFED)
        log.info(
            "New, untracked item(s): %s",
            [item.identity for item in result.delta] or "none",
        )
        if not result.delta:
            result.state = self._terminal(RunState.NO_DELTA)
            return

        result.records = await self._dispatcher.dispatch(result.delta)
        self._enter(RunState.NOTIFIED)

        await asyncio.to_thread(self._committer.commit, result.records)
        result.state = self._terminal(RunState.COMMITTED)

    def _terminal(self, state: RunState) -> RunState:
        if state not in TERMINAL_STATES:
            raise ValueError(f"{state.name} is not a terminal state")
        self._enter(state)
        return state

    def _fail(self, exc: TransportError, result: RunResult) -> None:
        failed_after = self.state.name if self.state else "START"
        result.state = self._terminal(RunState.FAILED)
        result.error = exc

        if isinstance(exc, DispatchError):
            # nothing is committed, so anything already delivered repeats next run
            if exc.delivered:
                log.warning(
                    "Partial delivery: %d of %d notification(s) were sent but not recorded; "
                    "they will be sent again on the next run",
                    exc.delivered, exc.attempted,
                )
            log.error("Items were not saved: %s", exc)
        elif isinstance(exc, CommitError):
            log.warning(
                "Notified but not recorded: %s will be notified again on the next run",
                [r.identity for r in exc.records],
            )
            log.error("%s", exc)
        else:
            log.error("Run failed after %s: %s", failed_after, exc)
