
# run_once: wires the collaborators for a single pipeline run.

# Responsibilities:
#   - create one aiohttp session (shared by the feed source and the webhook notifier)
#   - open the state store and make sure its table exists
#   - pick the notifier for the configured target
#   - run the pipeline once and hand back its RunResult
#
# Everything is constructed here and injected; nothing is a module-level singleton,
# so the CLI and the triggered handler get identical wiring.

import logging
from typing import Callable

import aiohttp

from feed_notifier.config import USER_AGENT, Settings
from feed_notifier.http_client import JSONFeedSource
from feed_notifier.models import RunResult, utc_now_iso
from feed_notifier.notifiers import build_notifier
from feed_notifier.pipeline import PipelineRunner
from feed_notifier.store import SQLiteStateStore

log = logging.getLogger(__name__)


async def run_once(settings: Settings, clock: Callable[[], str] = utc_now_iso) -> RunResult:
    store = SQLiteStateStore(settings.state_store)
    store.init_db()

    connector = aiohttp.TCPConnector(limit=20)
    async with aiohttp.ClientSession(
        connector=connector,
        headers={"User-Agent": USER_AGENT},
    ) as session:
        runner = PipelineRunner(
            source=JSONFeedSource(session),
            store=store,
            notifier=build_notifier(settings.notify_target, session),
            clock=clock,
        )
        log.info(
            "Checking %s for items published %s .. %s",
            settings.feed_url,
            settings.window.start.isoformat(),
            settings.window.end.isoformat(),
        )
        return await runner.run(settings.feed_url, settings.window)
