
# JSON feed source over HTTP.

# outcome of one fetch:
#   200 + valid JSON feed     -> FeedFetched(items)
#   any other status          -> FeedUnavailable(status)   expected, not raised
#   network failure / timeout -> FetchError                fatal to the run
#   200 + unusable body       -> FeedParseError            fatal to the run
#
# No retries and no conditional GET: each invocation is a fresh run, and
# re-running the whole pipeline is the retry.

import asyncio
import logging

import aiohttp

from feed_notifier.config import REQUEST_TIMEOUT_SECONDS
from feed_notifier.errors import FeedParseError, FetchError
from feed_notifier.models import FeedFetched, FeedUnavailable, FetchResult
from feed_notifier.parser import parse_feed

log = logging.getLogger(__name__)


class JSONFeedSource:
    """
    Fetches a JSON Feed document with a shared aiohttp.ClientSession.

    The session (and its User-Agent header) is owned by the orchestrator;
    this class only issues the GET and classifies the outcome.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def fetch(self, url: str) -> FetchResult:
        try:
            async with self._session.get(url, timeout=self._timeout) as resp:
                if resp.status != 200:
                    log.warning("Received status %d while fetching %s", resp.status, url)
                    return FeedUnavailable(status=resp.status, reason=resp.reason or "")

                # JSON feeds are often served as application/feed+json or text/plain
                data = await resp.json(content_type=None)

        except asyncio.TimeoutError as exc:
            raise FetchError(f"Timeout fetching {url}") from exc
        except aiohttp.ClientError as exc:
            # before ValueError: aiohttp.InvalidURL is both
            raise FetchError(f"Error fetching {url}: {exc}") from exc
        except ValueError as exc:
            # JSONDecodeError and UnicodeDecodeError are both ValueError
            raise FeedParseError(f"Feed at {url} is not valid JSON: {exc}") from exc

        return FeedFetched(items=parse_feed(data))
