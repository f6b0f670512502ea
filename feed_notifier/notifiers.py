
# notifiers: the output layer of the pipeline.

# each notifier receives a StateRecord and publishes one message for it.
# the record itself is a pure data container; the wire form is always
# record.to_payload() -> {"url", "published", "detected"}.

# to add a new output target, implement a class with:
#     async def publish(self, record: StateRecord) -> None: ...
# raise NotifyError on failure, and teach build_notifier() its target syntax.


import asyncio
import json
import logging

import aiohttp

from feed_notifier.config import REQUEST_TIMEOUT_SECONDS
from feed_notifier.errors import ConfigError, NotifyError
from feed_notifier.models import StateRecord

log = logging.getLogger(__name__)

CONSOLE_TARGET = "console"

_R = "\033[0m"
_GREEN = "\033[32m"


class ConsoleNotifier:
    """
    Emits one line per new item to stdout.

    Format:
        NEW {"url": "https://example.com/post", "published": "2026-02-21T10:00:00Z", "detected": "2026-02-21T12:39:08.123Z"}

    The JSON after the coloured NEW tag is the same payload the webhook
    sends, so a line can be cut at the first space and fed to a JSON parser.
    """

    async def publish(self, record: StateRecord) -> None:
        print(self._format(record), flush=True)

    def _format(self, r: StateRecord) -> str:
        return f"{_GREEN}NEW{_R} {json.dumps(r.to_payload())}"


class WebhookNotifier:
    """
    POSTs the JSON payload to an HTTP endpoint (queue gateway, chat webhook...).

    Any 2xx is an acknowledgement. Non-2xx, network errors and timeouts are
    NotifyError; there is no retry here.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session
        self._url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def publish(self, record: StateRecord) -> None:
        body = json.dumps(record.to_payload())
        try:
            async with self._session.post(
                self._url,
                data=body,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            ) as resp:
                if not 200 <= resp.status < 300:
                    text = await resp.text()
                    raise NotifyError(
                        f"Webhook {self._url} answered {resp.status} for {record.identity}: {text[:200]}"
                    )
        except aiohttp.ClientError as exc:
            raise NotifyError(f"Webhook {self._url} failed for {record.identity}: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise NotifyError(f"Webhook {self._url} timed out for {record.identity}") from exc

        log.debug("Published %s to %s", record.identity, self._url)


def build_notifier(target: str, session: aiohttp.ClientSession):
    """Pick the notifier for a NOTIFY_TARGET value."""
    if target == CONSOLE_TARGET:
        return ConsoleNotifier()
    if target.startswith(("http://", "https://")):
        return WebhookNotifier(session, target)
    raise ConfigError(f"Unsupported notify target: {target!r} (use 'console' or an http(s) URL)")
