import logging
from typing import Any, Iterable

from feed_notifier.models import FeedItem, TimeWindow, parse_dt

log = logging.getLogger(__name__)


def filter_window(items: Iterable[dict[str, Any]], window: TimeWindow) -> list[FeedItem]:
    """
    Keep raw feed items published inside the closed window, in feed order.

    Items without a url, or whose date_published is missing or unparseable,
    never match.
    """
    candidates: list[FeedItem] = []
    for raw in items:
        url = raw.get("url")
        published = raw.get("date_published")
        published_dt = parse_dt(published)

        if not url or not isinstance(url, str) or published_dt is None:
            log.debug("Skipping unusable feed item: url=%r date_published=%r", url, published)
            continue
        if window.contains(published_dt):
            candidates.append(FeedItem(identity=url, published_at=published))

    return candidates
