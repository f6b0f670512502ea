
# validates the shape of a JSON Feed document and hands back its raw items.

# Only the document shape is checked here: an object with an "items" list.
# Per-item fields (url, date_published) are left to the window filter, which
# excludes items it cannot use instead of failing the whole run.

from typing import Any

from feed_notifier.errors import FeedParseError


def parse_feed(data: Any) -> list[dict[str, Any]]:
    """
    Return the feed's item objects in feed order.

    A document without "items" is an empty feed. Anything that is not an
    object, or whose "items" is not a list, raises FeedParseError.
    Non-object entries inside the list are dropped.
    """
    if not isinstance(data, dict):
        raise FeedParseError(f"Feed document is {type(data).__name__}, expected an object")

    items = data.get("items", [])
    if not isinstance(items, list):
        raise FeedParseError(f"Feed 'items' is {type(items).__name__}, expected a list")

    return [item for item in items if isinstance(item, dict)]
