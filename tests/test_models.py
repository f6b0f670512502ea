from __future__ import annotations

import re
from datetime import datetime, timezone

import pytest

from feed_notifier.errors import ConfigError, FeedParseError
from feed_notifier.models import StateRecord, TimeWindow, parse_dt, utc_now_iso
from feed_notifier.parser import parse_feed


def test_parse_dt_normalises_to_utc() -> None:
    assert parse_dt("2024-01-02") == datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert parse_dt("2024-01-02T10:00:00Z") == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)
    assert parse_dt("2024-01-02T12:00:00+02:00") == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)
    assert parse_dt("") is None
    assert parse_dt(None) is None
    assert parse_dt("02/01/2024") is None


def test_detection_timestamp_format() -> None:
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", utc_now_iso())


def test_payload_uses_wire_field_names() -> None:
    record = StateRecord("a", "2024-01-02", "2024-01-03T00:00:00.000Z")

    assert record.to_payload() == {"url": "a", "published": "2024-01-02", "detected": "2024-01-03T00:00:00.000Z"}
    assert StateRecord.from_payload(record.to_payload()) == record


def test_inverted_window_is_rejected() -> None:
    with pytest.raises(ConfigError):
        TimeWindow.parse("2024-01-03", "2024-01-01")


def test_parse_feed_shapes() -> None:
    assert parse_feed({}) == []
    assert parse_feed({"items": [{"url": "a"}, 3, None]}) == [{"url": "a"}]
    with pytest.raises(FeedParseError):
        parse_feed(["not", "an", "object"])
    with pytest.raises(FeedParseError):
        parse_feed(None)
