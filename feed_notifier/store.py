"""SQLite state store adapter.

Implements the StateStore contract with a single table keyed by identity.
"""

from __future__ import annotations

import sqlite3
from typing import Iterable, Sequence

from feed_notifier.config import STORE_BATCH_SIZE
from feed_notifier.errors import StoreError
from feed_notifier.models import StateRecord


class SQLiteStateStore:
    """Thin SQLite wrapper that satisfies the StateStore contract."""

    def __init__(self, db_path: str, batch_size: int = STORE_BATCH_SIZE) -> None:
        self._db_path = db_path
        self._batch_size = batch_size

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open state store {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the notified table if it does not exist.

        Fields:
        - url: item identity, exact string (PRIMARY KEY, so never duplicated)
        - published: date_published as the feed gave it
        - detected: UTC time the notification was issued
        """

        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS notified (
                        url TEXT PRIMARY KEY,
                        published TEXT NOT NULL,
                        detected TEXT NOT NULL
                    )
                    """
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot initialise state store: {exc}") from exc

    def batch_get(self, identities: Iterable[str]) -> dict[str, StateRecord]:
        """Return the stored records for the given identities; unknown ones are absent."""

        keys = sorted(set(identities))
        found: dict[str, StateRecord] = {}
        if not keys:
            return found

        try:
            with self._connect() as conn:
                # chunked to stay under SQLite's bound-parameter limit
                for i in range(0, len(keys), self._batch_size):
                    chunk = keys[i : i + self._batch_size]
                    placeholders = ", ".join("?" for _ in chunk)
                    rows = conn.execute(
                        f"SELECT url, published, detected FROM notified WHERE url IN ({placeholders})",
                        chunk,
                    ).fetchall()
                    for row in rows:
                        found[row["url"]] = StateRecord.from_payload(dict(row))
        except sqlite3.Error as exc:
            raise StoreError(f"State lookup failed: {exc}") from exc
        return found

    def batch_put(self, records: Sequence[StateRecord]) -> None:
        """Upsert all records in one transaction: either every row lands or none does."""

        if not records:
            return
        try:
            with self._connect() as conn:
                conn.executemany(
                    """
                    INSERT INTO notified (url, published, detected)
                    VALUES (:url, :published, :detected)
                    ON CONFLICT(url) DO UPDATE SET
                        published = excluded.published,
                        detected = excluded.detected
                    """,
                    [record.to_payload() for record in records],
                )
        except sqlite3.Error as exc:
            raise StoreError(f"State write failed: {exc}") from exc

    def list_records(self) -> list[StateRecord]:
        """Return every stored record, most recently detected first."""

        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT url, published, detected FROM notified ORDER BY detected DESC, url"
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"State listing failed: {exc}") from exc
        return [StateRecord.from_payload(dict(row)) for row in rows]
