"""Event store adapters for lifelog-stats.

The statistics code only needs fetch_events(EventFilter). SQLiteEventStore is
the local adapter used by the CLI and MCP server; JsonlEventSource reads raw
records from an export file for import.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from lifelog_stats.events import Event, NormalizationError, NormalizedBatch, normalize, normalize_batch

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".lifelog-stats" / "events.db"


class StoreError(Exception):
    """The event store could not be read or written."""


@dataclass(frozen=True)
class EventFilter:
    owner_id: str | None = None
    kinds: frozenset[str] | None = None
    date_range: tuple[date, date] | None = None  # inclusive UTC dates


@runtime_checkable
class EventStore(Protocol):
    def fetch_events(self, flt: EventFilter | None = None) -> list[Event]:
        """Return matching events in no particular order. Raises StoreError."""
        ...


def _to_iso(moment: datetime) -> str:
    """Serialize as UTC ISO-8601. Naive values are taken as UTC, as in bucketing."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


class SQLiteEventStore:
    """SQLite event store with WAL mode."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.last_dropped = 0
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.init_db()
        except (sqlite3.Error, OSError) as exc:
            raise StoreError(f"Cannot open event store at {self.db_path}: {exc}") from exc

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS events (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                kind TEXT NOT NULL,
                occurred_at TEXT NOT NULL,
                payload TEXT NOT NULL DEFAULT '{}'
            );

            CREATE INDEX IF NOT EXISTS idx_events_owner_time
                ON events (owner_id, occurred_at);
        """)
        self.conn.commit()

    def add_event(self, raw: Mapping[str, Any] | Event) -> Event:
        """Normalize and upsert one record. Raises NormalizationError or StoreError."""
        event = raw if isinstance(raw, Event) else normalize(raw)
        self._upsert([event])
        return event

    def add_events(self, raws: Iterable[Mapping[str, Any]]) -> NormalizedBatch:
        """Normalize and upsert many records; failing records are dropped and counted."""
        batch = normalize_batch(raws)
        self._upsert(batch.events)
        logger.info("Stored %d events (%d dropped)", len(batch.events), batch.dropped)
        return batch

    def _upsert(self, events: list[Event]) -> None:
        try:
            self.conn.executemany(
                "INSERT INTO events (id, owner_id, kind, occurred_at, payload) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET owner_id = excluded.owner_id, "
                "kind = excluded.kind, occurred_at = excluded.occurred_at, "
                "payload = excluded.payload",
                [
                    (e.id, e.owner_id, e.kind, _to_iso(e.occurred_at), json.dumps(e.payload))
                    for e in events
                ],
            )
            self.conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as exc:
            self.conn.rollback()
            raise StoreError(f"Failed to write events: {exc}") from exc

    def fetch_events(self, flt: EventFilter | None = None) -> list[Event]:
        """Return events matching flt. Rows that fail normalization are skipped."""
        flt = flt or EventFilter()
        clauses: list[str] = []
        params: list[Any] = []
        if flt.owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(flt.owner_id)
        if flt.kinds:
            kinds = sorted(flt.kinds)
            clauses.append(f"kind IN ({', '.join('?' * len(kinds))})")
            params.extend(kinds)
        if flt.date_range is not None:
            start, end = flt.date_range
            clauses.append("occurred_at >= ? AND occurred_at < ?")
            params.append(_to_iso(datetime.combine(start, time.min, tzinfo=timezone.utc)))
            params.append(_to_iso(datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)))

        sql = "SELECT * FROM events"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY occurred_at"
        try:
            rows = self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read events: {exc}") from exc

        events: list[Event] = []
        self.last_dropped = 0
        for row in rows:
            try:
                payload = json.loads(row["payload"] or "{}")
            except json.JSONDecodeError:
                payload = {}
            try:
                events.append(normalize({
                    "id": row["id"],
                    "owner_id": row["owner_id"],
                    "kind": row["kind"],
                    "occurred_at": row["occurred_at"],
                    "payload": payload,
                }))
            except NormalizationError as exc:
                logger.debug("Skipping stored row %s: %s", row["id"], exc)
                self.last_dropped += 1
        if self.last_dropped:
            logger.warning("Skipped %d malformed stored events", self.last_dropped)
        return events

    def owners(self) -> list[str]:
        """Distinct owner ids, in order of their first event."""
        try:
            rows = self.conn.execute(
                "SELECT owner_id FROM events GROUP BY owner_id ORDER BY MIN(occurred_at), owner_id"
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read owners: {exc}") from exc
        return [row["owner_id"] for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()


class JsonlEventSource:
    """Raw records from a JSON array file or a JSON-lines export."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read_raw(self) -> list[Any]:
        """Return raw records. Lines that are not valid JSON are skipped.

        Raises StoreError if the file cannot be read.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except (FileNotFoundError, OSError, UnicodeDecodeError) as exc:
            raise StoreError(f"Cannot read {self.path}: {exc}") from exc

        stripped = text.lstrip()
        if stripped.startswith("["):
            try:
                data = json.loads(stripped)
            except json.JSONDecodeError as exc:
                raise StoreError(f"Invalid JSON in {self.path}: {exc}") from exc
            if not isinstance(data, list):
                raise StoreError(f"Expected a JSON array in {self.path}")
            return data

        entries: list[Any] = []
        skipped = 0
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                skipped += 1
                continue
            entries.append(entry)
        if skipped:
            logger.warning("Skipped %d malformed lines in %s", skipped, self.path)
        return entries
