"""Record sinks (storage backends).

A sink receives whole batches from `RecordLogger.flush_all()`. Batches are
written all-or-nothing and appended after anything already stored, so a failed
flush can be retried without duplicating records.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Sequence
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol

import duckdb

from .models import CapturedRecord, parse_record

SinkFormat = Literal["jsonl", "duckdb"]

SINK_EXTENSIONS: dict[str, str] = {
    "jsonl": "jsonl",
    "duckdb": "duckdb",
}


class RecordSink(Protocol):
    """A synchronous, append-only destination for captured records."""

    def write_batch(self, records: Sequence[CapturedRecord]) -> None:
        """Persist `records` in order, or nothing at all (raises OSError)."""

    def read_records(self) -> list[CapturedRecord]:
        """Return every stored record in write order."""

    def close(self) -> None:
        """Close any underlying resources."""


class InMemoryRecordSink:
    """In-memory sink for tests and local debugging."""

    def __init__(self) -> None:
        """Create an empty in-memory sink."""
        self._lock = threading.Lock()
        self._records: list[CapturedRecord] = []
        self.closed = False

    def write_batch(self, records: Sequence[CapturedRecord]) -> None:
        with self._lock:
            self._records.extend(records)

    def read_records(self) -> list[CapturedRecord]:
        """Return a point-in-time copy of all stored records."""
        with self._lock:
            return list(self._records)

    def close(self) -> None:
        self.closed = True


class JsonlRecordSink:
    """Appends one JSON line per record to a file.

    The file and its parent directory are only created by the first
    non-empty batch.
    """

    def __init__(self, path: str | Path, *, fsync: bool = True) -> None:
        self.path = Path(path)
        self._fsync = fsync
        self._lock = threading.Lock()

    def write_batch(self, records: Sequence[CapturedRecord]) -> None:
        """Append `records` to the file.

        The file is written unbuffered; if anything fails it is truncated back
        to its previous size before the error propagates.
        """
        if not records:
            return
        data = memoryview("".join(r.serialize() + "\n" for r in records).encode("utf-8"))
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("ab", buffering=0) as handle:
                start = handle.tell()
                try:
                    while data:
                        written = handle.write(data)
                        data = data[written:]
                    if self._fsync:
                        os.fsync(handle.fileno())
                except OSError:
                    with suppress(OSError):
                        os.ftruncate(handle.fileno(), start)
                    raise

    def read_records(self) -> list[CapturedRecord]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as handle:
            return [parse_record(line) for line in handle if line.strip()]

    def close(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op; the file is only held open during a write."""


@dataclass(frozen=True)
class DuckDBOptions:
    path: Path
    table: str = "captured_records"


class DuckDBRecordSink:
    """DuckDB sink for durable local persistence.

    Rows carry an explicit `seq` so reads return records in the order they
    were flushed, across any number of batches.
    """

    def __init__(self, *, path: str | Path, table: str = "captured_records") -> None:
        """Create a sink for the DuckDB file at `path` (opened on first write)."""
        self._opts = DuckDBOptions(path=Path(path), table=table)
        self._lock = threading.Lock()
        self._conn: duckdb.DuckDBPyConnection | None = None

    @property
    def path(self) -> Path:
        return self._opts.path

    def _connect(self) -> duckdb.DuckDBPyConnection:
        """Open the connection and ensure the schema; only kept once both succeed."""
        if self._conn is None:
            self._opts.path.parent.mkdir(parents=True, exist_ok=True)
            conn = duckdb.connect(str(self._opts.path))
            try:
                conn.execute(
                    f"""
                    create table if not exists {self._opts.table} (
                      seq bigint not null,
                      tag varchar not null,
                      captured_at timestamptz not null,
                      payload_json varchar not null
                    )
                    """
                )
            except duckdb.Error:
                conn.close()
                raise
            self._conn = conn
        return self._conn

    def write_batch(self, records: Sequence[CapturedRecord]) -> None:
        """Insert `records` in a single transaction."""
        if not records:
            return
        with self._lock:
            try:
                conn = self._connect()
                conn.begin()
                row = conn.execute(f"select coalesce(max(seq), -1) + 1 from {self._opts.table}").fetchone()
                start = int(row[0]) if row else 0
                conn.executemany(
                    f"insert into {self._opts.table} (seq, tag, captured_at, payload_json) values (?, ?, ?, ?)",
                    [[start + i, r.tag, r.captured_at, r.serialize()] for i, r in enumerate(records)],
                )
                conn.commit()
            except duckdb.Error as exc:
                if self._conn is not None:
                    with suppress(duckdb.Error):
                        self._conn.rollback()
                raise OSError(f"failed to write {len(records)} record(s) to {self._opts.path}: {exc}") from exc

    def read_records(self) -> list[CapturedRecord]:
        """Return stored records in write order; reading never creates the schema."""
        with self._lock:
            if self._conn is not None:
                conn, owned = self._conn, False
            elif self._opts.path.exists():
                conn, owned = duckdb.connect(str(self._opts.path)), True
            else:
                return []
            try:
                found = conn.execute(
                    "select count(*) from information_schema.tables where table_name = ?",
                    [self._opts.table],
                ).fetchone()
                if not found or not found[0]:
                    return []
                rows = conn.execute(f"select payload_json from {self._opts.table} order by seq").fetchall()
            finally:
                if owned:
                    conn.close()
        return [parse_record(payload) for (payload,) in rows]

    def close(self) -> None:
        """Close the underlying DuckDB connection, if one was opened."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


def open_sink(path: str | Path, sink_format: SinkFormat = "jsonl") -> RecordSink:
    """Build the sink for `sink_format` writing to `path`."""
    if sink_format == "jsonl":
        return JsonlRecordSink(path)
    if sink_format == "duckdb":
        return DuckDBRecordSink(path=path)
    raise ValueError(f"unknown sink format {sink_format!r} (expected one of: {', '.join(SINK_EXTENSIONS)})")


def read_records(path: str | Path) -> list[CapturedRecord]:
    """Read a destination back, choosing the sink from the file extension."""
    path = Path(path)
    for sink_format, ext in SINK_EXTENSIONS.items():
        if path.suffix == f".{ext}":
            sink = open_sink(path, sink_format)  # type: ignore[arg-type]
            try:
                return sink.read_records()
            finally:
                sink.close()
    raise ValueError(f"cannot infer sink format from {path.name!r}")
