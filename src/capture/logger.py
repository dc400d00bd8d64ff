"""Buffered record logger bound to a named destination."""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from .errors import InvalidFieldError, InvalidNameError, LoggerClosedError
from .models import CapturedRecord, is_record, utc_now
from .sinks import SINK_EXTENSIONS, RecordSink, SinkFormat, open_sink

log = logging.getLogger(__name__)

_ILLEGAL_NAME_CHARS = frozenset('<>:"/\\|?*')


def validate_destination_name(name: Any) -> str:
    """Return `name` if it can be used as a file stem, else raise InvalidNameError."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidNameError("destination name must be a non-empty string")
    if name in {".", ".."}:
        raise InvalidNameError(f"destination name {name!r} is reserved")
    bad = sorted({c for c in name if c in _ILLEGAL_NAME_CHARS or ord(c) < 32})
    if bad:
        raise InvalidNameError(f"destination name {name!r} contains illegal characters: {bad!r}")
    if name != name.strip() or name.endswith("."):
        raise InvalidNameError(f"destination name {name!r} has leading/trailing whitespace or a trailing dot")
    return name


class RecordLogger:
    """Buffers submitted records and appends them to a destination on flush.

    Lifecycle: Open (accepting submissions and flushes) -> Closed (after
    `close()`). Records are written in submission order, at most once; a failed
    flush keeps the buffer intact for a retry.
    """

    def __init__(
        self,
        name: str,
        *,
        directory: str | Path | None = None,
        sink_format: SinkFormat = "jsonl",
        sink: RecordSink | None = None,
    ) -> None:
        """Create a logger writing to `<directory>/<name>.<ext>`.

        Args:
            name: Destination name; also the file stem.
            directory: Where the destination lives (defaults to the working directory).
            sink_format: Output format when `sink` is not given.
            sink: Explicit storage backend, mainly for tests.

        No file is created until the first non-empty flush.
        """
        self._name = validate_destination_name(name)
        if sink_format not in SINK_EXTENSIONS:
            raise ValueError(f"unknown sink format {sink_format!r} (expected one of: {', '.join(SINK_EXTENSIONS)})")
        base = Path(directory) if directory is not None else Path.cwd()
        self._destination = base / f"{self._name}.{SINK_EXTENSIONS[sink_format]}"
        self._sink = sink if sink is not None else open_sink(self._destination, sink_format)

        self._lock = threading.Lock()
        self._pending: list[CapturedRecord] = []
        self._closed = False

        self._flushed_total = 0
        self._flush_failures = 0
        self._first_failure_at: datetime | None = None
        self._last_failure_at: datetime | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def destination(self) -> Path:
        return self._destination

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> tuple[CapturedRecord, ...]:
        """Records submitted but not yet flushed, oldest first."""
        with self._lock:
            return tuple(self._pending)

    def submit(self, record: CapturedRecord) -> None:
        """Buffer a record for the next flush (no I/O)."""
        if not is_record(record):
            raise InvalidFieldError(f"expected a captured record, got {type(record).__name__}")
        with self._lock:
            self._ensure_open()
            self._pending.append(record)

    def flush_all(self) -> int:
        """Append every buffered record to the destination and clear the buffer.

        Returns the number of records written. Raises OSError when the
        destination cannot be written; the buffer is then left unchanged.
        """
        with self._lock:
            self._ensure_open()
            return self._flush_locked()

    def close(self) -> None:
        """Flush what is left, close the sink and reject further use.

        Safe to call multiple times. If the final flush fails the logger stays
        open so the caller can retry.
        """
        with self._lock:
            if self._closed:
                return
            self._flush_locked()
            self._sink.close()
            self._closed = True
        log.info("closed record logger %s (%d record(s) written)", self._destination, self._flushed_total)

    async def aflush_all(self) -> int:
        """`flush_all()` without blocking the event loop."""
        return await asyncio.to_thread(self.flush_all)

    async def aclose(self) -> None:
        """`close()` without blocking the event loop."""
        await asyncio.to_thread(self.close)

    def status(self) -> dict[str, Any]:
        """Return a minimal degraded-status snapshot.

        Every failed flush is counted, whatever the sink raised.
        """
        with self._lock:
            return {
                "pending": len(self._pending),
                "flushed_total": self._flushed_total,
                "flush_failures": self._flush_failures,
                "first_failure_at": self._first_failure_at,
                "last_failure_at": self._last_failure_at,
            }

    def _ensure_open(self) -> None:
        if self._closed:
            raise LoggerClosedError(f"record logger for {self._destination} is closed")

    def _flush_locked(self) -> int:
        if not self._pending:
            return 0
        batch = list(self._pending)
        try:
            self._sink.write_batch(batch)
        except Exception as exc:
            now = utc_now()
            self._flush_failures += 1
            self._first_failure_at = self._first_failure_at or now
            self._last_failure_at = now
            log.warning("flush of %d record(s) to %s failed: %s", len(batch), self._destination, exc)
            raise
        self._pending.clear()
        self._flushed_total += len(batch)
        log.debug("flushed %d record(s) to %s", len(batch), self._destination)
        return len(batch)

    def __enter__(self) -> RecordLogger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"RecordLogger(name={self._name!r}, destination={str(self._destination)!r}, {state})"
