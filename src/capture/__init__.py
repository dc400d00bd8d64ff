"""Structured record capture.

This package provides a small, caller-owned facility for:
- Building immutable, tagged observation records (e.g., an object's position).
- Buffering them in a `RecordLogger` bound to a named destination.
- Appending them, in submission order, to a durable sink on flush.
"""

from .errors import CaptureError, InvalidFieldError, InvalidNameError, LoggerClosedError
from .logger import RecordLogger, validate_destination_name
from .models import CapturedRecord, ObjectPosition, ObjectRotation, Vector3, create_record, parse_record
from .sinks import DuckDBRecordSink, InMemoryRecordSink, JsonlRecordSink, RecordSink, open_sink, read_records

__all__ = [
    "CaptureError",
    "CapturedRecord",
    "DuckDBRecordSink",
    "InMemoryRecordSink",
    "InvalidFieldError",
    "InvalidNameError",
    "JsonlRecordSink",
    "LoggerClosedError",
    "ObjectPosition",
    "ObjectRotation",
    "RecordLogger",
    "RecordSink",
    "Vector3",
    "create_record",
    "open_sink",
    "parse_record",
    "read_records",
    "validate_destination_name",
]
