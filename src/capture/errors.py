"""Errors raised by the capture package.

Every error surfaces to the immediate caller; nothing here is retried or
swallowed. Write failures are reported as plain `OSError`.
"""

from __future__ import annotations


class CaptureError(Exception):
    """Base class for capture errors."""


class InvalidNameError(CaptureError, ValueError):
    """The destination name is empty or not usable as a file name."""


class InvalidFieldError(CaptureError, ValueError):
    """A record field is missing, of the wrong type, or out of range."""


class LoggerClosedError(CaptureError, RuntimeError):
    """An operation was attempted on a finalized logger."""
