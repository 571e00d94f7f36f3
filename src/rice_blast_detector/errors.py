"""
Error taxonomy for Rice Blast Detector.

PURPOSE: Named exceptions for the conditions an analysis can run into.
AI CONTEXT: Only InputRejected, Busy and AnalysisFailed ever reach a user.

PROPAGATION POLICY:
- InputRejected: raised before analysis starts, shown to the user verbatim
- Busy: a second analysis was requested while one is in flight
- RemoteUnavailable: raised by the backend client, always absorbed by the
  resolver which falls back to the mock generator
- AnalysisFailed: anything else, shown as a generic retry prompt

Storage failures are not exceptions: StorageManager logs them and reports
False, and statistics keep working in memory.
"""

from __future__ import annotations

__all__ = [
    "RiceBlastError",
    "InputRejected",
    "Busy",
    "RemoteUnavailable",
    "AnalysisFailed",
]


class RiceBlastError(Exception):
    """Base class for all Rice Blast Detector errors."""


class InputRejected(RiceBlastError):
    """
    Upload failed validation (wrong MIME type or oversized file).

    Attributes:
        reason: Human-readable explanation suitable for display.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class Busy(RiceBlastError):
    """An analysis (or progress run) is already in flight."""

    def __init__(self, message: str = "An analysis is already in progress") -> None:
        super().__init__(message)


class RemoteUnavailable(RiceBlastError):
    """
    The classification backend could not produce a usable result.

    Covers transport errors, non-success status codes and malformed
    response bodies alike.
    """


class AnalysisFailed(RiceBlastError):
    """Unexpected failure while producing a result."""

    USER_MESSAGE = "Failed to analyze image. Please try again."

    def __init__(self, message: str = USER_MESSAGE) -> None:
        super().__init__(message)
