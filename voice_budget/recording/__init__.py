"""Recording package."""

from voice_budget.recording.session import (
    BufferedRecordingSession,
    RecordingSession,
    RecordingTooLargeError,
)

__all__ = [
    "BufferedRecordingSession",
    "RecordingSession",
    "RecordingTooLargeError",
]
