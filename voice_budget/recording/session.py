"""
Recording Session

The audio capture device is an external collaborator. This module defines
the interface the voice entry flow consumes, plus a buffered implementation
for UIs that hand over finished audio bytes (e.g. Streamlit's audio widget).
"""

from abc import ABC, abstractmethod
from typing import Optional

from voice_budget.log import get_logger
from voice_budget.models.extraction import AudioRecording


logger = get_logger(__name__)


class RecordingSession(ABC):
    """
    One capture device, one recording at a time.

    start() returns False when a recording is already running or the device
    is unavailable. stop() returns None when there is nothing to return.
    """

    @property
    @abstractmethod
    def is_recording(self) -> bool:
        pass

    @abstractmethod
    def start(self) -> bool:
        pass

    @abstractmethod
    def stop(self) -> Optional[AudioRecording]:
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Stop and discard the current recording, if any."""
        pass


class RecordingTooLargeError(ValueError):
    """Captured audio exceeds the configured upload limit."""
    pass


class BufferedRecordingSession(RecordingSession):
    """
    Collects audio bytes pushed in by the UI between start() and stop().
    """

    def __init__(
        self,
        mime_type: str = "audio/wav",
        max_size_bytes: Optional[int] = None,
    ):
        self._mime_type = mime_type
        self._max_size_bytes = max_size_bytes
        self._chunks: list[bytes] = []
        self._recording = False
        self._duration_ms = 0

    @property
    def is_recording(self) -> bool:
        return self._recording

    def start(self) -> bool:
        if self._recording:
            logger.info("recording_already_active")
            return False
        self._chunks = []
        self._duration_ms = 0
        self._recording = True
        logger.info("recording_started", mime_type=self._mime_type)
        return True

    def feed(self, chunk: bytes, duration_ms: int = 0) -> None:
        """Append captured audio. Ignored when not recording."""
        if not self._recording:
            return
        size = sum(len(c) for c in self._chunks) + len(chunk)
        if self._max_size_bytes is not None and size > self._max_size_bytes:
            self.cancel()
            raise RecordingTooLargeError(
                f"Recording exceeds {self._max_size_bytes} bytes"
            )
        self._chunks.append(chunk)
        self._duration_ms += max(duration_ms, 0)

    def stop(self) -> Optional[AudioRecording]:
        if not self._recording:
            logger.info("recording_stop_without_start")
            return None
        self._recording = False
        data = b"".join(self._chunks)
        self._chunks = []
        if not data:
            logger.info("recording_stopped_empty")
            return None
        logger.info("recording_stopped", size_bytes=len(data), duration_ms=self._duration_ms)
        return AudioRecording(
            data=data,
            mime_type=self._mime_type,
            duration_ms=self._duration_ms,
        )

    def cancel(self) -> None:
        if self._recording:
            logger.info("recording_cancelled")
        self._recording = False
        self._chunks = []
        self._duration_ms = 0
