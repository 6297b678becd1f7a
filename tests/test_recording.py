"""Tests for the buffered recording session."""

import pytest

from voice_budget.config import AppSettings
from voice_budget.recording import BufferedRecordingSession, RecordingTooLargeError


class TestBufferedRecordingSession:
    """Start, feed, stop and cancel."""

    def test_start_feed_stop(self):
        session = BufferedRecordingSession(mime_type="audio/m4a")
        assert session.start() is True
        session.feed(b"abc", duration_ms=400)
        session.feed(b"def", duration_ms=600)

        recording = session.stop()

        assert recording.data == b"abcdef"
        assert recording.mime_type == "audio/m4a"
        assert recording.duration_ms == 1000
        assert not session.is_recording

    def test_start_while_recording_is_rejected(self):
        session = BufferedRecordingSession()
        session.start()
        assert session.start() is False
        assert session.is_recording

    def test_stop_without_start(self):
        assert BufferedRecordingSession().stop() is None

    def test_stop_with_no_audio(self):
        session = BufferedRecordingSession()
        session.start()
        assert session.stop() is None

    def test_feed_ignored_when_not_recording(self):
        session = BufferedRecordingSession()
        session.feed(b"stray")
        session.start()
        session.feed(b"real")
        assert session.stop().data == b"real"

    def test_cancel_discards_audio(self):
        session = BufferedRecordingSession()
        session.start()
        session.feed(b"secret")
        session.cancel()
        assert not session.is_recording
        assert session.stop() is None

    def test_size_limit(self):
        session = BufferedRecordingSession(max_size_bytes=4)
        session.start()
        session.feed(b"abc")
        with pytest.raises(RecordingTooLargeError):
            session.feed(b"de")
        assert not session.is_recording

    def test_uploaded_clip_within_app_limit(self):
        """An uploaded clip is fed in one piece under the configured size cap."""
        limit = AppSettings(max_audio_size_mb=1).max_audio_size_bytes
        session = BufferedRecordingSession(mime_type="audio/wav", max_size_bytes=limit)
        session.start()
        session.feed(b"\x00" * limit)
        recording = session.stop()
        assert recording.size_bytes == limit
        assert recording.mime_type == "audio/wav"

    def test_uploaded_clip_over_app_limit(self):
        limit = AppSettings(max_audio_size_mb=1).max_audio_size_bytes
        session = BufferedRecordingSession(mime_type="audio/wav", max_size_bytes=limit)
        session.start()
        with pytest.raises(RecordingTooLargeError):
            session.feed(b"\x00" * (limit + 1))
        assert session.stop() is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
