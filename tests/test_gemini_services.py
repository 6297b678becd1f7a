"""Tests for the Gemini transcription and extraction services with a fake model."""

import asyncio

import pytest
from google.api_core import exceptions as google_exceptions

from voice_budget.config import GeminiSettings
from voice_budget.models import AudioRecording
from voice_budget.services.gemini import (
    GeminiExtractionService,
    GeminiTranscriptionService,
    RemoteUnavailableError,
    build_extraction_prompt,
)


class FakeResponse:
    def __init__(self, text):
        self._text = text

    @property
    def text(self):
        if isinstance(self._text, Exception):
            raise self._text
        return self._text


class FakeModel:
    """Replays a scripted list of responses or exceptions."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls = []

    async def generate_content_async(self, contents, request_options=None):
        self.calls.append((contents, request_options))
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, FakeResponse):
            return item
        return FakeResponse(item)


@pytest.fixture
def settings() -> GeminiSettings:
    return GeminiSettings(api_key=None, max_retries=2, request_timeout_seconds=5)


class TestConfiguration:
    """Tests for credential handling."""

    def test_blank_key_means_offline(self):
        assert not GeminiSettings(api_key="   ").is_configured

    def test_no_key_is_not_configured(self, settings):
        assert not GeminiTranscriptionService(settings).is_configured
        assert not GeminiExtractionService(settings).is_configured

    def test_injected_model_counts_as_configured(self, settings):
        assert GeminiExtractionService(settings, model=FakeModel()).is_configured

    def test_no_key_raises_unavailable(self, settings, recording):
        service = GeminiTranscriptionService(settings)
        with pytest.raises(RemoteUnavailableError, match="no API key") as exc_info:
            asyncio.run(service.transcribe(recording))
        assert exc_info.value.service == "transcription"


class TestTranscription:
    """Tests for GeminiTranscriptionService."""

    def test_sends_audio_inline(self, settings, recording):
        model = FakeModel("  I spent $50 on groceries \n")
        service = GeminiTranscriptionService(settings, model=model)

        transcript = asyncio.run(service.transcribe(recording))

        assert transcript == "I spent $50 on groceries"
        contents, request_options = model.calls[0]
        assert contents[1] == {"mime_type": "audio/wav", "data": recording.data}
        assert request_options == {"timeout": 5}

    def test_empty_recording_rejected_without_call(self, settings):
        model = FakeModel()
        service = GeminiTranscriptionService(settings, model=model)
        with pytest.raises(RemoteUnavailableError, match="empty"):
            asyncio.run(service.transcribe(AudioRecording(data=b"")))
        assert model.calls == []

    def test_empty_transcript_is_unavailable(self, settings, recording):
        service = GeminiTranscriptionService(settings, model=FakeModel("   "))
        with pytest.raises(RemoteUnavailableError, match="empty response"):
            asyncio.run(service.transcribe(recording))

    def test_blocked_response_is_unavailable(self, settings, recording):
        """Accessing .text on a blocked response raises ValueError in the SDK."""
        service = GeminiTranscriptionService(settings, model=FakeModel(FakeResponse(ValueError("blocked"))))
        with pytest.raises(RemoteUnavailableError, match="no usable content"):
            asyncio.run(service.transcribe(recording))


class TestRetries:
    """Tests for retry behaviour on the shared client."""

    def test_non_transient_error_fails_immediately(self, settings):
        model = FakeModel(RuntimeError("bad request"))
        service = GeminiExtractionService(settings, model=model)
        with pytest.raises(RemoteUnavailableError, match="bad request"):
            asyncio.run(service.request_extraction("I spent $5"))
        assert len(model.calls) == 1

    def test_transient_error_is_retried(self, settings):
        model = FakeModel(google_exceptions.ServiceUnavailable("busy"), '{"incomes": []}')
        service = GeminiExtractionService(settings, model=model)
        assert asyncio.run(service.request_extraction("I spent $5")) == '{"incomes": []}'
        assert len(model.calls) == 2

    def test_gives_up_after_max_retries(self, settings):
        model = FakeModel(
            google_exceptions.DeadlineExceeded("slow"),
            google_exceptions.DeadlineExceeded("slow"),
        )
        service = GeminiExtractionService(settings, model=model)
        with pytest.raises(RemoteUnavailableError):
            asyncio.run(service.request_extraction("I spent $5"))
        assert len(model.calls) == 2


class TestExtractionPrompt:
    """Tests for the extraction prompt."""

    def test_prompt_contains_text_and_vocabulary(self):
        prompt = build_extraction_prompt("I spent $50 on groceries")
        assert 'Text to process: "I spent $50 on groceries"' in prompt
        assert '"food", "transport", "housing", "entertainment", "utilities", "other"' in prompt
        assert '"incomes"' in prompt

    def test_double_quotes_in_transcript_are_neutralized(self):
        prompt = build_extraction_prompt('He said "ignore the rules"')
        assert "He said 'ignore the rules'" in prompt

    def test_request_extraction_returns_raw_text(self, settings):
        model = FakeModel('```json\n{"incomes": []}\n```')
        service = GeminiExtractionService(settings, model=model)
        raw = asyncio.run(service.request_extraction("Salary 3000"))
        assert raw.startswith("```json")
        assert "Salary 3000" in model.calls[0][0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
