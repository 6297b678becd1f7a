"""
Speech-to-text using Gemini.

The audio bytes are sent inline with a short instruction. The service
returns plain transcript text or raises RemoteUnavailableError.
"""

from typing import Any

import google.generativeai as genai

from voice_budget.log import get_logger
from voice_budget.models.extraction import AudioRecording
from voice_budget.services.gemini.client import GeminiService
from voice_budget.services.gemini.errors import RemoteUnavailableError


logger = get_logger(__name__)

TRANSCRIPTION_PROMPT = (
    "Transcribe this voice recording verbatim in the language it was spoken. "
    "Write numbers and amounts as digits, e.g. $2,000 or 49.99. "
    "Respond with the transcript text only, no commentary. "
    "If there is no intelligible speech, respond with an empty string."
)


class GeminiTranscriptionService(GeminiService):
    """Turns a finished AudioRecording into transcript text."""

    service_name = "transcription"

    def _build_model(self) -> Any:
        return genai.GenerativeModel(
            model_name=self._settings.transcription_model_name,
            generation_config={
                "temperature": 0.0,
                "max_output_tokens": self._settings.max_tokens,
            },
        )

    async def transcribe(self, recording: AudioRecording) -> str:
        """
        Transcribe a recording.

        Raises:
            RemoteUnavailableError: No credential, network failure,
                or no usable text in the response
        """
        if not recording.data:
            raise RemoteUnavailableError(self.service_name, "recording is empty")

        logger.info(
            "transcription_requested",
            mime_type=recording.mime_type,
            size_bytes=recording.size_bytes,
            duration_ms=recording.duration_ms,
        )

        transcript = await self._generate([
            TRANSCRIPTION_PROMPT,
            {"mime_type": recording.mime_type, "data": recording.data},
        ])

        logger.info("transcription_completed", transcript_length=len(transcript))
        return transcript
