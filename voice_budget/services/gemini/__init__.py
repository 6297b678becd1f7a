"""Gemini services package: transcription and structured extraction."""

from voice_budget.services.gemini.errors import (
    MalformedResponseError,
    RemoteServiceError,
    RemoteUnavailableError,
)
from voice_budget.services.gemini.client import GeminiService
from voice_budget.services.gemini.extraction import (
    GeminiExtractionService,
    build_extraction_prompt,
)
from voice_budget.services.gemini.transcription import GeminiTranscriptionService

__all__ = [
    "GeminiExtractionService",
    "GeminiService",
    "GeminiTranscriptionService",
    "MalformedResponseError",
    "RemoteServiceError",
    "RemoteUnavailableError",
    "build_extraction_prompt",
]
