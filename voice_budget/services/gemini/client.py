"""
Shared Gemini plumbing for the transcription and extraction services.

Both services talk to Gemini through ``generate_content_async``. This module
owns credential handling, model construction and retries so the services
only deal with prompts and responses.
"""

from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from voice_budget.config import GeminiSettings, get_settings
from voice_budget.log import get_logger
from voice_budget.services.gemini.errors import RemoteUnavailableError


logger = get_logger(__name__)

# Worth another attempt; anything else fails immediately
TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.TooManyRequests,
)


class GeminiService:
    """
    Base class for a single-purpose Gemini caller.

    Subclasses set ``service_name`` and build their model in
    ``_build_model``. A ``model`` can be injected (tests, alternative
    clients); it only needs ``generate_content_async``.
    """

    service_name = "gemini"

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model

    @property
    def is_configured(self) -> bool:
        """True when a credential exists or a model was injected."""
        return self._model is not None or self._settings.is_configured

    def _build_model(self) -> Any:
        raise NotImplementedError

    def _get_model(self) -> Any:
        if self._model is None:
            if not self._settings.is_configured:
                raise RemoteUnavailableError(self.service_name, "no API key configured")
            genai.configure(api_key=self._settings.api_key)
            self._model = self._build_model()
        return self._model

    async def _generate(self, contents: Any) -> str:
        """
        Call the model, retrying transient Google API errors.

        Returns:
            The response text

        Raises:
            RemoteUnavailableError: Any failure, or a response with no text
        """
        model = self._get_model()

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.max_retries),
                wait=wait_exponential(multiplier=1, min=1, max=8),
                retry=retry_if_exception_type(TRANSIENT_ERRORS),
                reraise=True,
            ):
                with attempt:
                    response = await model.generate_content_async(
                        contents,
                        request_options={"timeout": self._settings.request_timeout_seconds},
                    )
        except Exception as e:
            logger.warning(
                "remote_call_failed",
                service=self.service_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RemoteUnavailableError(self.service_name, str(e)) from e

        try:
            text = response.text
        except (ValueError, AttributeError) as e:
            # Blocked prompt or no candidates
            raise RemoteUnavailableError(self.service_name, f"no usable content: {e}") from e

        if not text or not text.strip():
            raise RemoteUnavailableError(self.service_name, "empty response")

        return text.strip()
