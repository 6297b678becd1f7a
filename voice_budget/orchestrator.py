"""
Main Orchestrator for Voice Budget

Ties the components together and defines the voice entry flow:

    recording -> transcribe -> extract -> validate -> commit

as an explicit state machine:

    IDLE -> TRANSCRIBING -> EXTRACTING -> VALIDATING -> COMMITTED -> IDLE
                 |              |             |
                 +--------------+-------------+--> FALLEN_BACK -> IDLE

Every remote failure is caught where the call is made and turned into a
transition to FALLEN_BACK. Nothing in this flow raises to the caller; the
worst outcome is a message and zero records.

The heuristic only ever runs on real text. If no transcript can be
produced there is nothing to run it on, and the result is empty.
"""

import threading
from typing import Optional

from voice_budget.config import Settings, StorageBackend, get_settings
from voice_budget.extraction import HeuristicExtractor, parse_extraction_payload
from voice_budget.ledger import LedgerStore
from voice_budget.log import configure_logging, get_logger
from voice_budget.models.extraction import (
    AudioRecording,
    EntryStatus,
    ExtractionResult,
    ExtractionState,
    VoiceEntryOutcome,
)
from voice_budget.services.gemini import (
    GeminiExtractionService,
    GeminiTranscriptionService,
    MalformedResponseError,
    RemoteServiceError,
)
from voice_budget.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsSnapshotStore,
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    SnapshotStoreInterface,
)


logger = get_logger(__name__)

OFFLINE_MESSAGE = (
    "Voice processing is unavailable offline: the recording could not be "
    "transcribed, so nothing was added. You can type the entry instead."
)
BUSY_MESSAGE = "Another voice entry is still being processed. Please wait."
CANCELLED_MESSAGE = "Voice entry cancelled. Nothing was added."


class _Session:
    """One invocation of the flow."""

    def __init__(self):
        self.cancelled = False
        self.transitions: list[ExtractionState] = [ExtractionState.IDLE]


class VoiceEntryFlow:
    """
    Orchestrates one voice (or typed) entry at a time.

    Flow:
    1. Transcribe the recording (remote)
    2. Extract structured records from the transcript (remote)
    3. Parse and validate the payload
    4. Commit the whole batch to the ledger with provenance voice

    Any failure in 1 leaves no text: empty result, offline message.
    Any failure in 2 or 3 runs the heuristic extractor on the transcript.

    Only one invocation may be in flight. cancel() is cooperative: the
    network call keeps running but its result is discarded.
    """

    def __init__(
        self,
        ledger: LedgerStore,
        transcriber: Optional[GeminiTranscriptionService] = None,
        extractor: Optional[GeminiExtractionService] = None,
        heuristic: Optional[HeuristicExtractor] = None,
    ):
        self._ledger = ledger
        self._transcriber = transcriber or GeminiTranscriptionService()
        self._extractor = extractor or GeminiExtractionService()
        self._heuristic = heuristic or HeuristicExtractor()
        self._state = ExtractionState.IDLE
        self._active: Optional[_Session] = None
        self.last_transitions: list[ExtractionState] = []
        # Streamlit shares one flow across session threads
        self._session_lock = threading.Lock()

    @property
    def state(self) -> ExtractionState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._active is not None

    @property
    def is_online(self) -> bool:
        return self._transcriber.is_configured and self._extractor.is_configured

    # -------------------------------------------------------------------------
    # Session bookkeeping
    # -------------------------------------------------------------------------

    def _begin(self) -> Optional[_Session]:
        with self._session_lock:
            if self._active is not None:
                logger.info("voice_entry_rejected_busy", state=self._state.value)
                return None
            session = _Session()
            self._active = session
            return session

    def _enter(self, session: _Session, state: ExtractionState) -> None:
        session.transitions.append(state)
        with self._session_lock:
            if self._active is session:
                self._state = state
        logger.debug("voice_entry_state", state=state.value)

    def _end(self, session: _Session) -> None:
        session.transitions.append(ExtractionState.IDLE)
        with self._session_lock:
            if self._active is session or self._active is None:
                self.last_transitions = session.transitions
            if self._active is session:
                self._active = None
                self._state = ExtractionState.IDLE

    def cancel(self) -> bool:
        """
        Cancel the in-flight invocation.

        The flow returns to IDLE immediately; when the pending remote call
        resolves its result is ignored and nothing is committed.

        Returns:
            True if something was cancelled
        """
        with self._session_lock:
            session = self._active
            if session is None:
                return False
            session.cancelled = True
            self._active = None
            self._state = ExtractionState.IDLE
        logger.info("voice_entry_cancelled")
        return True

    # -------------------------------------------------------------------------
    # Outcomes
    # -------------------------------------------------------------------------

    def _cancelled(self, transcript: Optional[str]) -> VoiceEntryOutcome:
        logger.info("voice_entry_late_result_discarded")
        return VoiceEntryOutcome(
            status=EntryStatus.CANCELLED,
            message=CANCELLED_MESSAGE,
            transcript=transcript,
        )

    def _commit(
        self,
        session: _Session,
        terminal: ExtractionState,
        transcript: Optional[str],
        result: ExtractionResult,
    ) -> VoiceEntryOutcome:
        if session.cancelled:
            return self._cancelled(transcript)

        self._enter(session, terminal)
        incomes, expenses = self._ledger.commit_extraction(result)

        status = (
            EntryStatus.COMMITTED
            if terminal == ExtractionState.COMMITTED
            else EntryStatus.FALLEN_BACK
        )
        logger.info(
            "voice_entry_finished",
            status=status.value,
            incomes=len(incomes),
            expenses=len(expenses),
        )
        return VoiceEntryOutcome(
            status=status,
            message=result.message or "",
            transcript=transcript,
            result=result,
            incomes_added=incomes,
            expenses_added=expenses,
        )

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    async def _transcribe(
        self,
        session: _Session,
        recording: AudioRecording,
    ) -> Optional[str]:
        """Returns the transcript, or None when no text could be obtained."""
        self._enter(session, ExtractionState.TRANSCRIBING)

        if not self._transcriber.is_configured:
            logger.info("transcription_skipped_offline")
            return None

        try:
            transcript = await self._transcriber.transcribe(recording)
        except RemoteServiceError as e:
            logger.warning("transcription_fallback", error=str(e))
            return None
        except Exception as e:
            logger.error("transcription_unexpected_error", error=str(e), error_type=type(e).__name__)
            return None

        transcript = (transcript or "").strip()
        return transcript or None

    async def _extract_and_commit(
        self,
        session: _Session,
        transcript: str,
    ) -> VoiceEntryOutcome:
        self._enter(session, ExtractionState.EXTRACTING)

        raw: Optional[str] = None
        if not transcript.strip():
            logger.info("extraction_skipped_empty_text")
        elif not self._extractor.is_configured:
            logger.info("extraction_skipped_offline")
        else:
            try:
                raw = await self._extractor.request_extraction(transcript)
            except RemoteServiceError as e:
                logger.warning("extraction_fallback", reason="remote_unavailable", error=str(e))
            except Exception as e:
                logger.error("extraction_unexpected_error", error=str(e), error_type=type(e).__name__)

        if session.cancelled:
            return self._cancelled(transcript)

        if raw is not None:
            self._enter(session, ExtractionState.VALIDATING)
            try:
                result = parse_extraction_payload(raw)
            except MalformedResponseError as e:
                logger.warning(
                    "extraction_fallback",
                    reason="malformed_response",
                    error=str(e),
                    issues=len(e.errors),
                )
            except Exception as e:
                logger.error("validation_unexpected_error", error=str(e), error_type=type(e).__name__)
            else:
                return self._commit(session, ExtractionState.COMMITTED, transcript, result)

        result = self._heuristic.extract(transcript)
        return self._commit(session, ExtractionState.FALLEN_BACK, transcript, result)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    async def process_recording(self, recording: AudioRecording) -> VoiceEntryOutcome:
        """
        Run the full pipeline on a finished recording.

        Never raises; check the outcome status and message.
        """
        session = self._begin()
        if session is None:
            return VoiceEntryOutcome(status=EntryStatus.BUSY, message=BUSY_MESSAGE)

        try:
            transcript = await self._transcribe(session, recording)
            if session.cancelled:
                return self._cancelled(transcript)
            if transcript is None:
                return self._commit(
                    session,
                    ExtractionState.FALLEN_BACK,
                    None,
                    ExtractionResult.empty(OFFLINE_MESSAGE),
                )
            return await self._extract_and_commit(session, transcript)
        finally:
            self._end(session)

    async def process_text(self, text: str) -> VoiceEntryOutcome:
        """
        Run the pipeline from the extraction stage on typed text.

        Offline this runs the heuristic extractor on ``text`` directly.
        """
        session = self._begin()
        if session is None:
            return VoiceEntryOutcome(status=EntryStatus.BUSY, message=BUSY_MESSAGE)

        try:
            return await self._extract_and_commit(session, (text or "").strip())
        finally:
            self._end(session)


def create_snapshot_store(settings: Settings) -> SnapshotStoreInterface:
    """
    Build the configured snapshot store.

    Falls back to the local JSON file if Google Sheets is selected but
    cannot be configured.
    """
    storage = settings.storage

    if storage.backend == StorageBackend.MEMORY:
        return InMemorySnapshotStore()

    if storage.backend == StorageBackend.GOOGLE_SHEETS:
        try:
            return GoogleSheetsSnapshotStore(GoogleSheetsClient(settings.google_sheets))
        except Exception as e:
            logger.warning("google_sheets_unavailable", error=str(e), fallback=storage.snapshot_path)

    return JsonFileSnapshotStore(storage.snapshot_path)


def create_app_components(
    settings: Optional[Settings] = None,
    snapshot_store: Optional[SnapshotStoreInterface] = None,
) -> tuple[LedgerStore, VoiceEntryFlow]:
    """
    Factory function to create all application components.

    Called once at process start; the returned objects are passed to
    whoever needs them.

    Returns:
        (ledger_store, voice_entry_flow)
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.effective_log_level)

    ledger = LedgerStore(snapshot_store or create_snapshot_store(settings))
    ledger.load()

    gemini_settings = settings.gemini
    voice_flow = VoiceEntryFlow(
        ledger=ledger,
        transcriber=GeminiTranscriptionService(gemini_settings),
        extractor=GeminiExtractionService(gemini_settings),
        heuristic=HeuristicExtractor(context_window=app_settings.heuristic_context_window),
    )

    logger.info(
        "app_components_created",
        storage_backend=settings.storage.backend.value,
        online=voice_flow.is_online,
    )
    return ledger, voice_flow
