"""
Transcription session: wires the transcriber, retry controller, queue and
session state together for one capture session.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from meetscribe.core.cleanup import purge_scratch_dir
from meetscribe.core.chunking_timebased import ChunkSequencer
from meetscribe.core.config import AppConfig
from meetscribe.core.constants import ErrorCode, LANGUAGE_AUTO
from meetscribe.core.error_codes import JobError
from meetscribe.core.job_queue import ChunkQueue
from meetscribe.core.models import Chunk, Job, JobOutcome
from meetscribe.core.retry import RetryController
from meetscribe.core.session_state import SessionState
from meetscribe.core.transcriber import LocalTranscriber, Transcriber, resolve_language
from meetscribe.core.transcribe_remote import RemoteTranscriber

logger = logging.getLogger(__name__)


def build_transcriber(config: AppConfig) -> Transcriber:
    """Remote client if a transcription URL is configured, else local subprocesses."""
    if config.remote_mode:
        logger.info("Using remote transcription at %s", config.get('transcribe_url'))
        return RemoteTranscriber.from_config(config)
    return LocalTranscriber.from_config(config)


class TranscriptionSession:
    """
    One capture session. Chunks arrive through submit_audio() (or
    enqueue() for pre-numbered chunks); stopping capture only closes
    the intake, the backlog is always drained to completion.
    """

    def __init__(self, config: AppConfig | None = None,
                 transcriber: Transcriber | None = None,
                 state: SessionState | None = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config or AppConfig()
        self.transcriber = transcriber or build_transcriber(self.config)
        self.state = state or SessionState(
            error_history_limit=self.config.get('error_history_limit'),
            error_display_limit=self.config.get('error_display_limit'),
        )
        self.retry = RetryController(
            self.transcriber,
            max_retries=self.config.get('max_retries'),
            base_delay=self.config.get('retry_base_delay_sec'),
            retry_missing_resource=self.config.get('retry_missing_resource'),
            sleep=sleep,
        )
        self.queue = ChunkQueue(
            self._process_job,
            inter_chunk_delay=self.config.get('inter_chunk_delay_sec'),
            sleep=sleep,
        )
        self.queue.on_outcome = self._on_outcome
        self.queue.on_status_changed = self.state.set_status
        self.sequencer = ChunkSequencer()

        self._lock = threading.Lock()
        self._capturing = False
        self._language = self.config.language

        # Optional observer hook for each terminal outcome
        self.on_outcome: Optional[Callable[[JobOutcome], None]] = None

    # ── Capture lifecycle ─────────────────────────────────────────────

    @property
    def language(self) -> str:
        return self._language

    @property
    def capturing(self) -> bool:
        with self._lock:
            return self._capturing

    def start(self, language: str | None = None):
        """Begin a new session; the language is fixed until the next start()."""
        language = resolve_language(language or self.config.language,
                                    self.config.get('supported_languages'))
        if not self.queue.reset_if_idle():
            raise RuntimeError("Previous session is still draining")

        self.sequencer.reset()
        self.state.reset()
        purge_scratch_dir(Path(self.config.get('scratch_dir')))
        with self._lock:
            self._language = language
            self._capturing = True
        logger.info("Session started (language=%s)", language)

    def submit_audio(self, data: bytes, mime_type: str | None = None) -> Optional[Job]:
        """Number and enqueue one captured blob. Empty blobs are ignored."""
        with self._lock:
            if not self._capturing:
                raise JobError(ErrorCode.UNEXPECTED,
                               "Capture is not running", retryable=False)
        chunk = self.sequencer.next_chunk(data, mime_type)
        if chunk is None:
            return None
        return self.queue.enqueue(chunk)

    def enqueue(self, chunk: Chunk) -> Job:
        """Enqueue a chunk that was numbered by the caller."""
        return self.queue.enqueue(chunk)

    def stop_capture(self, final_audio: bytes | None = None,
                     mime_type: str | None = None) -> Optional[Job]:
        """
        Stop accepting audio, after taking the final partial chunk if given.
        The in-flight job and the backlog keep processing.
        """
        job = None
        if final_audio:
            job = self.submit_audio(final_audio, mime_type)
        with self._lock:
            self._capturing = False
        self.queue.close()
        logger.info("Capture stopped after chunk %d; draining %d queued chunk(s)",
                    self.sequencer.last_sequence, self.queue.status().queue_depth)
        return job

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        return self.queue.wait_until_idle(timeout)

    # ── Queue callbacks ───────────────────────────────────────────────

    def _process_job(self, job: Job) -> JobOutcome:
        return self.retry.run(job, self._language)

    def _on_outcome(self, outcome: JobOutcome):
        self.state.record_outcome(outcome)
        if outcome.succeeded:
            logger.info("Chunk %d transcribed after %d attempt(s)",
                        outcome.sequence, outcome.attempts)
        if self.on_outcome:
            self.on_outcome(outcome)
