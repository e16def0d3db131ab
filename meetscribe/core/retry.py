"""
Retry controller: turns a flaky transcription attempt into a terminal outcome.
"""

import logging
import time
from typing import Callable, Optional

from meetscribe.core.constants import (
    ErrorCode, JobStatus, LANGUAGE_AUTO, MAX_RETRIES, RETRY_BASE_DELAY_SEC,
)
from meetscribe.core.error_codes import JobError, wrap_unexpected
from meetscribe.core.models import ErrorRecord, Job, JobOutcome, TranscriptFragment
from meetscribe.core.transcriber import Transcriber

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, base_delay: float = RETRY_BASE_DELAY_SEC) -> float:
    """Delay after failed attempt N (1-based): base, 2*base, 4*base, ..."""
    return base_delay * (2 ** (attempt - 1))


class RetryController:
    """
    Runs up to max_retries attempts for a Job, sleeping with exponential
    backoff between them. Never raises: every Job ends Succeeded or Failed.
    """

    def __init__(self, transcriber: Transcriber,
                 max_retries: int = MAX_RETRIES,
                 base_delay: float = RETRY_BASE_DELAY_SEC,
                 retry_missing_resource: bool = False,
                 sleep: Callable[[float], None] = time.sleep):
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.transcriber = transcriber
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.retry_missing_resource = retry_missing_resource
        self._sleep = sleep

        # Called with (job, attempt) before each attempt
        self.on_attempt: Optional[Callable[[Job, int], None]] = None

    def _should_retry(self, error: JobError) -> bool:
        if error.code == ErrorCode.RESOURCE_MISSING:
            return self.retry_missing_resource
        return error.retryable

    def run(self, job: Job, language: str = LANGUAGE_AUTO) -> JobOutcome:
        last_error: Optional[JobError] = None

        for attempt in range(1, self.max_retries + 1):
            job.attempts = attempt
            if self.on_attempt:
                self.on_attempt(job, attempt)

            try:
                result = self.transcriber.transcribe(job.chunk, language)
                if not (result.transcript or "").strip():
                    raise JobError(ErrorCode.EMPTY_TRANSCRIPT, "Empty transcript received")
            except Exception as e:
                last_error = wrap_unexpected(e)
                if last_error.code == ErrorCode.UNEXPECTED:
                    logger.error("Unexpected error on chunk %d attempt %d: %s",
                                 job.sequence, attempt, e, exc_info=True)
                else:
                    logger.warning("Chunk %d attempt %d/%d failed: %s",
                                   job.sequence, attempt, self.max_retries, last_error)

                if not self._should_retry(last_error):
                    break
                if attempt < self.max_retries:
                    delay = backoff_delay(attempt, self.base_delay)
                    logger.info("Retrying chunk %d in %.1fs", job.sequence, delay)
                    self._sleep(delay)
                continue

            job.status = JobStatus.SUCCEEDED
            fragment = TranscriptFragment(
                sequence=job.sequence,
                text=result.transcript,
                language=result.language,
            )
            return JobOutcome(sequence=job.sequence, status=job.status,
                              attempts=attempt, fragment=fragment)

        job.status = JobStatus.FAILED
        record = ErrorRecord(
            sequence=job.sequence,
            error=last_error.message,
            code=last_error.code,
            attempts=job.attempts,
            timed_out=last_error.is_timeout,
        )
        logger.error("Failed to process chunk %d after %d attempt(s): %s",
                     job.sequence, job.attempts, last_error)
        return JobOutcome(sequence=job.sequence, status=job.status,
                          attempts=job.attempts, error=record)
