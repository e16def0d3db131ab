"""
Standardised error handling for MeetingTranscriber.
"""

from meetscribe.core.constants import (
    ErrorCode, INPUT_ERRORS, RETRYABLE_ERRORS, TIMEOUT_ERRORS,
)


class JobError(Exception):
    """Raised when a chunk attempt encounters a known error condition."""

    def __init__(self, code: str, message: str, retryable: bool | None = None,
                 details: str | None = None):
        self.code = code
        self.message = message
        self.details = details
        # auto-detect retryable from code if not explicitly set
        self.retryable = retryable if retryable is not None else (code in RETRYABLE_ERRORS)
        super().__init__(f"[{code}] {message}")

    @property
    def is_timeout(self) -> bool:
        return is_timeout(self.code)

    @property
    def is_input_error(self) -> bool:
        return self.code in INPUT_ERRORS

    def as_payload(self) -> dict:
        """Error body of the transcription request contract."""
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


def is_retryable(code: str) -> bool:
    return code in RETRYABLE_ERRORS


def is_timeout(code: str) -> bool:
    return code in TIMEOUT_ERRORS


def wrap_unexpected(exc: Exception) -> JobError:
    """Convert an arbitrary exception raised during an attempt into a JobError."""
    if isinstance(exc, JobError):
        return exc
    return JobError(ErrorCode.UNEXPECTED, str(exc) or type(exc).__name__,
                    details=repr(exc))
