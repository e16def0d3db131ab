"""
Data models (plain dataclasses) for MeetingTranscriber.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from meetscribe.core.constants import (
    JobStatus, TERMINAL_STATUSES, CHUNK_MIME_TYPE, MIME_SUFFIXES, DEFAULT_SUFFIX,
)


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class Chunk:
    sequence: int                    # starts at 1, never reused
    payload: bytes = field(repr=False)
    mime_type: str = CHUNK_MIME_TYPE
    created_at: datetime = field(default_factory=_now)

    @property
    def size(self) -> int:
        return len(self.payload)

    @property
    def suffix(self) -> str:
        base = self.mime_type.split(';', 1)[0].strip().lower()
        return MIME_SUFFIXES.get(base, DEFAULT_SUFFIX)


@dataclass
class Job:
    chunk: Chunk
    status: str = JobStatus.QUEUED
    attempts: int = 0

    @property
    def sequence(self) -> int:
        return self.chunk.sequence

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True)
class TranscriptFragment:
    sequence: int
    text: str
    language: str = "auto"
    completed_at: datetime = field(default_factory=_now)

    def __post_init__(self):
        if not self.text or not self.text.strip():
            raise ValueError(f"Transcript fragment for chunk {self.sequence} is empty")

    def as_dict(self) -> dict:
        return {
            'text': self.text,
            'chunkNumber': self.sequence,
            'language': self.language,
            'timestamp': self.completed_at.isoformat(),
        }


@dataclass(frozen=True)
class ErrorRecord:
    sequence: int
    error: str
    code: str
    attempts: int = 0
    timed_out: bool = False
    created_at: datetime = field(default_factory=_now)

    def as_dict(self) -> dict:
        return {
            'chunkNumber': self.sequence,
            'error': self.error,
            'code': self.code,
            'attempts': self.attempts,
            'timedOut': self.timed_out,
            'timestamp': self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class TranscriptionResult:
    transcript: str
    language: str

    def as_payload(self) -> dict:
        return {'transcript': self.transcript, 'language': self.language}


@dataclass(frozen=True)
class JobOutcome:
    """Terminal result of one Job; the Job itself is discarded afterwards."""
    sequence: int
    status: str
    attempts: int
    fragment: Optional[TranscriptFragment] = None
    error: Optional[ErrorRecord] = None

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCEEDED


@dataclass(frozen=True)
class QueueStatus:
    busy: bool = False
    processing_chunk: int = 0        # 0 when idle
    queue_depth: int = 0             # chunks waiting behind the in-flight one

    def as_dict(self) -> dict:
        return {
            'busy': self.busy,
            'processingChunk': self.processing_chunk,
            'queueDepth': self.queue_depth,
        }
