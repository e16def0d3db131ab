"""
Transcription invoker: one attempt of normalize → infer → cleanup for a chunk.
"""

import logging
from pathlib import Path
from typing import Iterable, Protocol

from meetscribe.core.cleanup import chunk_artifacts
from meetscribe.core.error_codes import JobError, wrap_unexpected
from meetscribe.core.models import Chunk, TranscriptionResult
from meetscribe.core.normalize import normalize_audio
from meetscribe.core.transcribe_whisper import check_whisper_resources, run_whisper
from meetscribe.core.constants import (
    ErrorCode, LANGUAGE_AUTO, SUPPORTED_LANGUAGES, MAX_UPLOAD_BYTES,
    DEFAULT_FFMPEG, DEFAULT_WHISPER_BIN, DEFAULT_WHISPER_MODEL, SCRATCH_DIR,
    NORMALIZE_TIMEOUT_SEC, INFERENCE_TIMEOUT_SEC, CHUNK_MIME_TYPE,
)

logger = logging.getLogger(__name__)


class Transcriber(Protocol):
    def transcribe(self, chunk: Chunk, language: str = LANGUAGE_AUTO) -> TranscriptionResult:
        """Run one attempt for the chunk or raise JobError."""


def validate_audio(payload: bytes | None, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    if not payload:
        raise JobError(ErrorCode.NO_AUDIO, "No audio file provided")
    if len(payload) > max_bytes:
        raise JobError(ErrorCode.AUDIO_TOO_LARGE,
                       f"Audio chunk is {len(payload)} bytes; limit is {max_bytes}")


def resolve_language(language: str | None,
                     supported: Iterable[str] = SUPPORTED_LANGUAGES) -> str:
    """Normalise a language selector to 'auto' or a supported code."""
    value = (language or LANGUAGE_AUTO).strip().lower()
    if value == LANGUAGE_AUTO or value in set(supported):
        return value
    raise JobError(ErrorCode.UNSUPPORTED_LANGUAGE,
                   f"Unsupported language: {language!r}")


class LocalTranscriber:
    """
    Runs ffmpeg and whisper-cli as subprocesses.
    Holds configuration only, so one instance can be reused for every chunk.
    """

    def __init__(self, whisper_bin: Path = DEFAULT_WHISPER_BIN,
                 whisper_model: Path = DEFAULT_WHISPER_MODEL,
                 ffmpeg_path: str = DEFAULT_FFMPEG,
                 scratch_dir: Path = SCRATCH_DIR,
                 normalize_timeout: float = NORMALIZE_TIMEOUT_SEC,
                 inference_timeout: float = INFERENCE_TIMEOUT_SEC,
                 supported_languages: Iterable[str] = SUPPORTED_LANGUAGES,
                 max_upload_bytes: int = MAX_UPLOAD_BYTES):
        self.whisper_bin = Path(whisper_bin)
        self.whisper_model = Path(whisper_model)
        self.ffmpeg_path = ffmpeg_path
        self.scratch_dir = Path(scratch_dir)
        self.normalize_timeout = normalize_timeout
        self.inference_timeout = inference_timeout
        self.supported_languages = tuple(supported_languages)
        self.max_upload_bytes = max_upload_bytes

    @classmethod
    def from_config(cls, config) -> "LocalTranscriber":
        return cls(
            whisper_bin=Path(config.get('whisper_bin')),
            whisper_model=Path(config.get('whisper_model')),
            ffmpeg_path=config.get('ffmpeg_path'),
            scratch_dir=Path(config.get('scratch_dir')),
            normalize_timeout=config.get('normalize_timeout_sec'),
            inference_timeout=config.get('inference_timeout_sec'),
            supported_languages=config.get('supported_languages'),
            max_upload_bytes=config.get('max_upload_bytes'),
        )

    def transcribe(self, chunk: Chunk, language: str = LANGUAGE_AUTO) -> TranscriptionResult:
        validate_audio(chunk.payload, self.max_upload_bytes)
        language = resolve_language(language, self.supported_languages)
        check_whisper_resources(self.whisper_bin, self.whisper_model)

        logger.info("Processing chunk %d (%d bytes, language=%s)",
                    chunk.sequence, chunk.size, language)

        with chunk_artifacts(self.scratch_dir, chunk.sequence, chunk.suffix) as artifacts:
            artifacts.raw.write_bytes(chunk.payload)
            normalize_audio(artifacts.raw, artifacts.normalized,
                            ffmpeg_path=self.ffmpeg_path,
                            timeout=self.normalize_timeout)
            text = run_whisper(artifacts.normalized, language,
                               self.whisper_bin, self.whisper_model,
                               timeout=self.inference_timeout)

        return TranscriptionResult(transcript=text, language=language)


def transcription_response(transcriber: Transcriber, audio: bytes | None,
                           language: str | None = None,
                           sequence: int = 0,
                           mime_type: str = CHUNK_MIME_TYPE) -> tuple[int, dict]:
    """
    Serve one transcription request: returns (status, payload).
    200 {transcript, language}; 400 for input errors; 500 otherwise.
    """
    try:
        validate_audio(audio, getattr(transcriber, 'max_upload_bytes', MAX_UPLOAD_BYTES))
        chunk = Chunk(sequence=sequence, payload=audio, mime_type=mime_type)
        result = transcriber.transcribe(chunk, language or LANGUAGE_AUTO)
    except Exception as e:
        err = wrap_unexpected(e)
        if err.code == ErrorCode.UNEXPECTED:
            logger.error("Transcription error: %s", e, exc_info=True)
        else:
            logger.warning("Transcription request failed: %s", err)
        status = 400 if err.is_input_error else 500
        return status, err.as_payload()

    return 200, result.as_payload()
