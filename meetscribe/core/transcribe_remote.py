"""
Remote transcription client.
POSTs a chunk to a `/transcribe` endpoint that runs the same
normalize → whisper pipeline on another machine.
"""

import json
import logging
from typing import Iterable

import requests

from meetscribe.core.error_codes import JobError
from meetscribe.core.models import Chunk, TranscriptionResult
from meetscribe.core.transcriber import validate_audio, resolve_language
from meetscribe.core.constants import (
    ErrorCode, LANGUAGE_AUTO, SUPPORTED_LANGUAGES, MAX_UPLOAD_BYTES,
    REQUEST_TIMEOUT_SEC,
)

logger = logging.getLogger(__name__)


def transcribe_endpoint(base_url: str) -> str:
    base = base_url.rstrip('/')
    if base.endswith('/transcribe'):
        return base
    return f"{base}/transcribe"


def _error_from_response(resp: requests.Response) -> JobError:
    try:
        body = resp.json()
    except (json.JSONDecodeError, ValueError):
        body = {}
    if not isinstance(body, dict):
        body = {}

    message = body.get('error') or f"HTTP {resp.status_code}"
    details = body.get('details')

    if 400 <= resp.status_code < 500:
        code = ErrorCode.NO_AUDIO if resp.status_code == 400 else ErrorCode.REMOTE_FAILED
        # 4xx responses are never retried
        return JobError(code, message, retryable=False, details=details)
    if resp.status_code == 504:
        return JobError(ErrorCode.REQUEST_TIMEOUT, message, details=details)
    return JobError(ErrorCode.REMOTE_FAILED, message, details=details)


class RemoteTranscriber:
    """Transcriber that delegates each attempt to an HTTP backend."""

    def __init__(self, base_url: str, timeout: float = REQUEST_TIMEOUT_SEC,
                 supported_languages: Iterable[str] = SUPPORTED_LANGUAGES,
                 max_upload_bytes: int = MAX_UPLOAD_BYTES,
                 session: requests.Session | None = None):
        self.url = transcribe_endpoint(base_url)
        self.timeout = timeout
        self.supported_languages = tuple(supported_languages)
        self.max_upload_bytes = max_upload_bytes
        self._http = session or requests

    @classmethod
    def from_config(cls, config) -> "RemoteTranscriber":
        return cls(
            base_url=config.get('transcribe_url'),
            timeout=config.get('request_timeout_sec'),
            supported_languages=config.get('supported_languages'),
            max_upload_bytes=config.get('max_upload_bytes'),
        )

    def transcribe(self, chunk: Chunk, language: str = LANGUAGE_AUTO) -> TranscriptionResult:
        validate_audio(chunk.payload, self.max_upload_bytes)
        language = resolve_language(language, self.supported_languages)

        filename = f"chunk-{chunk.sequence}{chunk.suffix}"
        files = {'audio': (filename, chunk.payload, chunk.mime_type)}

        try:
            resp = self._http.post(
                self.url,
                params={'language': language},
                files=files,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            raise JobError(ErrorCode.REQUEST_TIMEOUT, "Request timeout")
        except requests.exceptions.ConnectionError:
            raise JobError(ErrorCode.NETWORK_TRANSIENT,
                           f"Network error connecting to {self.url}")
        except requests.exceptions.RequestException as e:
            raise JobError(ErrorCode.REMOTE_FAILED, f"Transcription request failed: {e}")

        if resp.status_code != 200:
            raise _error_from_response(resp)

        try:
            body = resp.json()
        except (json.JSONDecodeError, ValueError):
            raise JobError(ErrorCode.REMOTE_FAILED,
                           "Failed to parse transcription response JSON")

        transcript = (body.get('transcript') or '').strip() if isinstance(body, dict) else ''
        if not transcript:
            raise JobError(ErrorCode.EMPTY_TRANSCRIPT, "Empty transcript received")

        return TranscriptionResult(transcript=transcript,
                                   language=body.get('language') or language)
