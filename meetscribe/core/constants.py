"""
Shared constants for MeetingTranscriber.
Single source of truth, imported by every other module.
"""

import pathlib

# ── Application identity ──────────────────────────────────────────────
APP_NAME = "MeetingTranscriber"
APP_DISPLAY_NAME = "Meeting Transcriber"
APP_VERSION = "1.0.0"

# ── Filesystem paths ─────────────────────────────────────────────────
HOME = pathlib.Path.home()

APP_SUPPORT_DIR = HOME / "Library" / "Application Support" / APP_NAME
APP_CACHE_DIR = HOME / "Library" / "Caches" / APP_NAME
LOG_DIR = HOME / "Library" / "Logs" / APP_NAME
SCRATCH_DIR = APP_CACHE_DIR / "tmp"
CONFIG_PATH = APP_SUPPORT_DIR / "config.json"

# whisper.cpp build layout
WHISPER_ROOT = APP_SUPPORT_DIR / "whisper.cpp"
DEFAULT_WHISPER_BIN = WHISPER_ROOT / "build" / "bin" / "whisper-cli"
DEFAULT_WHISPER_MODEL = WHISPER_ROOT / "models" / "ggml-base.bin"
DEFAULT_FFMPEG = "ffmpeg"

# ── Job status values ─────────────────────────────────────────────────
class JobStatus:
    QUEUED = "QUEUED"
    IN_FLIGHT = "IN_FLIGHT"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

TERMINAL_STATUSES = {JobStatus.SUCCEEDED, JobStatus.FAILED}

# ── Queue state ───────────────────────────────────────────────────────
class QueueState:
    IDLE = "idle"
    DRAINING = "draining"

# ── Error codes ───────────────────────────────────────────────────────
class ErrorCode:
    # Input errors (never retried)
    NO_AUDIO = "ERR_NO_AUDIO"
    AUDIO_TOO_LARGE = "ERR_AUDIO_TOO_LARGE"
    UNSUPPORTED_LANGUAGE = "ERR_UNSUPPORTED_LANGUAGE"

    # whisper-cli / model / ffmpeg not installed
    RESOURCE_MISSING = "ERR_RESOURCE_MISSING"

    # Retryable
    CONVERSION_FAILED = "ERR_CONVERSION_FAILED"
    CONVERSION_TIMEOUT = "ERR_CONVERSION_TIMEOUT"
    INFERENCE_FAILED = "ERR_INFERENCE_FAILED"
    INFERENCE_TIMEOUT = "ERR_INFERENCE_TIMEOUT"
    EMPTY_TRANSCRIPT = "ERR_EMPTY_TRANSCRIPT"
    REQUEST_TIMEOUT = "ERR_REQUEST_TIMEOUT"
    NETWORK_TRANSIENT = "ERR_NETWORK_TRANSIENT"
    REMOTE_FAILED = "ERR_REMOTE_FAILED"
    UNEXPECTED = "ERR_UNEXPECTED"

    # Chunk source
    CHUNKING = "ERR_CHUNKING"

INPUT_ERRORS = {
    ErrorCode.NO_AUDIO,
    ErrorCode.AUDIO_TOO_LARGE,
    ErrorCode.UNSUPPORTED_LANGUAGE,
}

RETRYABLE_ERRORS = {
    ErrorCode.CONVERSION_FAILED,
    ErrorCode.CONVERSION_TIMEOUT,
    ErrorCode.INFERENCE_FAILED,
    ErrorCode.INFERENCE_TIMEOUT,
    ErrorCode.EMPTY_TRANSCRIPT,
    ErrorCode.REQUEST_TIMEOUT,
    ErrorCode.NETWORK_TRANSIENT,
    ErrorCode.REMOTE_FAILED,
    ErrorCode.UNEXPECTED,
}

TIMEOUT_ERRORS = {
    ErrorCode.CONVERSION_TIMEOUT,
    ErrorCode.INFERENCE_TIMEOUT,
    ErrorCode.REQUEST_TIMEOUT,
}

# ── Languages ─────────────────────────────────────────────────────────
LANGUAGE_AUTO = "auto"
SUPPORTED_LANGUAGES = ("en", "id")
LANGUAGE_LABELS = {
    LANGUAGE_AUTO: "Auto-detect",
    "en": "English",
    "id": "Indonesian",
}

# ── Chunking / capture ────────────────────────────────────────────────
CHUNK_INTERVAL_SEC = 120        # 2 minutes
CHUNK_MIME_TYPE = "audio/webm"
MIME_SUFFIXES = {
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/mpeg": ".mp3",
    "audio/mp4": ".m4a",
    "audio/flac": ".flac",
}
DEFAULT_SUFFIX = ".bin"

# Normalization target expected by whisper.cpp
NORM_CHANNELS = 1
NORM_SAMPLE_RATE = 16000
NORM_CODEC = "pcm_s16le"

# ── Retry / timeouts ─────────────────────────────────────────────────
MAX_RETRIES = 3
RETRY_BASE_DELAY_SEC = 1.0      # 1s, 2s, 4s, ...
INTER_CHUNK_DELAY_SEC = 0.5
NORMALIZE_TIMEOUT_SEC = 300     # 5 minutes
INFERENCE_TIMEOUT_SEC = 540     # 9 minutes
REQUEST_TIMEOUT_SEC = 600       # 10 minutes (remote mode)
MAX_UPLOAD_BYTES = 200 * 1024 * 1024

# ── Session history ──────────────────────────────────────────────────
ERROR_DISPLAY_LIMIT = 5
ERROR_HISTORY_LIMIT = 100

# Truncation for subprocess stderr carried in error messages
STDERR_SNIPPET_LEN = 300
