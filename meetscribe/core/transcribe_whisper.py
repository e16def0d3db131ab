"""
whisper.cpp speech-to-text integration.
Runs the `whisper-cli` binary against a normalized WAV and captures stdout.
"""

import logging
import subprocess
from pathlib import Path

from meetscribe.core.security_utils import run_subprocess_capture
from meetscribe.core.error_codes import JobError
from meetscribe.core.constants import (
    ErrorCode, INFERENCE_TIMEOUT_SEC, STDERR_SNIPPET_LEN,
)

logger = logging.getLogger(__name__)


def check_whisper_resources(whisper_bin: Path, whisper_model: Path) -> None:
    """Raise ERR_RESOURCE_MISSING if the binary or the model file is absent."""
    if not whisper_model or not Path(whisper_model).is_file():
        raise JobError(ErrorCode.RESOURCE_MISSING,
                       "Model file not found. Please download ggml-base.bin",
                       details=str(whisper_model))
    if not whisper_bin or not Path(whisper_bin).is_file():
        raise JobError(ErrorCode.RESOURCE_MISSING,
                       "Whisper binary not found. Please build whisper-cli",
                       details=str(whisper_bin))


def build_whisper_args(whisper_bin: Path, whisper_model: Path,
                       wav_path: Path, language: str) -> list[str]:
    return [
        str(whisper_bin),
        "-m", str(whisper_model),
        "-f", str(wav_path),
        "-l", language,
        "--no-prints",
    ]


def run_whisper(wav_path: Path, language: str, whisper_bin: Path,
                whisper_model: Path, timeout: float = INFERENCE_TIMEOUT_SEC) -> str:
    """
    Transcribe a 16kHz mono WAV. Returns the stripped transcript text.
    Empty or whitespace-only output is an error, never a transcript.
    """
    args = build_whisper_args(whisper_bin, whisper_model, wav_path, language)

    try:
        result = run_subprocess_capture(args, timeout=timeout)
    except subprocess.TimeoutExpired:
        raise JobError(ErrorCode.INFERENCE_TIMEOUT,
                       f"Whisper processing timeout after {timeout:g}s")
    except (FileNotFoundError, PermissionError) as e:
        raise JobError(ErrorCode.RESOURCE_MISSING,
                       "Required tool whisper-cli not found",
                       details=str(e))
    except OSError as e:
        raise JobError(ErrorCode.INFERENCE_FAILED, f"whisper-cli failed to start: {e}")

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        logger.error("Whisper stderr: %s", stderr[-STDERR_SNIPPET_LEN:])
        raise JobError(ErrorCode.INFERENCE_FAILED,
                       f"Transcription failed (rc={result.returncode})",
                       details=stderr[-STDERR_SNIPPET_LEN:] or None)

    transcript = (result.stdout or "").strip()
    if not transcript:
        raise JobError(ErrorCode.EMPTY_TRANSCRIPT, "Empty transcript received")

    logger.info("Transcription successful, length: %d characters", len(transcript))
    return transcript
