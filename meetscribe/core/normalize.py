"""
Audio normalization using ffmpeg.
Target: mono, 16kHz, 16-bit PCM WAV (the input format whisper.cpp expects).
"""

import logging
import subprocess
from pathlib import Path

from meetscribe.core.security_utils import run_subprocess_capture
from meetscribe.core.error_codes import JobError
from meetscribe.core.constants import (
    ErrorCode, NORM_CHANNELS, NORM_SAMPLE_RATE, NORM_CODEC,
    DEFAULT_FFMPEG, NORMALIZE_TIMEOUT_SEC, STDERR_SNIPPET_LEN,
)

logger = logging.getLogger(__name__)


def build_normalize_args(input_path: Path, output_path: Path,
                         ffmpeg_path: str = DEFAULT_FFMPEG) -> list[str]:
    return [
        ffmpeg_path,
        "-y",                           # overwrite
        "-i", str(input_path),
        "-vn",
        "-acodec", NORM_CODEC,
        "-ar", str(NORM_SAMPLE_RATE),   # 16kHz
        "-ac", str(NORM_CHANNELS),      # mono
        str(output_path),
    ]


def normalize_audio(input_path: Path, output_path: Path,
                    ffmpeg_path: str = DEFAULT_FFMPEG,
                    timeout: float = NORMALIZE_TIMEOUT_SEC) -> Path:
    """
    Convert a captured chunk into 16kHz mono WAV at output_path.
    Any partial output is removed on failure.
    """
    args = build_normalize_args(input_path, output_path, ffmpeg_path)

    try:
        result = run_subprocess_capture(args, timeout=timeout)
    except subprocess.TimeoutExpired:
        output_path.unlink(missing_ok=True)
        raise JobError(ErrorCode.CONVERSION_TIMEOUT,
                       f"FFmpeg conversion timeout after {timeout:g}s")
    except (FileNotFoundError, PermissionError) as e:
        raise JobError(ErrorCode.RESOURCE_MISSING,
                       f"Required tool ffmpeg not found: {ffmpeg_path}",
                       details=str(e))
    except OSError as e:
        output_path.unlink(missing_ok=True)
        raise JobError(ErrorCode.CONVERSION_FAILED,
                       f"ffmpeg conversion failed: {e}")

    if result.returncode != 0:
        output_path.unlink(missing_ok=True)
        stderr = (result.stderr or "").strip()
        raise JobError(ErrorCode.CONVERSION_FAILED,
                       f"ffmpeg failed (rc={result.returncode})",
                       details=stderr[-STDERR_SNIPPET_LEN:] or None)

    if not output_path.exists():
        raise JobError(ErrorCode.CONVERSION_FAILED, "Normalized file not created")

    logger.debug("Normalized audio: %s", output_path)
    return output_path


def ffprobe_for(ffmpeg_path: str) -> str:
    """ffprobe binary that ships alongside the given ffmpeg."""
    path = Path(ffmpeg_path)
    if path.parent == Path('.'):
        return "ffprobe"
    return str(path.with_name(path.name.replace("ffmpeg", "ffprobe")))


def get_audio_duration(audio_path: Path, ffmpeg_path: str = DEFAULT_FFMPEG) -> float:
    """Get audio duration in seconds using ffprobe; 0.0 if unknown."""
    args = [
        ffprobe_for(ffmpeg_path),
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(audio_path),
    ]

    try:
        result = run_subprocess_capture(args, timeout=30)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("ffprobe failed for %s: %s", audio_path, e)
        return 0.0

    if result.returncode != 0:
        return 0.0
    try:
        return float(result.stdout.strip())
    except ValueError:
        return 0.0
