"""
Chunk source helpers.
Numbers captured audio blobs, and cuts an existing recording into
fixed-interval chunks with ffmpeg.
"""

import logging
import subprocess
import threading
from pathlib import Path
from typing import Optional

from meetscribe.core.security_utils import run_subprocess_capture
from meetscribe.core.error_codes import JobError
from meetscribe.core.models import Chunk
from meetscribe.core.normalize import get_audio_duration
from meetscribe.core.constants import (
    ErrorCode, CHUNK_INTERVAL_SEC, CHUNK_MIME_TYPE, DEFAULT_FFMPEG,
    MIME_SUFFIXES, STDERR_SNIPPET_LEN,
)

logger = logging.getLogger(__name__)


class ChunkSequencer:
    """Assigns sequence numbers 1, 2, 3, ... to non-empty audio blobs."""

    def __init__(self, mime_type: str = CHUNK_MIME_TYPE):
        self.mime_type = mime_type
        self._lock = threading.Lock()
        self._last = 0

    @property
    def last_sequence(self) -> int:
        with self._lock:
            return self._last

    def next_chunk(self, data: bytes, mime_type: str | None = None) -> Optional[Chunk]:
        """Wrap a blob in a Chunk. Empty blobs are dropped without using a number."""
        if not data:
            logger.debug("Dropping empty audio blob")
            return None
        with self._lock:
            self._last += 1
            sequence = self._last
        return Chunk(sequence=sequence, payload=bytes(data),
                     mime_type=mime_type or self.mime_type)

    def reset(self):
        with self._lock:
            self._last = 0


def create_chunk_manifest(duration_sec: float,
                          chunk_duration_sec: int = CHUNK_INTERVAL_SEC,
                          overlap_sec: float = 0) -> list[dict]:
    """
    Create chunk manifest entries based on duration.
    Returns list of dicts with idx, start_sec, end_sec; the last may be partial.
    """
    if chunk_duration_sec <= 0:
        raise ValueError("chunk_duration_sec must be > 0")
    if overlap_sec >= chunk_duration_sec:
        raise ValueError("overlap_sec must be shorter than the chunk duration")

    chunks = []
    idx = 0
    start = 0.0

    while start < duration_sec:
        end = min(start + chunk_duration_sec, duration_sec)
        chunks.append({
            'idx': idx,
            'start_sec': start,
            'end_sec': end,
        })
        idx += 1
        start = end - overlap_sec if end < duration_sec else duration_sec

    return chunks


def mime_type_for(path: Path) -> str:
    suffix = path.suffix.lower()
    for mime, ext in MIME_SUFFIXES.items():
        if ext == suffix:
            return mime
    return CHUNK_MIME_TYPE


def split_recording(recording: Path, chunks_dir: Path,
                    chunk_duration_sec: int = CHUNK_INTERVAL_SEC,
                    ffmpeg_path: str = DEFAULT_FFMPEG) -> list[Path]:
    """
    Split a recording into consecutive chunk files using ffmpeg.
    Returns chunk file paths in order.
    """
    duration = get_audio_duration(recording, ffmpeg_path)
    if duration <= 0:
        raise JobError(ErrorCode.CHUNKING, f"Could not determine duration of {recording}")

    chunks_dir.mkdir(parents=True, exist_ok=True)
    manifest = create_chunk_manifest(duration, chunk_duration_sec)
    suffix = recording.suffix or ".webm"
    chunk_paths = []

    for entry in manifest:
        idx = entry['idx']
        chunk_file = chunks_dir / f"segment_{idx:04d}{suffix}"

        args = [
            ffmpeg_path,
            "-y",
            "-i", str(recording),
            "-ss", str(entry['start_sec']),
            "-t", str(entry['end_sec'] - entry['start_sec']),
            "-vn",
            "-codec:a", "copy",
            str(chunk_file),
        ]

        try:
            result = run_subprocess_capture(args, timeout=120)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise JobError(ErrorCode.CHUNKING, f"Chunk {idx} creation failed: {e}")

        if result.returncode != 0:
            stderr = (result.stderr or "unknown error")[-STDERR_SNIPPET_LEN:]
            raise JobError(ErrorCode.CHUNKING, f"ffmpeg chunk {idx} failed: {stderr}")

        if not chunk_file.exists():
            raise JobError(ErrorCode.CHUNKING, f"Chunk file {idx} not created")

        chunk_paths.append(chunk_file)

    logger.info("Created %d chunks of %ss from %s", len(chunk_paths),
                chunk_duration_sec, recording)
    return chunk_paths
