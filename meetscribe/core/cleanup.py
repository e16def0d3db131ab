"""
Cleanup: scoped temporary artifacts for chunk processing.
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from meetscribe.core.security_utils import safe_scratch_path

logger = logging.getLogger(__name__)

ARTIFACT_PREFIX = "chunk-"


@dataclass(frozen=True)
class ChunkArtifacts:
    raw: Path           # audio exactly as captured
    normalized: Path    # 16kHz mono WAV for whisper.cpp


def remove_artifacts(*paths: Path | None) -> list[Path]:
    """
    Delete the given files if present. Returns paths that could not be removed.
    """
    leftover = []
    for path in paths:
        if path is None:
            continue
        try:
            path.unlink(missing_ok=True)
            logger.debug("Deleted: %s", path)
        except OSError as e:
            logger.warning("Failed to delete %s: %s", path, e)
            leftover.append(path)
    return leftover


@contextmanager
def chunk_artifacts(scratch_dir: Path, sequence: int,
                    suffix: str = ".webm") -> Iterator[ChunkArtifacts]:
    """
    Reserve unique raw/normalized artifact paths for one chunk attempt.
    Both files are removed when the block exits, however it exits.
    """
    scratch_dir.mkdir(parents=True, exist_ok=True)
    token = uuid.uuid4().hex[:12]
    stem = f"{ARTIFACT_PREFIX}{sequence:05d}-{token}"
    artifacts = ChunkArtifacts(
        raw=safe_scratch_path(scratch_dir, f"{stem}{suffix}"),
        normalized=safe_scratch_path(scratch_dir, f"{stem}.wav"),
    )
    try:
        yield artifacts
    finally:
        remove_artifacts(artifacts.raw, artifacts.normalized)


def purge_scratch_dir(scratch_dir: Path) -> int:
    """
    Remove chunk artifacts left behind by a previous (crashed) process.
    Only files carrying the chunk artifact prefix are touched.
    """
    if not scratch_dir.exists():
        return 0

    stale = [p for p in scratch_dir.iterdir()
             if p.is_file() and p.name.startswith(ARTIFACT_PREFIX)]
    leftover = remove_artifacts(*stale)
    removed = len(stale) - len(leftover)
    if removed:
        logger.info("Purged %d stale artifact(s) from %s", removed, scratch_dir)
    return removed
