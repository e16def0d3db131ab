"""
Security utilities for MeetingTranscriber.
- Scratch-directory path containment
- Safe subprocess execution (argument arrays only)
"""

import subprocess
import pathlib
import logging

logger = logging.getLogger(__name__)


# ── Path safety ───────────────────────────────────────────────────────

def is_within(root: pathlib.Path, candidate: pathlib.Path) -> bool:
    """True if realpath(candidate) lies inside realpath(root)."""
    try:
        real_root = root.resolve(strict=False)
        real_candidate = candidate.resolve(strict=False)
    except (OSError, RuntimeError):
        return False
    return real_candidate == real_root or real_root in real_candidate.parents


def safe_scratch_path(scratch_dir: pathlib.Path, name: str) -> pathlib.Path:
    """
    Build an artifact path inside the scratch directory.
    Raises ValueError if the name would escape it.
    """
    if not name or '/' in name or '\\' in name or name in ('.', '..'):
        raise ValueError(f"Invalid artifact name: {name!r}")
    candidate = scratch_dir / name
    if not is_within(scratch_dir, candidate):
        raise ValueError("Path traversal detected")
    return candidate


# ── Subprocess safety ─────────────────────────────────────────────────

def run_subprocess(args: list[str], **kwargs) -> subprocess.CompletedProcess:
    """
    Execute a subprocess using argument arrays only.
    shell=True is explicitly forbidden.
    """
    if not isinstance(args, (list, tuple)):
        raise TypeError("Subprocess args must be a list/tuple, not a string")

    # Force shell=False: remove any caller-supplied value, then set it once
    kwargs.pop('shell', None)

    logger.debug("Running subprocess: %s", ' '.join(str(a) for a in args))
    return subprocess.run(args, shell=False, **kwargs)


def run_subprocess_capture(args: list[str], timeout: float = 300, **kwargs) -> subprocess.CompletedProcess:
    """
    Run subprocess and capture stdout/stderr.
    On timeout the child is killed and subprocess.TimeoutExpired propagates;
    any partial output is discarded by the caller.
    """
    return run_subprocess(
        args,
        capture_output=True,
        text=True,
        timeout=timeout,
        **kwargs,
    )
