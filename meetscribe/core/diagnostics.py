"""
Diagnostics: tool version detection and system checks.
"""

import logging
import shutil
import subprocess
from pathlib import Path

from meetscribe.core.security_utils import run_subprocess_capture
from meetscribe.core.constants import DEFAULT_FFMPEG

logger = logging.getLogger(__name__)


def get_ffmpeg_version(ffmpeg_path: str = DEFAULT_FFMPEG) -> str:
    """Return ffmpeg version string, or error message."""
    try:
        result = run_subprocess_capture([ffmpeg_path, "-version"], timeout=10)
        if result.returncode == 0:
            lines = result.stdout.strip().splitlines()
            return lines[0] if lines else "Unknown version"
        return f"Error (rc={result.returncode})"
    except FileNotFoundError:
        return "Not installed"
    except (OSError, subprocess.TimeoutExpired) as e:
        return f"Error: {e}"


def check_file(path: Path) -> dict:
    """Presence and size of a required file."""
    info = {"detected": False, "path": str(path), "size_bytes": None}
    if path.is_file():
        info["detected"] = True
        info["size_bytes"] = path.stat().st_size
    return info


def resolve_binary(path: str) -> Path | None:
    """Absolute path for a binary given by path or by name on PATH."""
    candidate = Path(path).expanduser()
    if candidate.is_file():
        return candidate
    found = shutil.which(path)
    return Path(found) if found else None


def get_diagnostics(config) -> dict:
    """Gather all diagnostic information."""
    whisper_bin = resolve_binary(config.get('whisper_bin'))
    return {
        "ffmpeg_version": get_ffmpeg_version(config.get('ffmpeg_path')),
        "whisper_bin": check_file(whisper_bin or Path(config.get('whisper_bin'))),
        "whisper_model": check_file(Path(config.get('whisper_model'))),
        "transcribe_url": config.get('transcribe_url') or None,
        "scratch_dir": config.get('scratch_dir'),
    }


def missing_prerequisites(config) -> list[str]:
    """Human-readable list of tools the local pipeline cannot find."""
    if config.get('transcribe_url'):
        return []

    diag = get_diagnostics(config)
    missing = []
    if diag["ffmpeg_version"] in ("Not installed",) or diag["ffmpeg_version"].startswith("Error"):
        missing.append("ffmpeg (install with: brew install ffmpeg)")
    if not diag["whisper_bin"]["detected"]:
        missing.append(f"whisper-cli (build whisper.cpp; expected at {diag['whisper_bin']['path']})")
    if not diag["whisper_model"]["detected"]:
        missing.append(f"ggml-base.bin model (expected at {diag['whisper_model']['path']})")
    return missing
