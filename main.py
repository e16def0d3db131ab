#!/usr/bin/env python3
"""
MeetingTranscriber v1.0.0: main entry point.
"""

import sys
import os
import logging
import traceback
from pathlib import Path
from datetime import datetime

# ── Ensure Homebrew paths are in PATH ────────────────────────────────
# Launched from a .app bundle or launchd job, macOS does NOT source the
# shell profile, so Homebrew's bin directories (ffmpeg) are missing.
HOMEBREW_PATHS = [
    "/opt/homebrew/bin",          # Apple Silicon default
    "/usr/local/bin",             # Intel Mac default
]

current_path = os.environ.get("PATH", "")
for p in HOMEBREW_PATHS:
    if os.path.isdir(p) and p not in current_path.split(os.pathsep):
        current_path = p + os.pathsep + current_path
os.environ["PATH"] = current_path

# ── Determine project root ────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from meetscribe.core.constants import APP_NAME, APP_VERSION, LOG_DIR  # noqa: E402

logger = logging.getLogger("meetscribe")


def setup_logging() -> Path:
    """File logging under ~/Library/Logs/MeetingTranscriber/."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / "app.log"
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            handlers=[
                logging.FileHandler(log_file, encoding="utf-8"),
            ],
        )
    return log_file


def check_prerequisites():
    """Log which external tools the local pipeline cannot find."""
    from meetscribe.core.config import AppConfig
    from meetscribe.core.diagnostics import missing_prerequisites

    missing = missing_prerequisites(AppConfig())
    for tool in missing:
        logger.warning("Missing prerequisite: %s", tool)
    if missing:
        logger.warning("PATH = %s", os.environ.get("PATH", ""))


def main():
    log_file = setup_logging()
    logger.info("=" * 60)
    logger.info("%s v%s starting at %s", APP_NAME, APP_VERSION, datetime.now().isoformat())
    logger.info("Python: %s", sys.executable)
    logger.info("Project root: %s", PROJECT_ROOT)
    logger.info("=" * 60)

    try:
        check_prerequisites()
        from meetscribe.cli.run_session import run
        code = run()
    except SystemExit:
        raise
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        logger.critical("Fatal error: %s\n%s", error_msg, traceback.format_exc())
        print(f"{APP_NAME} error: {error_msg}\nCheck logs at: {log_file}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
