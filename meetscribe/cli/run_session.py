"""
Command-line surface: feed audio chunks through a transcription session
and print the ordered transcript.
"""

import argparse
import json
import logging
import sys
import tempfile
from pathlib import Path
from typing import Sequence

from meetscribe.core.chunking_timebased import mime_type_for, split_recording
from meetscribe.core.config import AppConfig
from meetscribe.core.constants import APP_VERSION, LANGUAGE_AUTO, LANGUAGE_LABELS
from meetscribe.core.diagnostics import get_diagnostics
from meetscribe.core.error_codes import JobError
from meetscribe.core.models import JobOutcome
from meetscribe.core.session import TranscriptionSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meetscribe",
        description="Transcribe meeting audio chunk by chunk with whisper.cpp.",
    )
    parser.add_argument("audio", nargs="*", type=Path,
                        help="Audio files; each is one chunk unless --split is given")
    parser.add_argument("--config", type=Path, default=None,
                        help="Path to config.json (default: Application Support)")
    parser.add_argument("-l", "--language", default=None,
                        help=f"'{LANGUAGE_AUTO}' or a supported language code")
    parser.add_argument("--split", action="store_true",
                        help="Treat each file as a full recording and cut it into interval chunks")
    parser.add_argument("--interval", type=int, default=None,
                        help="Chunk interval in seconds for --split")
    parser.add_argument("--max-retries", type=int, default=None)
    parser.add_argument("--normalize-timeout", type=float, default=None)
    parser.add_argument("--inference-timeout", type=float, default=None)
    parser.add_argument("--whisper-bin", default=None)
    parser.add_argument("--whisper-model", default=None)
    parser.add_argument("--ffmpeg", default=None)
    parser.add_argument("--remote-url", default=None,
                        help="Send chunks to a remote /transcribe endpoint instead")
    parser.add_argument("--json", action="store_true",
                        help="Print the session snapshot as JSON")
    parser.add_argument("--diagnostics", action="store_true",
                        help="Print tool diagnostics and exit")
    parser.add_argument("--list-languages", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    config = AppConfig(args.config) if args.config else AppConfig()
    config.apply_overrides({
        'max_retries': args.max_retries,
        'normalize_timeout_sec': args.normalize_timeout,
        'inference_timeout_sec': args.inference_timeout,
        'chunk_interval_sec': args.interval,
        'whisper_bin': args.whisper_bin,
        'whisper_model': args.whisper_model,
        'ffmpeg_path': args.ffmpeg,
        'transcribe_url': args.remote_url,
        'language': args.language,
    })
    return config


def _print_outcome(outcome: JobOutcome):
    if outcome.succeeded:
        ts = outcome.fragment.completed_at.strftime("%H:%M:%S")
        print(f"Chunk {outcome.sequence} • {ts}\n{outcome.fragment.text}\n", flush=True)
    else:
        print(f"Chunk {outcome.sequence}: {outcome.error.error}", file=sys.stderr, flush=True)


def feed_files(session: TranscriptionSession, paths: list[Path], split: bool) -> None:
    """Submit every file (or every interval segment) to the session in order."""
    config = session.config
    for path in paths:
        if not split:
            session.submit_audio(path.read_bytes(), mime_type_for(path))
            continue
        with tempfile.TemporaryDirectory(prefix="meetscribe_split_") as tmp:
            segments = split_recording(path, Path(tmp),
                                       config.get('chunk_interval_sec'),
                                       config.get('ffmpeg_path'))
            for segment in segments:
                session.submit_audio(segment.read_bytes(), mime_type_for(segment))


def run(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logging.getLogger().addHandler(handler)
        logging.getLogger().setLevel(logging.DEBUG)

    config = load_config(args)

    if args.list_languages:
        codes = [LANGUAGE_AUTO] + list(config.get('supported_languages'))
        for code in codes:
            print(f"{code}\t{LANGUAGE_LABELS.get(code, code)}")
        return 0

    if args.diagnostics:
        print(json.dumps(get_diagnostics(config), indent=2))
        return 0

    missing = [p for p in args.audio if not p.is_file()]
    if missing:
        parser.error(f"audio file not found: {missing[0]}")
    if not args.audio:
        parser.error("no audio files given")

    session = TranscriptionSession(config)
    if not args.json:
        session.on_outcome = _print_outcome

    try:
        session.start(args.language)
    except JobError as e:
        parser.error(e.message)

    input_failed = False
    try:
        feed_files(session, list(args.audio), args.split)
    except JobError as e:
        input_failed = True
        logger.error("Could not read input: %s", e)
        print(f"Error: {e.message}", file=sys.stderr)
    finally:
        session.stop_capture()
        session.wait_until_idle()

    if args.json:
        print(json.dumps(session.state.snapshot(), indent=2))
    else:
        recent = session.state.recent_errors()
        if recent:
            print(f"{len(session.state.errors())} chunk(s) failed; latest:", file=sys.stderr)
            for err in recent:
                print(f"  Chunk {err.sequence}: {err.error} ({err.created_at:%H:%M:%S})",
                      file=sys.stderr)

    return 1 if input_failed or session.state.errors() else 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
