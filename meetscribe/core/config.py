"""
Application configuration manager.
Stores settings in a JSON file under Application Support.
"""

import json
import logging
from pathlib import Path

from meetscribe.core.constants import (
    CONFIG_PATH, SCRATCH_DIR, DEFAULT_FFMPEG, DEFAULT_WHISPER_BIN, DEFAULT_WHISPER_MODEL,
    LANGUAGE_AUTO, SUPPORTED_LANGUAGES, CHUNK_INTERVAL_SEC, MAX_RETRIES,
    RETRY_BASE_DELAY_SEC, INTER_CHUNK_DELAY_SEC, NORMALIZE_TIMEOUT_SEC,
    INFERENCE_TIMEOUT_SEC, REQUEST_TIMEOUT_SEC, MAX_UPLOAD_BYTES,
    ERROR_DISPLAY_LIMIT, ERROR_HISTORY_LIMIT,
)

logger = logging.getLogger(__name__)

# Validation bounds: key -> (type, min, max)
_BOUNDS = {
    'chunk_interval_sec': (int, 10, 3600),
    'max_retries': (int, 1, 10),
    'retry_base_delay_sec': (float, 0.0, 60.0),
    'inter_chunk_delay_sec': (float, 0.0, 30.0),
    'normalize_timeout_sec': (float, 1.0, 3600.0),
    'inference_timeout_sec': (float, 2.0, 7200.0),
    'request_timeout_sec': (float, 1.0, 7200.0),
    'max_upload_bytes': (int, 1024, 2 * 1024 * 1024 * 1024),
    'error_display_limit': (int, 0, 100),
    'error_history_limit': (int, 1, 10000),
}

_BOOL_KEYS = {'retry_missing_resource'}

_DEFAULTS = {
    'language': LANGUAGE_AUTO,
    'supported_languages': list(SUPPORTED_LANGUAGES),
    'chunk_interval_sec': CHUNK_INTERVAL_SEC,
    'max_retries': MAX_RETRIES,
    'retry_base_delay_sec': RETRY_BASE_DELAY_SEC,
    'inter_chunk_delay_sec': INTER_CHUNK_DELAY_SEC,
    'normalize_timeout_sec': NORMALIZE_TIMEOUT_SEC,
    'inference_timeout_sec': INFERENCE_TIMEOUT_SEC,
    'request_timeout_sec': REQUEST_TIMEOUT_SEC,
    'max_upload_bytes': MAX_UPLOAD_BYTES,
    'ffmpeg_path': DEFAULT_FFMPEG,
    'whisper_bin': str(DEFAULT_WHISPER_BIN),
    'whisper_model': str(DEFAULT_WHISPER_MODEL),
    'scratch_dir': str(SCRATCH_DIR),
    'transcribe_url': "",
    'error_display_limit': ERROR_DISPLAY_LIMIT,
    'error_history_limit': ERROR_HISTORY_LIMIT,
    'retry_missing_resource': False,
}


def _validation_order(values: dict) -> list[str]:
    # language is checked against supported_languages, so that goes first
    return sorted(values, key=lambda k: k != 'supported_languages')


class AppConfig:
    """Manages application configuration stored as JSON."""

    def __init__(self, config_path: Path | None = None):
        self.path = config_path or CONFIG_PATH
        self._data: dict = {}
        self.load()

    def load(self):
        """Load config from disk, merging with defaults."""
        self._data = dict(_DEFAULTS)
        self._data['supported_languages'] = list(SUPPORTED_LANGUAGES)
        if self.path.exists():
            try:
                with open(self.path, 'r') as f:
                    saved = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Failed to load config: %s", e)
                return
            if not isinstance(saved, dict):
                logger.warning("Ignoring config file %s: not a JSON object", self.path)
                return
            for key in _validation_order(saved):
                self._data[key] = self._validate(key, saved[key])
            self._enforce_timeout_order()

    def save(self):
        """Persist config to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(self._data, f, indent=2)

    def get(self, key: str, default=None):
        return self._data.get(key, default)

    def set(self, key: str, value):
        self._data[key] = self._validate(key, value)
        self._enforce_timeout_order()
        self.save()

    def apply_overrides(self, overrides: dict):
        """Validate and apply values for this process only (not persisted)."""
        for key in _validation_order(overrides):
            if overrides[key] is None:
                continue
            self._data[key] = self._validate(key, overrides[key])
        self._enforce_timeout_order()

    def _validate(self, key: str, value):
        """Validate and coerce config values to safe ranges."""
        if key in _BOUNDS:
            kind, low, high = _BOUNDS[key]
            try:
                value = kind(value)
            except (TypeError, ValueError):
                logger.warning("Invalid %s %r, using default", key, value)
                return _DEFAULTS[key]
            return max(low, min(high, value))

        if key in _BOOL_KEYS:
            return bool(value)

        if key == 'supported_languages':
            if isinstance(value, str):
                value = value.split(',')
            if not isinstance(value, (list, tuple)):
                logger.warning("Invalid supported_languages %r, using default", value)
                return list(SUPPORTED_LANGUAGES)
            codes = []
            for code in value:
                code = str(code).strip().lower()
                if code and code != LANGUAGE_AUTO and code not in codes:
                    codes.append(code)
            return codes or list(SUPPORTED_LANGUAGES)

        if key == 'language':
            language = str(value or LANGUAGE_AUTO).strip().lower()
            supported = self._data.get('supported_languages', SUPPORTED_LANGUAGES)
            if language != LANGUAGE_AUTO and language not in supported:
                logger.warning("Unsupported language %r, using auto", value)
                return LANGUAGE_AUTO
            return language

        if key in ('ffmpeg_path', 'whisper_bin', 'whisper_model', 'scratch_dir'):
            if not value:
                return _DEFAULTS[key]
            return str(Path(str(value)).expanduser())

        if key == 'transcribe_url':
            return str(value or "").strip()

        return value

    def _enforce_timeout_order(self):
        """The inference deadline must stay strictly longer than the normalize one."""
        normalize = self._data['normalize_timeout_sec']
        inference = self._data['inference_timeout_sec']
        if inference <= normalize:
            logger.warning("inference_timeout_sec %.0f <= normalize_timeout_sec %.0f, raising it",
                           inference, normalize)
            self._data['inference_timeout_sec'] = normalize + 1

    def as_dict(self) -> dict:
        return dict(self._data)

    @property
    def language(self) -> str:
        return self._data.get('language', LANGUAGE_AUTO)

    @property
    def scratch_dir(self) -> Path:
        return Path(self._data.get('scratch_dir', str(SCRATCH_DIR)))

    @property
    def remote_mode(self) -> bool:
        return bool(self._data.get('transcribe_url'))
