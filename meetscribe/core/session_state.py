"""
Session state: ordered transcript fragments, the error feed and live queue
status, exposed to observers as read-only snapshots.
"""

import bisect
import logging
import threading
from collections import deque
from typing import Callable, Optional

from meetscribe.core.constants import ERROR_DISPLAY_LIMIT, ERROR_HISTORY_LIMIT
from meetscribe.core.merge import merge_transcripts
from meetscribe.core.models import ErrorRecord, JobOutcome, QueueStatus, TranscriptFragment

logger = logging.getLogger(__name__)


class SessionState:
    """Thread-safe accumulator. Only the session's queue callbacks write to it."""

    def __init__(self, error_history_limit: int = ERROR_HISTORY_LIMIT,
                 error_display_limit: int = ERROR_DISPLAY_LIMIT):
        self._lock = threading.RLock()
        self._error_history_limit = error_history_limit
        self.error_display_limit = error_display_limit
        self._fragments: list[TranscriptFragment] = []
        self._errors: deque[ErrorRecord] = deque(maxlen=error_history_limit)
        self._status = QueueStatus()

        # Called after every change (from the worker thread)
        self.on_changed: Optional[Callable[[], None]] = None

    # ── Writers ───────────────────────────────────────────────────────

    def record_success(self, fragment: TranscriptFragment):
        with self._lock:
            keys = [f.sequence for f in self._fragments]
            idx = bisect.bisect_left(keys, fragment.sequence)
            if idx < len(keys) and keys[idx] == fragment.sequence:
                self._fragments[idx] = fragment
            else:
                self._fragments.insert(idx, fragment)

            # A success supersedes any earlier failure for the same chunk
            kept = [e for e in self._errors if e.sequence != fragment.sequence]
            if len(kept) != len(self._errors):
                self._errors = deque(kept, maxlen=self._error_history_limit)
        self._changed()

    def record_failure(self, error: ErrorRecord):
        with self._lock:
            self._errors.append(error)
        self._changed()

    def record_outcome(self, outcome: JobOutcome):
        if outcome.succeeded:
            self.record_success(outcome.fragment)
        else:
            self.record_failure(outcome.error)

    def set_status(self, status: QueueStatus):
        with self._lock:
            self._status = status
        self._changed()

    def reset(self):
        with self._lock:
            self._fragments.clear()
            self._errors.clear()
            self._status = QueueStatus()
        self._changed()

    def _changed(self):
        if not self.on_changed:
            return
        try:
            self.on_changed()
        except Exception as e:
            logger.error("Session change callback failed: %s", e, exc_info=True)

    # ── Snapshots ─────────────────────────────────────────────────────

    def transcripts(self) -> list[TranscriptFragment]:
        with self._lock:
            return list(self._fragments)

    def errors(self) -> list[ErrorRecord]:
        with self._lock:
            return list(self._errors)

    def recent_errors(self, limit: int | None = None) -> list[ErrorRecord]:
        limit = self.error_display_limit if limit is None else limit
        if limit <= 0:
            return []
        with self._lock:
            return list(self._errors)[-limit:]

    def status(self) -> QueueStatus:
        with self._lock:
            return self._status

    def full_text(self) -> str:
        return merge_transcripts([f.text for f in self.transcripts()])

    def snapshot(self) -> dict:
        """Everything an observer renders, in the wire shape."""
        with self._lock:
            return {
                'transcripts': [f.as_dict() for f in self._fragments],
                'errors': [e.as_dict() for e in list(self._errors)[-self.error_display_limit:]]
                if self.error_display_limit > 0 else [],
                'status': self._status.as_dict(),
            }
