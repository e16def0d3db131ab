"""
Sequential job queue.
Processes one chunk at a time, in sequence order, on a single worker thread.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Optional

from meetscribe.core.constants import (
    ErrorCode, JobStatus, QueueState, INTER_CHUNK_DELAY_SEC,
)
from meetscribe.core.error_codes import JobError
from meetscribe.core.models import Chunk, ErrorRecord, Job, JobOutcome, QueueStatus

logger = logging.getLogger(__name__)


class ChunkQueue:
    """
    Owns the backlog and the single in-flight Job.

    `process` turns a Job into a terminal JobOutcome (normally
    RetryController.run). The worker thread is started on demand by
    enqueue() and exits when the backlog is empty.
    """

    def __init__(self, process: Callable[[Job], JobOutcome],
                 inter_chunk_delay: float = INTER_CHUNK_DELAY_SEC,
                 sleep: Callable[[float], None] = time.sleep):
        self._process = process
        self._inter_chunk_delay = inter_chunk_delay
        self._sleep = sleep

        self._lock = threading.Lock()
        self._backlog: deque[Job] = deque()
        self._state = QueueState.IDLE
        self._current: Optional[Job] = None
        self._last_sequence = 0
        self._closed = False
        self._idle = threading.Event()
        self._idle.set()
        self._notify_lock = threading.RLock()
        self._worker_thread: Optional[threading.Thread] = None

        # Callbacks (invoked on the worker thread)
        self.on_outcome: Optional[Callable[[JobOutcome], None]] = None
        self.on_status_changed: Optional[Callable[[QueueStatus], None]] = None

    # ── Queue management ──────────────────────────────────────────────

    def enqueue(self, chunk: Chunk) -> Job:
        """Append a chunk to the backlog; start draining if idle."""
        with self._lock:
            if self._closed:
                raise JobError(ErrorCode.UNEXPECTED,
                               "Queue is closed to new chunks", retryable=False)
            if chunk.sequence <= self._last_sequence:
                raise ValueError(
                    f"Chunk {chunk.sequence} out of order (last was {self._last_sequence})"
                )
            self._last_sequence = chunk.sequence

            job = Job(chunk=chunk)
            self._backlog.append(job)
            start_worker = self._state == QueueState.IDLE
            if start_worker:
                self._state = QueueState.DRAINING
                self._idle.clear()

        logger.info("Queued chunk %d (%d bytes)", chunk.sequence, chunk.size)
        self._notify_status()

        if start_worker:
            self._worker_thread = threading.Thread(
                target=self._drain, name="chunk-queue", daemon=True,
            )
            self._worker_thread.start()
        return job

    def close(self):
        """Refuse further chunks. Already queued chunks are still processed."""
        with self._lock:
            self._closed = True

    def reset_if_idle(self) -> bool:
        """
        Reopen the queue with numbering restarting from 1 (new session).
        Does nothing and returns False while a backlog is draining.
        """
        with self._lock:
            if self._state != QueueState.IDLE:
                return False
            self._last_sequence = 0
            self._closed = False
            return True

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        return self._idle.wait(timeout)

    # ── Observable state ──────────────────────────────────────────────

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    def is_idle(self) -> bool:
        return self.state == QueueState.IDLE

    def status(self) -> QueueStatus:
        with self._lock:
            return self._status_locked()

    def _status_locked(self) -> QueueStatus:
        current = self._current.sequence if self._current else 0
        return QueueStatus(
            busy=self._state == QueueState.DRAINING,
            processing_chunk=current,
            queue_depth=len(self._backlog),
        )

    def _notify_status(self):
        if not self.on_status_changed:
            return
        # Snapshot and delivery happen under one lock so observers see statuses in order
        with self._notify_lock:
            status = self.status()
            try:
                self.on_status_changed(status)
            except Exception as e:
                logger.error("Status callback failed: %s", e, exc_info=True)

    # ── Worker loop ───────────────────────────────────────────────────

    def _drain(self):
        """Pop, process and discard jobs until the backlog is empty."""
        while True:
            with self._lock:
                if not self._backlog:
                    # Same lock as enqueue(): a chunk added after this sees IDLE and starts a new worker
                    self._current = None
                    self._state = QueueState.IDLE
                    break
                job = self._backlog.popleft()
                job.status = JobStatus.IN_FLIGHT
                self._current = job
            self._notify_status()

            outcome = self._run_job(job)
            self._emit_outcome(outcome)

            with self._lock:
                self._current = None
                more = bool(self._backlog)
            if more and self._inter_chunk_delay > 0:
                self._sleep(self._inter_chunk_delay)

        logger.info("Queue idle")
        self._notify_status()
        with self._lock:
            if self._state == QueueState.IDLE:
                self._idle.set()

    def _run_job(self, job: Job) -> JobOutcome:
        try:
            return self._process(job)
        except Exception as e:
            # Processors other than RetryController.run may raise
            logger.error("Worker error on chunk %d: %s", job.sequence, e, exc_info=True)
            job.status = JobStatus.FAILED
            record = ErrorRecord(sequence=job.sequence, error=str(e) or type(e).__name__,
                                 code=ErrorCode.UNEXPECTED, attempts=job.attempts)
            return JobOutcome(sequence=job.sequence, status=job.status,
                              attempts=job.attempts, error=record)

    def _emit_outcome(self, outcome: JobOutcome):
        if not self.on_outcome:
            return
        try:
            self.on_outcome(outcome)
        except Exception as e:
            logger.error("Outcome callback failed for chunk %d: %s",
                         outcome.sequence, e, exc_info=True)
