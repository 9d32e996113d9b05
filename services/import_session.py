"""
Import session state and progress reporting.

An ImportSession is the single source of truth for one run: phase, progress,
running totals, validation errors and downstream failures. It is written by
the importer and read by anyone (API polling, CLI, listeners) at any time,
so every mutation happens under one lock and readers get immutable
snapshots.

Progress scale: parsing reports 0-50, importing 50-100. Progress never
goes down; lower values are ignored.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4
import structlog

from models.catalog_import import (
    ImportPhase,
    ImportSessionResponse,
    ImportStatsResponse,
    FailedRecordResponse,
)

logger = structlog.get_logger(__name__)

SessionListener = Callable[[ImportSessionResponse], None]


@dataclass
class ImportStats:
    """Running totals for one import."""
    total: int = 0
    success: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.success + self.failed


@dataclass
class FailedRecord:
    """A record the create call rejected."""
    name: str
    error: str


class ImportSession:
    """
    Mutable, thread-safe state of one import run.

    Usage:
        session = ImportSession(file_name="catalog.csv")
        session.add_listener(lambda snap: print(snap.progress))
        ...
        session.snapshot().stats
    """

    def __init__(self, file_name: Optional[str] = None):
        self.id = str(uuid4())
        self.file_name = file_name
        self.started_at = datetime.utcnow()
        self.completed_at: Optional[datetime] = None

        self._lock = threading.RLock()
        self._cancel_event = threading.Event()
        self._listeners: list[SessionListener] = []

        self._phase = ImportPhase.IDLE
        self._progress = 0
        self._stats = ImportStats()
        self._validation_errors: list = []
        self._failures: list[FailedRecord] = []
        self._cancelled = False
        self._error: Optional[str] = None

    # ===================
    # READ ACCESS
    # ===================

    @property
    def phase(self) -> ImportPhase:
        return self._phase

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def stats(self) -> ImportStats:
        with self._lock:
            return ImportStats(
                total=self._stats.total,
                success=self._stats.success,
                failed=self._stats.failed
            )

    @property
    def failures(self) -> list[FailedRecord]:
        with self._lock:
            return list(self._failures)

    @property
    def validation_errors(self) -> list:
        with self._lock:
            return list(self._validation_errors)

    @property
    def is_active(self) -> bool:
        return self._phase in (ImportPhase.PARSING, ImportPhase.VALIDATED, ImportPhase.IMPORTING)

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def summary(self) -> str:
        """One-line result, e.g. "Successfully imported 6 of 7 products; 1 failed"."""
        stats = self.stats
        return (
            f"Successfully imported {stats.success} of {stats.total} products; "
            f"{stats.failed} failed"
        )

    def snapshot(self) -> ImportSessionResponse:
        """Immutable view for polling."""
        with self._lock:
            return ImportSessionResponse(
                session_id=self.id,
                file_name=self.file_name,
                phase=self._phase,
                progress=self._progress,
                stats=ImportStatsResponse(
                    total=self._stats.total,
                    success=self._stats.success,
                    failed=self._stats.failed
                ),
                validation_errors=[str(e) for e in self._validation_errors],
                failures=[
                    FailedRecordResponse(name=f.name, error=f.error)
                    for f in self._failures
                ],
                cancelled=self._cancelled,
                error=self._error,
                summary=self.summary(),
                started_at=self.started_at,
                completed_at=self.completed_at
            )

    # ===================
    # LISTENERS
    # ===================

    def add_listener(self, listener: SessionListener) -> None:
        """Register a callback that receives a snapshot after every change."""
        with self._lock:
            self._listeners.append(listener)

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return

        snapshot = self.snapshot()
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(
                    "import_listener_failed",
                    session_id=self.id,
                    error=str(e),
                    error_type=type(e).__name__
                )

    # ===================
    # LIFECYCLE
    # ===================

    def start_parsing(self) -> None:
        with self._lock:
            self._phase = ImportPhase.PARSING
        logger.info("import_parsing_started", session_id=self.id, file_name=self.file_name)
        self._notify()

    def update_progress(self, value: int) -> None:
        """Raise progress to value (clamped to 0-100). Lower values are ignored."""
        value = max(0, min(100, int(value)))
        with self._lock:
            if value <= self._progress:
                return
            self._progress = value
        self._notify()

    def mark_validated(self, total: int, validation_errors: list) -> None:
        """Fix the record total. It does not change afterwards."""
        with self._lock:
            self._phase = ImportPhase.VALIDATED
            self._stats = ImportStats(total=total)
            self._validation_errors = list(validation_errors)
        logger.info(
            "import_validated",
            session_id=self.id,
            total=total,
            validation_errors=len(validation_errors)
        )
        self._notify()

    def start_importing(self) -> None:
        with self._lock:
            self._phase = ImportPhase.IMPORTING
        self._notify()

    def record_batch(self, successes: int, failures: list[FailedRecord], progress: int) -> None:
        """
        Apply the outcome of one fully settled batch.

        Raises:
            ValueError: If the batch would push processed records past total
        """
        with self._lock:
            processed = self._stats.processed + successes + len(failures)
            if processed > self._stats.total:
                raise ValueError(
                    f"Batch overflows import total: {processed} > {self._stats.total}"
                )
            self._stats.success += successes
            self._stats.failed += len(failures)
            self._failures.extend(failures)
            if progress > self._progress:
                self._progress = min(100, progress)
        self._notify()

    def complete(self, cancelled: bool = False) -> None:
        """Finish the run. Progress is always 100, whatever the failure count."""
        with self._lock:
            self._phase = ImportPhase.COMPLETED
            self._progress = 100
            self._cancelled = cancelled
            self.completed_at = datetime.utcnow()
            stats = ImportStats(self._stats.total, self._stats.success, self._stats.failed)
        logger.info(
            "import_completed",
            session_id=self.id,
            total=stats.total,
            success=stats.success,
            failed=stats.failed,
            cancelled=cancelled
        )
        self._notify()

    def fail(self, error: str) -> None:
        """Configuration failure before parsing. Progress is left as-is."""
        with self._lock:
            self._phase = ImportPhase.FAILED
            self._error = error
            self.completed_at = datetime.utcnow()
        logger.warning("import_failed", session_id=self.id, error=error)
        self._notify()

    def request_cancel(self) -> None:
        """Ask the importer to stop after the current batch."""
        self._cancel_event.set()
        logger.info("import_cancel_requested", session_id=self.id, phase=self._phase.value)
