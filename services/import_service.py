"""
Catalog import service.

Runs the full CSV import pipeline:

    text -> rows -> resolved columns -> validated records
         -> unit-resolved records -> batches -> aggregate result

Records are created in fixed-size batches. Every record in a batch is
submitted concurrently and the batch is fully settled (successes, errors and
timeouts) before the next batch starts. A failing record never affects its
siblings or later batches, and failed records are not retried.
"""

import threading
import time
from datetime import datetime, timedelta
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
from pydantic import ValidationError as PydanticValidationError
import structlog

from config import settings
from exceptions import (
    AppError,
    ImportConfigurationError,
    ImportAlreadyRunningError,
    ImportSessionNotFoundError,
    RecordImportError,
)
from models.product import ProductCreate
from parsers.product_csv_parser import (
    CandidateRecord,
    ProductCSVParseResult,
    parse_product_csv,
    read_header,
    PARSE_PROGRESS_SHARE,
)
from services.import_session import ImportSession, ImportStats, FailedRecord
from services.unit_inference_service import UnitInferenceService, get_unit_inference_service

logger = structlog.get_logger(__name__)

# Takes the payload dict, returns anything on success, raises on failure
CreateRecordFn = Callable[[dict], Any]

UNKNOWN_ERROR = "Unknown error"


@dataclass
class ImportOutcome:
    """Settled result of one create call."""
    record: CandidateRecord
    success: bool
    error: Optional[str] = None


@dataclass
class ImportResult:
    """Terminal result of an import run."""
    stats: ImportStats
    failures: list[FailedRecord] = field(default_factory=list)
    validation_errors: list = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "total": self.stats.total,
            "success": self.stats.success,
            "failed": self.stats.failed,
            "cancelled": self.cancelled,
            "failures": [{"name": f.name, "error": f.error} for f in self.failures],
            "validation_errors": [str(e) for e in self.validation_errors],
        }


def create_product_record(payload: dict) -> Any:
    """
    Default create capability: insert into the products table.

    Raises:
        RecordImportError: If the payload does not satisfy ProductCreate
        AppError: Whatever the product service raises
    """
    from services.product_service import get_product_service

    try:
        data = ProductCreate(**payload)
    except PydanticValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors())
        raise RecordImportError(
            payload.get("name") or "",
            f"Invalid product fields: {fields}",
            details={"errors": e.errors(include_url=False, include_context=False)}
        ) from e

    return get_product_service().create(data)


# ===================
# BATCH IMPORTER
# ===================

class BatchImporter:
    """
    Submits records in sequential, internally concurrent batches.

    Concurrency is bounded by batch_size. Stats and progress are written to
    the session once per batch, after the batch settles.
    """

    def __init__(
        self,
        create_record: CreateRecordFn,
        batch_size: int = 5,
        batch_delay_seconds: float = 0.0,
        record_timeout_seconds: Optional[float] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.create_record = create_record
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self.record_timeout_seconds = record_timeout_seconds

    def import_records(self, records: list[CandidateRecord], session: ImportSession) -> ImportResult:
        """
        Create every record, batch by batch.

        Cancellation is checked between batches only; a batch that has
        started always settles.

        Args:
            records: Unit-resolved candidate records
            session: Session receiving stats and progress

        Returns:
            ImportResult with stats and failed records
        """
        total = len(records)
        batches = [
            records[start:start + self.batch_size]
            for start in range(0, total, self.batch_size)
        ]
        completed = 0
        cancelled = False

        logger.info(
            "import_batches_starting",
            session_id=session.id,
            total=total,
            batch_count=len(batches),
            batch_size=self.batch_size
        )

        for batch_index, batch in enumerate(batches):
            if session.cancel_requested:
                cancelled = True
                logger.info(
                    "import_cancelled",
                    session_id=session.id,
                    completed=completed,
                    remaining=total - completed
                )
                break

            outcomes = self._run_batch(batch)
            completed += len(outcomes)

            failures = []
            for outcome in outcomes:
                if outcome.success:
                    continue
                failures.append(FailedRecord(name=outcome.record.name, error=outcome.error))
                logger.warning(
                    "product_import_failed",
                    session_id=session.id,
                    name=outcome.record.name,
                    row=outcome.record.row_number,
                    error=outcome.error
                )

            session.record_batch(
                successes=len(outcomes) - len(failures),
                failures=failures,
                progress=PARSE_PROGRESS_SHARE + completed * (100 - PARSE_PROGRESS_SHARE) // total
            )

            logger.info(
                "import_batch_settled",
                session_id=session.id,
                batch=batch_index + 1,
                batch_count=len(batches),
                succeeded=len(outcomes) - len(failures),
                failed=len(failures)
            )

            is_last = batch_index == len(batches) - 1
            if not is_last and self.batch_delay_seconds > 0:
                time.sleep(self.batch_delay_seconds)

        return ImportResult(
            stats=session.stats,
            failures=session.failures,
            validation_errors=session.validation_errors,
            cancelled=cancelled
        )

    def _run_batch(self, batch: list[CandidateRecord]) -> list[ImportOutcome]:
        """
        Submit all records at once and wait for every one to settle.

        Each call runs on its own daemon thread. A call that outlives the
        timeout is abandoned and can never block interpreter exit.
        """
        outcomes: list[Optional[ImportOutcome]] = [None] * len(batch)
        settled = [threading.Event() for _ in batch]

        def worker(index: int, record: CandidateRecord) -> None:
            outcomes[index] = self._submit_one(record)
            settled[index].set()

        for index, record in enumerate(batch):
            threading.Thread(
                target=worker,
                args=(index, record),
                name=f"catalog-import-{record.row_number}",
                daemon=True
            ).start()

        deadline = (
            time.monotonic() + self.record_timeout_seconds
            if self.record_timeout_seconds is not None else None
        )
        for event in settled:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            event.wait(remaining)

        results = []
        for record, event, outcome in zip(batch, settled, list(outcomes)):
            if event.is_set() and outcome is not None:
                results.append(outcome)
            else:
                logger.warning(
                    "product_import_timed_out",
                    name=record.name,
                    row=record.row_number,
                    timeout=self.record_timeout_seconds
                )
                results.append(ImportOutcome(
                    record=record,
                    success=False,
                    error=f"Timed out after {self.record_timeout_seconds:g} seconds"
                ))
        return results

    def _submit_one(self, record: CandidateRecord) -> ImportOutcome:
        """Call create_record, turning any exception into a failed outcome."""
        try:
            self.create_record(record.to_payload())
            return ImportOutcome(record=record, success=True)
        except AppError as e:
            return ImportOutcome(record=record, success=False, error=e.message or UNKNOWN_ERROR)
        except Exception as e:
            return ImportOutcome(record=record, success=False, error=str(e) or UNKNOWN_ERROR)


# ===================
# PIPELINE
# ===================

class CatalogImportService:
    """
    CSV import pipeline.

    Only one run may be active per instance. Sessions are kept in memory so
    callers can poll progress by ID.
    """

    def __init__(
        self,
        create_record: Optional[CreateRecordFn] = None,
        unit_service: Optional[UnitInferenceService] = None,
        batch_size: Optional[int] = None,
        batch_delay_seconds: Optional[float] = None,
        record_timeout_seconds: Optional[float] = None,
        initial_slice_rows: Optional[int] = None,
        session_ttl_minutes: Optional[int] = None,
    ):
        self.create_record = create_record or create_product_record
        self.unit_service = unit_service or get_unit_inference_service()
        self.batch_size = batch_size if batch_size is not None else settings.import_batch_size
        self.batch_delay_seconds = (
            batch_delay_seconds if batch_delay_seconds is not None
            else settings.import_batch_delay_seconds
        )
        self.record_timeout_seconds = (
            record_timeout_seconds if record_timeout_seconds is not None
            else settings.import_record_timeout_seconds
        )
        self.initial_slice_rows = (
            initial_slice_rows if initial_slice_rows is not None
            else settings.import_initial_slice_rows
        )
        self.session_ttl = timedelta(minutes=(
            session_ttl_minutes if session_ttl_minutes is not None
            else settings.import_session_ttl_minutes
        ))

        self._guard = threading.Lock()
        self._active_session: Optional[ImportSession] = None
        self._sessions: dict[str, ImportSession] = {}

    # ===================
    # SESSIONS
    # ===================

    @property
    def is_running(self) -> bool:
        with self._guard:
            return self._active_session is not None

    def get_session(self, session_id: str) -> ImportSession:
        """
        Raises:
            ImportSessionNotFoundError: If no session has this ID
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise ImportSessionNotFoundError(session_id)
        return session

    def start_session(self, file_name: Optional[str] = None) -> ImportSession:
        """
        Claim the pipeline for a new run.

        The claim is released when execute() returns.

        Raises:
            ImportAlreadyRunningError: If another run is active
        """
        with self._guard:
            if self._active_session is not None:
                raise ImportAlreadyRunningError(self._active_session.id)
            self._cleanup_expired()
            session = ImportSession(file_name=file_name)
            self._active_session = session
            self._sessions[session.id] = session
        return session

    def _cleanup_expired(self) -> None:
        """Drop finished sessions older than the TTL. Caller holds the guard."""
        cutoff = datetime.utcnow() - self.session_ttl
        expired = [
            session_id for session_id, session in self._sessions.items()
            if session.completed_at is not None and session.completed_at < cutoff
        ]

        for session_id in expired:
            del self._sessions[session_id]

        if expired:
            logger.debug("import_sessions_expired", count=len(expired))

    def _release(self, session: ImportSession) -> None:
        with self._guard:
            if self._active_session is session:
                self._active_session = None

    def cancel(self, session_id: str) -> ImportSession:
        """Request cooperative cancellation of a session."""
        session = self.get_session(session_id)
        session.request_cancel()
        return session

    # ===================
    # PIPELINE
    # ===================

    def check_header(self, text: str) -> None:
        """
        Fail fast on a CSV whose header lacks required columns.

        Raises:
            ImportConfigurationError: If name or category is missing
        """
        read_header(text)

    def preview(self, text: str) -> ProductCSVParseResult:
        """
        Parse, validate and infer units without creating anything.

        Raises:
            ImportConfigurationError: If required columns are missing
        """
        result = parse_product_csv(text, initial_slice_rows=self.initial_slice_rows)
        self.unit_service.resolve_all(result.records)
        return result

    def run(self, text: str, file_name: Optional[str] = None) -> ImportResult:
        """
        Import a CSV document end to end.

        Raises:
            ImportAlreadyRunningError: If another run is active
            ImportConfigurationError: If required columns are missing
        """
        session = self.start_session(file_name)
        return self.execute(text, session)

    def execute(self, text: str, session: ImportSession) -> ImportResult:
        """
        Run the pipeline for a session claimed with start_session().

        Raises:
            ImportConfigurationError: If required columns are missing
        """
        try:
            try:
                read_header(text)
            except ImportConfigurationError as e:
                session.fail(e.message)
                raise

            session.start_parsing()
            parsed = parse_product_csv(
                text,
                on_progress=session.update_progress,
                initial_slice_rows=self.initial_slice_rows
            )

            session.mark_validated(len(parsed.records), parsed.errors)
            session.update_progress(PARSE_PROGRESS_SHARE)

            records = self.unit_service.resolve_all(parsed.records)

            session.start_importing()
            importer = BatchImporter(
                create_record=self.create_record,
                batch_size=self.batch_size,
                batch_delay_seconds=self.batch_delay_seconds,
                record_timeout_seconds=self.record_timeout_seconds
            )
            result = importer.import_records(records, session)

            session.complete(cancelled=result.cancelled)
            result.stats = session.stats
            return result

        finally:
            self._release(session)


# Singleton instance for convenience
_catalog_import_service: Optional[CatalogImportService] = None


def get_catalog_import_service() -> CatalogImportService:
    """Get or create CatalogImportService instance."""
    global _catalog_import_service
    if _catalog_import_service is None:
        _catalog_import_service = CatalogImportService()
    return _catalog_import_service
