"""
Catalog import schemas.

Snapshots of an import session and CSV preview results, as returned by the
API and the CLI.
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema


class ImportPhase(str, Enum):
    """Lifecycle of an import session."""
    IDLE = "idle"
    PARSING = "parsing"
    VALIDATED = "validated"
    IMPORTING = "importing"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportStatsResponse(BaseSchema):
    """Running totals. success + failed never exceeds total."""

    total: int = Field(0, ge=0, description="Records accepted by validation")
    success: int = Field(0, ge=0, description="Records created")
    failed: int = Field(0, ge=0, description="Records rejected downstream")


class FailedRecordResponse(BaseSchema):
    """A record the create call rejected."""

    name: str
    error: str


class ImportSessionResponse(BaseSchema):
    """
    Point-in-time view of an import session.

    Used for polling from the UI and for the CLI summary.
    """

    session_id: str = Field(..., description="Import session ID")
    file_name: Optional[str] = Field(None, description="Uploaded file name")
    phase: ImportPhase
    progress: int = Field(..., ge=0, le=100, description="0-100, never decreases")
    stats: ImportStatsResponse
    validation_errors: list[str] = Field(
        default_factory=list,
        description='Complete list, formatted "Row {n}: {message}"'
    )
    failures: list[FailedRecordResponse] = Field(default_factory=list)
    cancelled: bool = False
    error: Optional[str] = Field(None, description="Fatal error for FAILED sessions")
    summary: str
    started_at: datetime
    completed_at: Optional[datetime] = None


class CandidateRecordResponse(BaseSchema):
    """Validated row as it will be sent to product creation."""

    row_number: int
    name: str
    category: str
    unit: str
    description: Optional[str] = None


class ImportPreviewResponse(BaseSchema):
    """Result of parsing a CSV without importing it."""

    file_name: Optional[str] = None
    total_rows: int = Field(..., description="Data rows in the file (header excluded)")
    valid_count: int
    error_count: int
    records: list[CandidateRecordResponse] = Field(
        default_factory=list,
        description="First records, for display"
    )
    validation_errors: list[str] = Field(default_factory=list)
