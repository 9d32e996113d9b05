"""
Catalog import API routes.

Upload a product catalog CSV, preview it, and poll or cancel a running
import. Error responses use AppError.to_dict().
"""

from fastapi import APIRouter, BackgroundTasks, File, Query, UploadFile
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.catalog_import import (
    CandidateRecordResponse,
    ImportPreviewResponse,
    ImportSessionResponse,
)
from services.import_service import CatalogImportService, get_catalog_import_service
from services.import_session import ImportSession
from utils.text_utils import decode_csv_bytes
from exceptions import AppError, ValidationError

logger = structlog.get_logger(__name__)

router = APIRouter()

PREVIEW_RECORD_LIMIT = 10


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


async def _read_csv(file: UploadFile, encoding: Optional[str]) -> str:
    """
    Read and decode an uploaded CSV.

    Raises:
        ValidationError: If the bytes do not decode with the given encoding
    """
    content = await file.read()
    try:
        return decode_csv_bytes(content, encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise ValidationError(
            f"Could not decode file as {encoding}",
            code="IMPORT_DECODE_FAILED",
            details={"encoding": encoding, "error": str(e)}
        ) from e


def _run_import(service: CatalogImportService, text: str, session: ImportSession) -> None:
    """Background task body. Failures end up on the session, not the client."""
    try:
        service.execute(text, session)
    except AppError as e:
        logger.warning("import_task_failed", session_id=session.id, code=e.code, error=e.message)
    except Exception as e:
        logger.error(
            "import_task_crashed",
            session_id=session.id,
            error=str(e),
            error_type=type(e).__name__
        )
        session.fail(f"Unexpected error: {e}")


# ===================
# ROUTES
# ===================

@router.post("/products/preview", response_model=ImportPreviewResponse)
async def preview_product_import(
    file: UploadFile = File(..., description="Product catalog CSV"),
    encoding: Optional[str] = Query(None, description="File encoding (default: UTF-8, else Latin-1)")
):
    """
    Parse and validate a catalog CSV without importing anything.

    Returns counts, the first records with their inferred units, and every
    row validation error.

    Raises:
        422: Required columns missing
    """
    logger.info("product_import_preview_started", filename=file.filename)

    try:
        text = await _read_csv(file, encoding)

        result = get_catalog_import_service().preview(text)

        return ImportPreviewResponse(
            file_name=file.filename,
            total_rows=result.total_rows,
            valid_count=len(result.records),
            error_count=len(result.errors),
            records=[
                CandidateRecordResponse(
                    row_number=r.row_number,
                    name=r.name,
                    category=r.category,
                    unit=r.unit,
                    description=r.description,
                )
                for r in result.records[:PREVIEW_RECORD_LIMIT]
            ],
            validation_errors=result.error_messages
        )

    except Exception as e:
        return handle_error(e)


@router.post("/products", response_model=ImportSessionResponse, status_code=202)
async def start_product_import(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="Product catalog CSV"),
    encoding: Optional[str] = Query(None, description="File encoding (default: UTF-8, else Latin-1)")
):
    """
    Start importing a catalog CSV.

    The import runs in the background; poll GET /api/imports/{session_id}
    for progress.

    Raises:
        409: Another import is running
        422: Required columns missing
    """
    logger.info(
        "product_import_upload_started",
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        text = await _read_csv(file, encoding)

        service = get_catalog_import_service()
        service.check_header(text)
        session = service.start_session(file_name=file.filename)

        background_tasks.add_task(_run_import, service, text, session)

        return session.snapshot()

    except Exception as e:
        return handle_error(e)


@router.get("/{session_id}", response_model=ImportSessionResponse)
async def get_import_session(session_id: str):
    """
    Get progress and stats of an import.

    Raises:
        404: Session not found
    """
    try:
        return get_catalog_import_service().get_session(session_id).snapshot()
    except Exception as e:
        return handle_error(e)


@router.post("/{session_id}/cancel", response_model=ImportSessionResponse)
async def cancel_import_session(session_id: str):
    """
    Stop an import after its current batch.

    Records already submitted are not rolled back.

    Raises:
        404: Session not found
    """
    try:
        session = get_catalog_import_service().cancel(session_id)
        return session.snapshot()
    except Exception as e:
        return handle_error(e)
