"""
Catalog Import Backend

FastAPI application entry point. Run with `uvicorn main:app` or
`python main.py`.
"""

from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from config import settings, check_connection, configure_logging
from routes.imports import router as imports_router

configure_logging(settings)

logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"
FRONTEND_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup with the import tuning in effect and the database state."""
    logger.info(
        "application_starting",
        environment=settings.environment,
        import_batch_size=settings.import_batch_size,
        import_record_timeout_seconds=settings.import_record_timeout_seconds
    )

    db_status = check_connection()
    if db_status["status"] != "healthy":
        logger.error("database_connection_failed", error=db_status.get("error"))
    else:
        logger.info("database_connected", products=db_status["products_count"])

    yield

    logger.info("application_shutting_down")


# ===================
# SYSTEM ROUTES
# ===================

system_router = APIRouter()


@system_router.get("/health")
async def health_check():
    """Service status; degraded when the products table is unreachable."""
    db_status = check_connection()
    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
        "database": db_status
    }


@system_router.get("/")
async def root():
    return {
        "name": "Catalog Import API",
        "version": API_VERSION,
        "health": "/health",
        "endpoints": {
            "preview": "/api/imports/products/preview",
            "start": "/api/imports/products",
            "status": "/api/imports/{session_id}",
            "cancel": "/api/imports/{session_id}/cancel",
        }
    }


async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler in the same error envelope as AppError.to_dict()."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
            }
        }
    )


def create_app() -> FastAPI:
    """Assemble the API: middleware, system routes and the import router."""
    application = FastAPI(
        title="Catalog Import",
        description="Bulk product catalog import from CSV",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_exception_handler(Exception, unhandled_error)
    application.include_router(system_router)
    application.include_router(imports_router, prefix="/api/imports", tags=["Imports"])
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
