"""
FastAPI application entry point for the ExecBrief API.

Configures logging and CORS, registers the reports router, and maps the core
error taxonomy onto HTTP status codes:

    InsufficientDataError   -> 400
    NotFoundError           -> 404
    ReportLockedError       -> 409
    InvalidTransitionError  -> 409
    AuditFailedError        -> 422 (body carries the audit errors)
    GenerationError         -> 502
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from execbrief import __version__
from execbrief.api import api_router
from execbrief.core.config import get_settings
from execbrief.core.database import init_db, close_db
from execbrief.core.dependencies import close_brief_generator
from execbrief.core.exceptions import (
    AuditFailedError,
    ExecBriefError,
    GenerationError,
    InsufficientDataError,
    InvalidTransitionError,
    NotFoundError,
    ReportLockedError,
)
from execbrief.services.lifecycle import ensure_report_schema

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    On startup: initialize the connection pool and make sure the reports
    table exists. On shutdown: close the pool and the shared generation client.
    """
    logger.info("ExecBrief API starting")
    try:
        pool = await init_db()
        async with pool.acquire() as conn:
            await ensure_report_schema(conn)
        logger.info("Database connection pool initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        # Continue startup; /health stays available without a database

    yield

    logger.info("ExecBrief API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")

    try:
        await close_brief_generator()
    except Exception as e:
        logger.error(f"Error closing generation client: {e}")


app = FastAPI(
    title="ExecBrief API",
    version=__version__,
    description=(
        "Turns uploaded business-metric spreadsheets into ranked signals and "
        "audited executive briefs, with a draft -> reviewed -> final report lifecycle."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


# =============================================================================
# Error Mapping
# =============================================================================

ERROR_STATUS_CODES = {
    InsufficientDataError: 400,
    NotFoundError: 404,
    ReportLockedError: 409,
    InvalidTransitionError: 409,
    AuditFailedError: 422,
    GenerationError: 502,
}


@app.exception_handler(ExecBriefError)
async def execbrief_error_handler(request: Request, exc: ExecBriefError) -> JSONResponse:
    """Translate a core error into its HTTP status with a JSON detail."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    content = {"detail": str(exc)}
    if isinstance(exc, AuditFailedError):
        content["errors"] = exc.errors
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content=content)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancer probes."""
    return {"status": "healthy"}


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "execbrief.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
