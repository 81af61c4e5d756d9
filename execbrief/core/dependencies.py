"""
FastAPI dependency injection module for the ExecBrief backend.

Provides reusable dependencies for database sessions, configuration access,
the acting principal, and the service objects built on top of them. Endpoint
handlers declare what they need through the Annotated aliases below; tests
swap any of them out via `app.dependency_overrides`.

Key Dependencies Provided:
- get_db_session: Async generator yielding database connections from the pool
- get_settings_dependency: Returns the cached Settings singleton
- get_current_principal: Resolves the acting principal from the request
- get_report_lifecycle: ReportLifecycle bound to the request's connection
- get_brief_generator: Generation backend configured from Settings

Usage Examples:
    @router.post("/reports/{report_id}/review")
    async def review_report(
        report_id: str,
        principal: PrincipalDep,
        lifecycle: LifecycleDep,
    ) -> ReportResponse:
        report = await lifecycle.review(principal, report_id)
        return ReportResponse(report=report)

Note:
    Authentication itself is handled upstream (session layer / gateway); the
    backend trusts the X-Principal-Id header it forwards.
"""

from typing import AsyncGenerator, Annotated, Optional

from fastapi import Depends, Header, HTTPException
from asyncpg import Connection

from execbrief.core.config import Settings, get_settings
from execbrief.core.database import get_db_pool
from execbrief.models import Principal
from execbrief.services.generation import BriefGenerator, OpenAIBriefGenerator
from execbrief.services.lifecycle import PostgresReportStore, ReportLifecycle


# =============================================================================
# Database Session Dependency
# =============================================================================

async def get_db_session() -> AsyncGenerator[Connection, None]:
    """
    Yield an async database connection from the pool.

    The connection is released back to the pool when the endpoint completes,
    whether it succeeded or raised.

    Yields:
        asyncpg.Connection: An active database connection from the pool.

    Raises:
        RuntimeError: If the pool has not been initialized.
        asyncpg.PostgresError: If connection acquisition fails.
    """
    pool = await get_db_pool()
    async with pool.acquire() as connection:
        yield connection


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so that tests can do:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(db: DBSessionDep)
DBSessionDep = Annotated[Connection, Depends(get_db_session)]


# =============================================================================
# Principal Dependency
# =============================================================================

async def get_current_principal(
    x_principal_id: Annotated[Optional[str], Header()] = None,
    x_owner_scope: Annotated[Optional[str], Header()] = None,
) -> Principal:
    """
    Resolve the acting principal from the forwarded identity headers.

    Raises:
        HTTPException 401: If no principal id is present.
    """
    if not x_principal_id or not x_principal_id.strip():
        raise HTTPException(status_code=401, detail="Missing principal")
    return Principal(id=x_principal_id.strip(), owner_scope=x_owner_scope)


PrincipalDep = Annotated[Principal, Depends(get_current_principal)]


# =============================================================================
# Service Dependencies
# =============================================================================

async def get_report_lifecycle(db: DBSessionDep) -> ReportLifecycle:
    """ReportLifecycle backed by the request's pooled connection."""
    return ReportLifecycle(PostgresReportStore(db))


# Shared across requests; None until first use or after close_brief_generator()
_generator: Optional[OpenAIBriefGenerator] = None


def get_brief_generator(settings: SettingsDep) -> BriefGenerator:
    """
    Generation backend configured from settings.

    Built once and reused, so every request shares one OpenAI client and its
    connection pool. Without OPENAI_API_KEY the generator still resolves, but
    every call fails with GenerationError (HTTP 502).
    """
    global _generator

    if _generator is None:
        _generator = OpenAIBriefGenerator(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout_seconds=settings.generation_timeout_seconds,
        )

    return _generator


async def close_brief_generator() -> None:
    """Close the shared generator's client. Safe to call if none was built."""
    global _generator

    if _generator is not None:
        await _generator.aclose()
        _generator = None


LifecycleDep = Annotated[ReportLifecycle, Depends(get_report_lifecycle)]

GeneratorDep = Annotated[BriefGenerator, Depends(get_brief_generator)]
