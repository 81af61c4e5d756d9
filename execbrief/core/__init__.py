"""
Core infrastructure package for the ExecBrief backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL database connectivity via asyncpg
- The error taxonomy raised by the services layer

FastAPI dependencies live in execbrief.core.dependencies and are imported
from there directly, since they depend on the services layer.

    from execbrief.core import get_settings, get_db_pool, NotFoundError

Usage Examples:
    # Database pool lifecycle (in FastAPI lifespan)
    from execbrief.core import init_db, close_db

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db()
        yield
        await close_db()
"""

# =============================================================================
# Re-exports from execbrief.core.config
# =============================================================================
from execbrief.core.config import Settings, get_settings

# =============================================================================
# Re-exports from execbrief.core.database
# =============================================================================
from execbrief.core.database import init_db, close_db, get_db_pool

# =============================================================================
# Re-exports from execbrief.core.exceptions
# =============================================================================
from execbrief.core.exceptions import (
    ExecBriefError,
    InsufficientDataError,
    NotFoundError,
    ReportLockedError,
    InvalidTransitionError,
    AuditFailedError,
    GenerationError,
)


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    # Error taxonomy (from exceptions.py)
    'ExecBriefError',
    'InsufficientDataError',
    'NotFoundError',
    'ReportLockedError',
    'InvalidTransitionError',
    'AuditFailedError',
    'GenerationError',
]
