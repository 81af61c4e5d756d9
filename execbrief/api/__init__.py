"""
Backend API package initialization.

This package contains FastAPI router modules for the ExecBrief backend:
- reports: upload, draft editing, lifecycle transitions and brief generation
"""

from fastapi import APIRouter

from execbrief.api.reports import router as reports_router

# Create main API router
api_router = APIRouter()

api_router.include_router(reports_router, prefix="/reports", tags=["reports"])

__all__ = [
    "api_router",
    "reports_router",
]
