"""
FastAPI router for report upload, editing, lifecycle transitions and briefs.

Key Endpoints:
- POST /reports/upload - Parse uploaded files into a new draft report
- GET /reports - List the caller's reports, most recently updated first
- GET /reports/{report_id} - Report detail
- POST /reports/{report_id}/update - Overwrite draft content
- POST /reports/{report_id}/metadata - Merge into draft metadata
- POST /reports/{report_id}/review - draft -> reviewed
- POST /reports/{report_id}/finalize - reviewed -> final
- POST /reports/{report_id}/regenerate - New draft branched off a locked report
- POST /reports/{report_id}/brief - Generate, audit and store a brief

Handlers only translate HTTP to service calls. Guard failures raised by the
services (NotFoundError, ReportLockedError, ...) are mapped to status codes by
the exception handlers registered in execbrief.main.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile

from execbrief.core.dependencies import (
    GeneratorDep,
    LifecycleDep,
    PrincipalDep,
    SettingsDep,
)
from execbrief.models import (
    BriefRequest,
    BriefResponse,
    FileBlob,
    ReportListResponse,
    ReportMetadataRequest,
    ReportResponse,
    ReportUpdateRequest,
    UploadResponse,
)
from execbrief.services.briefing import create_report_from_upload, generate_report_brief


logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Upload
# =============================================================================


@router.post("/upload", response_model=UploadResponse)
async def upload_report(
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
    settings: SettingsDep,
    files: List[UploadFile] = File(...),
    currency: Optional[str] = Query(default=None, min_length=3, max_length=3),
) -> UploadResponse:
    """
    Create a draft report from one or more CSV/XLSX files.

    Unsupported or unreadable files are skipped (and listed in the report's
    metadata); the upload fails only if fewer than two dated rows survive.

    Raises:
        HTTPException 400: No files, too many files, or insufficient data.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > settings.max_upload_files:
        logger.warning(
            f"Upload rejected: {len(files)} files exceeds limit of {settings.max_upload_files}"
        )
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.max_upload_files} files per upload",
        )

    blobs = []
    for upload in files:
        content = await upload.read()
        blobs.append(
            FileBlob(
                mimetype=upload.content_type or "",
                originalname=upload.filename or "",
                content=content,
            )
        )

    report, signal_pack = await create_report_from_upload(
        lifecycle,
        principal,
        blobs,
        currency=(currency or settings.default_currency).upper(),
    )
    return UploadResponse(report_id=report.id, signals=signal_pack)


# =============================================================================
# Reads
# =============================================================================


@router.get("", response_model=ReportListResponse)
async def list_reports(
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
) -> ReportListResponse:
    """List the caller's reports ordered by updated_at, newest first."""
    reports = await lifecycle.list_reports(principal)
    return ReportListResponse(reports=reports)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
) -> ReportResponse:
    report = await lifecycle.get(principal, report_id)
    return ReportResponse(report=report)


# =============================================================================
# Draft Editing
# =============================================================================


@router.post("/{report_id}/update", response_model=ReportResponse)
async def update_report(
    report_id: str,
    body: ReportUpdateRequest,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
) -> ReportResponse:
    """Overwrite the content of a draft. 409 once reviewed or final."""
    report = await lifecycle.update(principal, report_id, body.data_json)
    return ReportResponse(report=report)


@router.post("/{report_id}/metadata", response_model=ReportResponse)
async def update_report_metadata(
    report_id: str,
    body: ReportMetadataRequest,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
) -> ReportResponse:
    """Shallow-merge keys into data_json.metadata of a draft."""
    report = await lifecycle.update_metadata(principal, report_id, body.metadata)
    return ReportResponse(report=report)


# =============================================================================
# Lifecycle Transitions
# =============================================================================


@router.post("/{report_id}/review", response_model=ReportResponse)
async def review_report(
    report_id: str,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
) -> ReportResponse:
    report = await lifecycle.review(principal, report_id)
    return ReportResponse(report=report)


@router.post("/{report_id}/finalize", response_model=ReportResponse)
async def finalize_report(
    report_id: str,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
) -> ReportResponse:
    report = await lifecycle.finalize(principal, report_id)
    return ReportResponse(report=report)


@router.post("/{report_id}/regenerate", response_model=ReportResponse)
async def regenerate_report(
    report_id: str,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
) -> ReportResponse:
    """
    Branch a new draft off a reviewed or final report.

    The response carries the NEW report; its parent_report_id points at
    `report_id`, which is left unchanged.
    """
    report = await lifecycle.regenerate(principal, report_id)
    return ReportResponse(report=report)


# =============================================================================
# Brief Generation
# =============================================================================


@router.post("/{report_id}/brief", response_model=BriefResponse)
async def generate_brief(
    report_id: str,
    principal: PrincipalDep,
    lifecycle: LifecycleDep,
    generator: GeneratorDep,
    body: Optional[BriefRequest] = None,
) -> BriefResponse:
    """
    Generate a brief for a draft report and store it if it passes audit.

    Raises (via exception handlers):
        409: Report is not a draft
        422: Brief failed audit (body lists the audit errors)
        502: Generation backend failed or timed out
    """
    body = body or BriefRequest()
    report, audit = await generate_report_brief(
        lifecycle,
        generator,
        principal,
        report_id,
        mode=body.mode,
        context=body.context,
    )
    return BriefResponse(report=report, audit=audit)
