"""
Package initialization file for ExecBrief models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from execbrief.models directly.

Usage:
    from execbrief.models import (
        SignalMetric,
        Health,
        NormalizedMetrics,
        SignalPack,
        Report,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from execbrief.models.enums import (
    MetricKey,
    SignalMetric,
    MetricUnit,
    Health,
    Severity,
    Direction,
    ReportState,
    BriefMode,
)


# =============================================================================
# Schemas
# =============================================================================

from execbrief.models.schemas import (
    # Upload ingress
    FileBlob,
    # Parser / Aggregator
    PeriodSnapshot,
    PeriodRange,
    AggregateMetadata,
    RawAggregate,
    # Normalizer
    NormalizedMetric,
    NormalizedMetrics,
    # Signal Ranker
    Signal,
    SignalPack,
    # Brief Auditor
    AuditResult,
    # Lifecycle
    Principal,
    Report,
    ReportListItem,
    # API bodies
    ReportUpdateRequest,
    ReportMetadataRequest,
    BriefRequest,
    ReportResponse,
    ReportListResponse,
    UploadResponse,
    BriefResponse,
)


__all__ = [
    # Enums
    'MetricKey',
    'SignalMetric',
    'MetricUnit',
    'Health',
    'Severity',
    'Direction',
    'ReportState',
    'BriefMode',
    # Schemas
    'FileBlob',
    'PeriodSnapshot',
    'PeriodRange',
    'AggregateMetadata',
    'RawAggregate',
    'NormalizedMetric',
    'NormalizedMetrics',
    'Signal',
    'SignalPack',
    'AuditResult',
    'Principal',
    'Report',
    'ReportListItem',
    'ReportUpdateRequest',
    'ReportMetadataRequest',
    'BriefRequest',
    'ReportResponse',
    'ReportListResponse',
    'UploadResponse',
    'BriefResponse',
]
