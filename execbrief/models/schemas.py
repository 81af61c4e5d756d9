"""
Pydantic models for the ExecBrief backend.

This module provides type-safe data validation and serialization for the
pipeline's intermediate shapes and for the API contracts:

- Upload ingress: FileBlob
- Parser/Aggregator output: PeriodSnapshot, PeriodRange, AggregateMetadata, RawAggregate
- Normalizer output: NormalizedMetric, NormalizedMetrics
- Signal Ranker output: Signal, SignalPack
- Brief Auditor output: AuditResult
- Lifecycle: Principal, Report, ReportListItem
- API request/response bodies

Signals and normalized metrics are frozen: once produced they are never
mutated by downstream components.

All models use Pydantic v2 syntax.
"""

import json
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from execbrief.models.enums import (
    BriefMode,
    Direction,
    Health,
    MetricKey,
    MetricUnit,
    ReportState,
    Severity,
    SignalMetric,
)


# =============================================================================
# Upload Ingress
# =============================================================================


class FileBlob(BaseModel):
    """
    One uploaded file as handed over by the HTTP/upload layer.

    Only `mimetype` and `originalname` are used to decide how the bytes are
    parsed; unsupported files are skipped by the parser.
    """
    mimetype: str = Field(default="", description="MIME type reported by the client")
    originalname: str = Field(default="", description="Original client-side file name")
    content: bytes = Field(default=b"", description="Raw file bytes")


# =============================================================================
# Parser / Aggregator
# =============================================================================


class PeriodSnapshot(BaseModel):
    """
    Aggregated totals/averages for one time window.

    Summed fields (revenue, marketing_spend) treat missing or non-numeric cells
    as 0; averaged fields exclude them. A field whose column never appears in
    any row of the window is None, so "no source data" stays distinguishable
    from a genuine zero.

    Extra keys are allowed so that a snapshot can carry source aliases
    (e.g. `sales`, `gmv`) straight into the normalizer.
    """
    model_config = ConfigDict(extra="allow")

    revenue: Optional[float] = None
    marketing_spend: Optional[float] = None
    cac: Optional[float] = None
    ltv: Optional[float] = None
    churn_rate: Optional[float] = None
    conversion_rate: Optional[float] = None
    gross_margin: Optional[float] = None
    burn_rate: Optional[float] = None


class PeriodRange(BaseModel):
    """Date span and row count of one half of the upload."""
    start: date
    end: date
    rows: int = Field(..., ge=0)


class AggregateMetadata(BaseModel):
    """
    Provenance of an aggregate.

    The assumption strings describe the fixed midpoint split and travel with
    the report so that readers know how the periods were derived.
    """
    source: str = "upload"
    currency: str = "USD"
    confidence: str = "high"
    assumptions: List[str] = Field(default_factory=list)
    filenames: List[str] = Field(default_factory=list)
    skipped_files: List[str] = Field(default_factory=list)
    row_count: int = Field(default=0, ge=0)
    dropped_rows: int = Field(default=0, ge=0)
    previous_period: Optional[PeriodRange] = None
    current_period: Optional[PeriodRange] = None


class RawAggregate(BaseModel):
    """Two period snapshots plus provenance, ready for normalization."""
    current: PeriodSnapshot
    previous: PeriodSnapshot
    metadata: AggregateMetadata = Field(default_factory=AggregateMetadata)


# =============================================================================
# Normalizer
# =============================================================================


class NormalizedMetric(BaseModel):
    """
    One canonical metric with its value in both periods.

    `value` and `previous_value` are None when no source data exists; they
    are never defaulted to zero.
    """
    model_config = ConfigDict(frozen=True)

    value: Optional[float] = None
    previous_value: Optional[float] = None
    unit: MetricUnit
    currency: Optional[str] = None


class NormalizedMetrics(BaseModel):
    """
    Full normalized schema: every MetricKey is present.

    `current` and `previous` expose the flat per-period view consumed by the
    signal ranker. Passing a NormalizedMetrics back through the normalizer
    reproduces it unchanged.
    """
    model_config = ConfigDict(frozen=True)

    metrics: Dict[MetricKey, NormalizedMetric]
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def current(self) -> Dict[str, Optional[float]]:
        return {key.value: metric.value for key, metric in self.metrics.items()}

    @property
    def previous(self) -> Dict[str, Optional[float]]:
        return {key.value: metric.previous_value for key, metric in self.metrics.items()}


# =============================================================================
# Signal Ranker
# =============================================================================


class Signal(BaseModel):
    """
    A ranked, classified period-over-period change in one catalogue metric.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "metric": "cac",
                "tier": 2,
                "current_value": 130.0,
                "previous_value": 100.0,
                "change_pct": 30.0,
                "health": "POSITIVE",
                "direction": "up",
                "severity": "LOW",
            }
        },
    )

    metric: SignalMetric
    tier: Literal[1, 2]
    current_value: float
    previous_value: Optional[float] = None
    change_pct: Optional[float] = None
    health: Health
    direction: Direction
    severity: Severity


class SignalPack(BaseModel):
    """Ordered, bounded set of signals handed to the generation backend."""
    model_config = ConfigDict(frozen=True)

    signals: List[Signal] = Field(default_factory=list, max_length=6)

    def health_of(self, metric: SignalMetric) -> Optional[Health]:
        """Return the health of `metric` if it is part of the pack."""
        for signal in self.signals:
            if signal.metric == metric:
                return signal.health
        return None


# =============================================================================
# Brief Auditor
# =============================================================================


class AuditResult(BaseModel):
    """Outcome of auditing a generated brief."""
    ok: bool
    errors: List[str] = Field(default_factory=list)


# =============================================================================
# Report Lifecycle
# =============================================================================


class Principal(BaseModel):
    """
    Authenticated actor supplied by the session layer.

    The core only compares `id` against a report's `owner_id`.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    owner_scope: Optional[str] = None


class Report(BaseModel):
    """Persisted report wrapping an upload result and its brief."""
    id: str
    owner_id: str
    data_json: Dict[str, Any] = Field(default_factory=dict)
    state: ReportState = ReportState.DRAFT
    parent_report_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Any) -> "Report":
        """
        Build a Report from a database record (asyncpg.Record or mapping).

        `data_json` may arrive as a JSON string or an already-decoded dict.
        """
        row = dict(record)
        data = row.get("data_json")
        if isinstance(data, (str, bytes)):
            data = json.loads(data) if data else {}
        return cls(
            id=str(row["id"]),
            owner_id=str(row["owner_id"]),
            data_json=data or {},
            state=ReportState(row.get("state") or ReportState.DRAFT.value),
            parent_report_id=(
                str(row["parent_report_id"]) if row.get("parent_report_id") else None
            ),
            reviewed_at=row.get("reviewed_at"),
            finalized_at=row.get("finalized_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


class ReportListItem(BaseModel):
    """Summary row for the report list."""
    id: str
    state: ReportState
    parent_report_id: Optional[str] = None
    updated_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None


# =============================================================================
# API Request / Response Bodies
# =============================================================================


class ReportUpdateRequest(BaseModel):
    """Body of POST /reports/{id}/update."""
    data_json: Dict[str, Any]


class ReportMetadataRequest(BaseModel):
    """Body of POST /reports/{id}/metadata."""
    metadata: Dict[str, Any]


class BriefRequest(BaseModel):
    """Body of POST /reports/{id}/brief."""
    mode: BriefMode = BriefMode.EXEC
    context: Optional[str] = Field(
        default=None,
        max_length=4000,
        description="Free-text business context supplied by the user",
    )


class ReportResponse(BaseModel):
    report: Report


class ReportListResponse(BaseModel):
    reports: List[ReportListItem] = Field(default_factory=list)


class UploadResponse(BaseModel):
    report_id: str
    signals: SignalPack


class BriefResponse(BaseModel):
    report: Report
    audit: AuditResult
