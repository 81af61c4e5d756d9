"""
Enumeration definitions for the ExecBrief backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, so they serialize as their plain values in
API responses and in the report `data_json` payload.

Vocabularies:
- MetricKey: the ten canonical metric keys produced by the normalizer
- SignalMetric: the closed catalogue of nine metrics the signal ranker emits
  and the brief generator is allowed to reason about
- Health / Severity / Direction: signal classification labels
- MetricUnit: unit tag on normalized metrics
- ReportState: editorial lifecycle states
- BriefMode: shape of a generated brief
"""

from enum import Enum


class MetricKey(str, Enum):
    """
    Canonical metric keys of the normalized schema.

    Every key is always present in normalizer output; a key with no source
    data carries a null value rather than being dropped.
    """
    REVENUE = "revenue"
    REVENUE_GROWTH = "revenue_growth"
    GROSS_MARGIN = "gross_margin"
    BURN_RATE = "burn_rate"
    MARKETING_SPEND = "marketing_spend"
    CAC = "cac"
    LTV = "ltv"
    LTV_CAC_RATIO = "ltv_cac_ratio"
    CHURN_RATE = "churn_rate"
    CONVERSION_RATE = "conversion_rate"


class SignalMetric(str, Enum):
    """
    Closed signal catalogue.

    These are the ONLY metrics a brief may reference. Marketing spend is a
    normalized metric but deliberately not a signal. Tier assignment lives in
    execbrief.services.signals.SIGNAL_TIERS.
    """
    REVENUE = "revenue"
    REVENUE_GROWTH = "revenue_growth"
    GROSS_MARGIN = "gross_margin"
    BURN_RATE = "burn_rate"
    CAC = "cac"
    LTV = "ltv"
    LTV_CAC_RATIO = "ltv_cac_ratio"
    CHURN_RATE = "churn_rate"
    CONVERSION_RATE = "conversion_rate"


class MetricUnit(str, Enum):
    """Unit tag carried by every normalized metric."""
    CURRENCY = "currency"
    RATIO = "ratio"


class Health(str, Enum):
    """
    Period-over-period health of a signal.

    - NEGATIVE: change at or below -3%
    - POSITIVE: change at or above +3%
    - STABLE: inside the noise band, or change not computable
    """
    NEGATIVE = "NEGATIVE"
    POSITIVE = "POSITIVE"
    STABLE = "STABLE"


class Severity(str, Enum):
    """Severity derived one-to-one from Health."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Direction(str, Enum):
    """Sign of the period-over-period change."""
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class ReportState(str, Enum):
    """
    Editorial lifecycle of a report.

    draft -> reviewed -> final. No state is skipped and no transition moves
    backward; `final` is terminal.
    """
    DRAFT = "draft"
    REVIEWED = "reviewed"
    FINAL = "final"


class BriefMode(str, Enum):
    """
    Shape of a generated brief.

    - exec: directive executive brief with key signals and recommended actions
    - explore: diagnostic brief with anomalies, drivers, gaps and next analyses
    """
    EXEC = "exec"
    EXPLORE = "explore"
