"""
Metric Normalization Service

Maps arbitrary/aliased field names from two period snapshots onto the canonical
metric schema (execbrief.models.MetricKey) and computes the derived ratios.

The normalizer is a pure, total function: it never raises. Absent, blank or
non-numeric inputs become None and are propagated downstream, because partial
metric data is expected and must not abort the pipeline.

Field Aliasing (first present alias wins):
    revenue         <= revenue | sales | gmv
    marketing_spend <= marketing_spend | ad_spend | spend
    cac             <= cac
    ltv             <= ltv
    churn_rate      <= churn_rate | churn
    conversion_rate <= conversion_rate | cvr
    gross_margin    <= gross_margin | margin
    burn_rate       <= burn_rate | burn

Derived Metrics:
    revenue_growth = (revenue - previous revenue) / previous revenue
                     None if either side is None or previous revenue is 0
    ltv_cac_ratio  = ltv / cac, computed per period, None on missing or zero cac

Normalizing an already-normalized shape is a no-op: NormalizedMetrics exposes
`current`/`previous` views keyed by canonical names, which are their own
first alias.
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
from pydantic import BaseModel

from execbrief.models import (
    MetricKey,
    MetricUnit,
    NormalizedMetric,
    NormalizedMetrics,
)

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Alias Table
# =============================================================================

METRIC_ALIASES: Dict[MetricKey, Tuple[str, ...]] = {
    MetricKey.REVENUE: ('revenue', 'sales', 'gmv'),
    MetricKey.MARKETING_SPEND: ('marketing_spend', 'ad_spend', 'spend'),
    MetricKey.CAC: ('cac',),
    MetricKey.LTV: ('ltv',),
    MetricKey.CHURN_RATE: ('churn_rate', 'churn'),
    MetricKey.CONVERSION_RATE: ('conversion_rate', 'cvr'),
    MetricKey.GROSS_MARGIN: ('gross_margin', 'margin'),
    MetricKey.BURN_RATE: ('burn_rate', 'burn'),
}

METRIC_UNITS: Dict[MetricKey, MetricUnit] = {
    MetricKey.REVENUE: MetricUnit.CURRENCY,
    MetricKey.REVENUE_GROWTH: MetricUnit.RATIO,
    MetricKey.GROSS_MARGIN: MetricUnit.RATIO,
    MetricKey.BURN_RATE: MetricUnit.CURRENCY,
    MetricKey.MARKETING_SPEND: MetricUnit.CURRENCY,
    MetricKey.CAC: MetricUnit.CURRENCY,
    MetricKey.LTV: MetricUnit.CURRENCY,
    MetricKey.LTV_CAC_RATIO: MetricUnit.RATIO,
    MetricKey.CHURN_RATE: MetricUnit.RATIO,
    MetricKey.CONVERSION_RATE: MetricUnit.RATIO,
}

DEFAULT_CURRENCY: str = 'USD'

# Currency symbols, percent signs, thousands separators and whitespace
_NUMERIC_NOISE = re.compile(r'[$€£¥%,\s]')


# =============================================================================
# COERCION HELPERS
# =============================================================================

def to_number(value: Any) -> Optional[float]:
    """
    Coerce a scalar cell into a finite float.

    Strings are stripped of currency symbols, percent signs, commas and
    whitespace before parsing ("$1,200" -> 1200.0, "4.5%" -> 4.5).

    Returns:
        The parsed float, or None for None, empty strings, booleans,
        unparseable text, NaN, infinities and ints too large for a float.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, np.integer, np.floating)):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        text = _NUMERIC_NOISE.sub('', str(value))
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None

    return number if np.isfinite(number) else None


def safe_div(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """Divide, returning None when either side is missing or the denominator is 0."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    return numerator / denominator


def _as_mapping(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if isinstance(obj, Mapping):
        return dict(obj)
    return {}


def _pick(snapshot: Mapping[str, Any], aliases: Tuple[str, ...]) -> Optional[float]:
    """Return the coerced value of the first alias present (non-None) in `snapshot`."""
    for alias in aliases:
        if snapshot.get(alias) is not None:
            return to_number(snapshot[alias])
    return None


# =============================================================================
# NORMALIZER
# =============================================================================

def normalize(raw: Any) -> NormalizedMetrics:
    """
    Map a raw aggregate onto the canonical metric schema.

    Args:
        raw: A RawAggregate, a NormalizedMetrics, or any mapping with
            `current` / `previous` snapshots and optional `metadata` /
            `currency` keys. Anything else normalizes to an all-None schema.

    Returns:
        NormalizedMetrics with every MetricKey present. Currency metrics are
        tagged with the aggregate's currency (default USD).
    """
    if isinstance(raw, NormalizedMetrics):
        current = raw.current
        previous = raw.previous
        metadata = dict(raw.metadata)
    else:
        source = _as_mapping(raw)
        current = _as_mapping(source.get('current'))
        previous = _as_mapping(source.get('previous'))
        metadata = _as_mapping(source.get('metadata'))
        if source.get('currency') and not metadata.get('currency'):
            metadata['currency'] = source['currency']

    currency = metadata.get('currency') or DEFAULT_CURRENCY
    metadata['currency'] = currency

    values: Dict[MetricKey, Tuple[Optional[float], Optional[float]]] = {}
    for key, aliases in METRIC_ALIASES.items():
        values[key] = (_pick(current, aliases), _pick(previous, aliases))

    revenue, revenue_prev = values[MetricKey.REVENUE]
    ltv, ltv_prev = values[MetricKey.LTV]
    cac, cac_prev = values[MetricKey.CAC]

    values[MetricKey.REVENUE_GROWTH] = (
        safe_div(revenue - revenue_prev, revenue_prev) if revenue is not None and revenue_prev is not None else None,
        None,
    )
    values[MetricKey.LTV_CAC_RATIO] = (safe_div(ltv, cac), safe_div(ltv_prev, cac_prev))

    metrics: Dict[MetricKey, NormalizedMetric] = {}
    for key in MetricKey:
        value, previous_value = values[key]
        unit = METRIC_UNITS[key]
        metrics[key] = NormalizedMetric(
            value=value,
            previous_value=previous_value,
            unit=unit,
            currency=currency if unit == MetricUnit.CURRENCY else None,
        )

    missing = [key.value for key, metric in metrics.items() if metric.value is None]
    if missing:
        logger.debug(f"Normalized metrics without current data: {missing}")

    return NormalizedMetrics(metrics=metrics, metadata=metadata)
