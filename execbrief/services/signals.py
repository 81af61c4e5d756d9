"""
Signal Ranking Service

Computes period-over-period change and health for each metric in the closed
signal catalogue, orders the resulting signals "fire-first", and truncates
them to the executive limit.

Catalogue (SignalMetric) and tiers:
- Tier 1 (top-line): revenue, revenue_growth, gross_margin, burn_rate
- Tier 2 (secondary): cac, ltv, ltv_cac_ratio, churn_rate, conversion_rate

The catalogue is the only vocabulary the brief generator may reason about;
marketing_spend is normalized but never emitted as a signal.

Classification:
- change_pct = (current - previous) / previous * 100, None if previous is None or 0
- change_pct None -> STABLE; <= -3 -> NEGATIVE; >= +3 -> POSITIVE; else STABLE
- Severity: NEGATIVE -> HIGH, POSITIVE -> LOW, STABLE -> MEDIUM

Ordering:
1. NEGATIVE before everything else (POSITIVE and STABLE share a rank)
2. Tier 1 before tier 2
3. Larger |change_pct| first, None counted as 0
Ties keep catalogue order. At most MAX_SIGNALS are returned.
"""

import logging
from typing import Dict, List, Optional, Tuple

from execbrief.models import (
    Direction,
    Health,
    NormalizedMetrics,
    Severity,
    Signal,
    SignalMetric,
    SignalPack,
)

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

# Catalogue order doubles as the final tie-breaker
SIGNAL_TIERS: Dict[SignalMetric, int] = {
    SignalMetric.REVENUE: 1,
    SignalMetric.REVENUE_GROWTH: 1,
    SignalMetric.GROSS_MARGIN: 1,
    SignalMetric.BURN_RATE: 1,
    SignalMetric.CAC: 2,
    SignalMetric.LTV: 2,
    SignalMetric.LTV_CAC_RATIO: 2,
    SignalMetric.CHURN_RATE: 2,
    SignalMetric.CONVERSION_RATE: 2,
}

# Noise band in percent
CHANGE_THRESHOLD_PCT: float = 3.0

# Hard cap on signals handed to the generator
MAX_SIGNALS: int = 6

SEVERITY_BY_HEALTH: Dict[Health, Severity] = {
    Health.NEGATIVE: Severity.HIGH,
    Health.POSITIVE: Severity.LOW,
    Health.STABLE: Severity.MEDIUM,
}


# =============================================================================
# CLASSIFICATION
# =============================================================================

def calculate_change(current: float, previous: Optional[float]) -> Optional[float]:
    """Percentage change from `previous` to `current`; None if previous is None or 0."""
    if previous is None or previous == 0:
        return None
    return (current - previous) / previous * 100


def classify_change(change_pct: Optional[float]) -> Health:
    """Classify a percentage change against the fixed noise band."""
    if change_pct is None:
        return Health.STABLE
    if change_pct <= -CHANGE_THRESHOLD_PCT:
        return Health.NEGATIVE
    if change_pct >= CHANGE_THRESHOLD_PCT:
        return Health.POSITIVE
    return Health.STABLE


def _direction(change_pct: Optional[float]) -> Direction:
    if change_pct is None or change_pct == 0:
        return Direction.FLAT
    return Direction.UP if change_pct > 0 else Direction.DOWN


def rank_key(signal: Signal) -> Tuple[int, int, float]:
    """Sort key implementing the fire-first ordering."""
    return (
        0 if signal.health == Health.NEGATIVE else 1,
        signal.tier,
        -abs(signal.change_pct or 0.0),
    )


# =============================================================================
# SIGNAL PACK
# =============================================================================

def build_signal(metric: SignalMetric, current: float, previous: Optional[float]) -> Signal:
    """Build one classified signal for a catalogue metric."""
    change_pct = calculate_change(current, previous)
    health = classify_change(change_pct)
    return Signal(
        metric=metric,
        tier=SIGNAL_TIERS[metric],
        current_value=current,
        previous_value=previous,
        change_pct=change_pct,
        health=health,
        direction=_direction(change_pct),
        severity=SEVERITY_BY_HEALTH[health],
    )


def build_signals(normalized: NormalizedMetrics) -> SignalPack:
    """
    Build the ranked signal pack from normalized metrics.

    Metrics without a current value are omitted entirely.

    Args:
        normalized: Output of the normalizer

    Returns:
        SignalPack with at most MAX_SIGNALS signals, fire-first ordered
    """
    current = normalized.current
    previous = normalized.previous

    signals: List[Signal] = []
    for metric in SIGNAL_TIERS:
        value = current.get(metric.value)
        if value is None:
            continue
        signals.append(build_signal(metric, value, previous.get(metric.value)))

    ranked = sorted(signals, key=rank_key)

    if len(ranked) > MAX_SIGNALS:
        logger.info(
            f"Truncating signal pack from {len(ranked)} to {MAX_SIGNALS}: "
            f"dropped {[s.metric.value for s in ranked[MAX_SIGNALS:]]}"
        )

    return SignalPack(signals=ranked[:MAX_SIGNALS])
