"""
Brief Audit Service

Validates a generated brief before it may be written to a report. The auditor
is the only gate between generated content and persistence.

audit_brief() is pure: it never raises and never mutates its inputs. Every
problem becomes one entry in AuditResult.errors.

Exec Mode:
- key_signals: at most 6 entries; each entry naming a `metric` must name a
  catalogue metric
- recommended_actions: at most 3 entries, each with non-empty `action` text
  and a numeric `confidence`; confidence below 70 requires a non-empty
  `data_gap`
- Actions must be directive: they may not open with a hedging verb
- Contradiction: when the signal pack marks CAC as NEGATIVE, no action may
  mention both "increase" and "spend"

Explore Mode:
- `overview` must be a non-empty string
- `anomalies`, `possible_drivers`, `data_gaps`, `next_analyses` must be arrays
- anomalies naming a `metric` must name a catalogue metric
"""

import logging
import math
import re
from numbers import Real
from typing import Any, Dict, List

from execbrief.core.exceptions import AuditFailedError
from execbrief.models import (
    AuditResult,
    BriefMode,
    Health,
    SignalMetric,
    SignalPack,
)

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

MAX_KEY_SIGNALS: int = 6
MAX_RECOMMENDED_ACTIONS: int = 3
MIN_CONFIDENCE_WITHOUT_GAP: float = 70

BANNED_VERBS: List[str] = [
    'review',
    'explore',
    'consider',
    'monitor',
    'evaluate',
    'analyze',
    'look into',
]

EXPLORE_ARRAY_FIELDS: List[str] = [
    'anomalies',
    'possible_drivers',
    'data_gaps',
    'next_analyses',
]

_BANNED_OPENING = re.compile(
    r'^(?:' + '|'.join(r'\s+'.join(map(re.escape, verb.split())) for verb in BANNED_VERBS) + r')\b',
    re.IGNORECASE,
)

_CATALOGUE = {metric.value for metric in SignalMetric}


# =============================================================================
# RULE HELPERS
# =============================================================================

def starts_with_banned_verb(text: str) -> bool:
    """True if `text` opens with a hedging verb such as "Review" or "Look into"."""
    return bool(_BANNED_OPENING.match(text.strip()))


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def _check_metric_refs(entries: List[Any], field: str, errors: List[str]) -> None:
    for i, entry in enumerate(entries):
        if isinstance(entry, dict) and entry.get('metric') is not None:
            if str(entry['metric']) not in _CATALOGUE:
                errors.append(f"{field}[{i}] references unknown metric '{entry['metric']}'.")


def _audit_actions(actions: List[Any], cac_negative: bool, errors: List[str]) -> None:
    if len(actions) > MAX_RECOMMENDED_ACTIONS:
        errors.append(f"Too many recommended_actions (max {MAX_RECOMMENDED_ACTIONS}).")

    for i, action in enumerate(actions):
        if not isinstance(action, dict):
            errors.append(f"Action {i} is not an object.")
            continue

        text = action.get('action')
        if not isinstance(text, str) or not text.strip():
            errors.append(f"Action {i} missing action text.")
            text = ''
        elif starts_with_banned_verb(text):
            errors.append(f"Action {i} uses banned verb.")

        confidence = action.get('confidence')
        if not _is_number(confidence):
            errors.append(f"Action {i} missing numeric confidence.")
        elif confidence < MIN_CONFIDENCE_WITHOUT_GAP and _is_blank(action.get('data_gap')):
            errors.append(
                f"Action {i} confidence <{MIN_CONFIDENCE_WITHOUT_GAP:g} must include data_gap."
            )

        lowered = text.lower()
        if cac_negative and 'increase' in lowered and 'spend' in lowered:
            errors.append(
                f"Action {i} contradicts CAC signal (CAC negative but action increases spend)."
            )


def _audit_exec(brief: Dict[str, Any], signal_pack: SignalPack, errors: List[str]) -> None:
    key_signals = brief.get('key_signals')
    if key_signals is not None:
        if not isinstance(key_signals, list):
            errors.append("key_signals must be array.")
        else:
            if len(key_signals) > MAX_KEY_SIGNALS:
                errors.append(f"Too many key_signals (max {MAX_KEY_SIGNALS}).")
            _check_metric_refs(key_signals, 'key_signals', errors)

    actions = brief.get('recommended_actions')
    if actions is not None:
        if not isinstance(actions, list):
            errors.append("recommended_actions must be array.")
        else:
            cac_negative = signal_pack.health_of(SignalMetric.CAC) == Health.NEGATIVE
            _audit_actions(actions, cac_negative, errors)


def _audit_explore(brief: Dict[str, Any], errors: List[str]) -> None:
    overview = brief.get('overview')
    if not isinstance(overview, str) or not overview.strip():
        errors.append("Missing overview.")

    for field in EXPLORE_ARRAY_FIELDS:
        if not isinstance(brief.get(field), list):
            errors.append(f"{field} must be array.")

    if isinstance(brief.get('anomalies'), list):
        _check_metric_refs(brief['anomalies'], 'anomalies', errors)


# =============================================================================
# ENTRY POINTS
# =============================================================================

def audit_brief(brief: Any, signal_pack: SignalPack, mode: BriefMode) -> AuditResult:
    """
    Audit a generated brief against structural limits and the signal pack.

    Args:
        brief: Generated brief (expected to be a JSON object)
        signal_pack: Signal pack the brief was generated from
        mode: Brief shape to validate against

    Returns:
        AuditResult with ok=True only when no rule fired
    """
    if not isinstance(brief, dict):
        return AuditResult(ok=False, errors=["Output is not valid JSON object."])

    try:
        mode = BriefMode(mode)
    except ValueError:
        return AuditResult(ok=False, errors=[f"Unknown mode '{mode}'."])

    errors: List[str] = []
    if mode == BriefMode.EXPLORE:
        _audit_explore(brief, errors)
    else:
        _audit_exec(brief, signal_pack, errors)

    return AuditResult(ok=not errors, errors=errors)


def ensure_brief_passes(brief: Any, signal_pack: SignalPack, mode: BriefMode) -> AuditResult:
    """
    Audit a brief and raise if it is rejected.

    Raises:
        AuditFailedError: Carrying the full error list
    """
    result = audit_brief(brief, signal_pack, mode)
    if not result.ok:
        logger.warning(f"Brief rejected by audit ({mode}): {result.errors}")
        raise AuditFailedError(result.errors)
    return result
