"""
Prompt construction for the brief generation backend.

The core only assembles the prompt payload: the ranked signal pack, the user's
business context and the mode-specific output contract. Everything the model
is told about the business comes from the signal pack (and, for exec briefs,
the normalized metrics), so it cannot reason about metrics outside the
catalogue.
"""

import json
from typing import Optional

from execbrief.models import BriefMode, NormalizedMetrics, SignalPack

EXEC_OUTPUT_CONTRACT = {
    "headline": "one sentence stating the most important change",
    "summary": "2-3 sentences for a CEO",
    "key_signals": [
        {
            "metric": "catalogue metric name",
            "observation": "what changed and by how much",
            "implication": "why it matters",
        }
    ],
    "recommended_actions": [
        {
            "action": "directive verb first, e.g. 'Cut', 'Shift', 'Hire'",
            "rationale": "signal(s) supporting the action",
            "confidence": 0,
            "data_gap": "required when confidence < 70",
        }
    ],
}

EXPLORE_OUTPUT_CONTRACT = {
    "overview": "2-3 sentences describing what stands out and why it matters",
    "anomalies": [
        {
            "metric": "catalogue metric name",
            "observation": "what changed and how",
            "why_unusual": "why this stands out historically or comparatively",
        }
    ],
    "possible_drivers": [
        {
            "hypothesis": "plausible explanation",
            "supporting_signal": "metric name",
            "confidence": "low | medium | high",
        }
    ],
    "data_gaps": ["specific missing data that would improve certainty"],
    "next_analyses": ["specific follow-up analysis to run"],
}


def _signals_json(signal_pack: SignalPack) -> str:
    return json.dumps(signal_pack.model_dump(mode="json")["signals"], indent=2)


def build_exec_prompt(
    signal_pack: SignalPack,
    normalized: Optional[NormalizedMetrics] = None,
    context: Optional[str] = None,
) -> str:
    """Prompt for a directive executive brief."""
    metrics = normalized.model_dump(mode="json")["metrics"] if normalized else {}
    return f"""
ROLE
You are a ruthless executive consultant advising a CEO.

OBJECTIVE
Turn the ranked signals into a short executive brief with at most 3 directive actions.

CONTEXT
{context or "None"}

METRICS
{json.dumps(metrics, indent=2)}

SIGNALS (already ranked, most urgent first)
{_signals_json(signal_pack)}

RULES
- Reference only the metrics listed in SIGNALS.
- Max 6 key_signals, max 3 recommended_actions.
- Actions must start with a directive verb. Never start with review, explore,
  consider, monitor, evaluate, analyze or look into.
- Confidence is a number from 0 to 100. Below 70, state the data_gap.
- Never recommend increasing spend while CAC is NEGATIVE.
- Do NOT invent data.

OUTPUT FORMAT (STRICT JSON ONLY)
{json.dumps(EXEC_OUTPUT_CONTRACT, indent=2)}
"""


def build_explore_prompt(signal_pack: SignalPack, context: Optional[str] = None) -> str:
    """Prompt for an exploratory, diagnostic brief (no recommendations)."""
    return f"""
ROLE
You are a Lead Data Scientist advising a CEO.

OBJECTIVE
Perform an exploratory and diagnostic analysis.
Identify non-obvious patterns, anomalies, and plausible explanations.
Do NOT summarize. Do NOT recommend actions.

INPUT DATA
Signals (already ranked by severity):
{_signals_json(signal_pack)}

User Context:
{context or "No additional context provided."}

RULES
- Focus on anomalies, correlations, and deviations.
- Prioritize negative or unexpected movements.
- Do NOT invent data.
- If information is missing, explicitly state the gap.
- Use neutral, analytical language.

OUTPUT FORMAT (STRICT JSON ONLY)
{json.dumps(EXPLORE_OUTPUT_CONTRACT, indent=2)}
"""


def build_prompt(
    mode: BriefMode,
    signal_pack: SignalPack,
    normalized: Optional[NormalizedMetrics] = None,
    context: Optional[str] = None,
) -> str:
    """Dispatch to the prompt builder for `mode`."""
    if BriefMode(mode) == BriefMode.EXPLORE:
        return build_explore_prompt(signal_pack, context)
    return build_exec_prompt(signal_pack, normalized, context)
