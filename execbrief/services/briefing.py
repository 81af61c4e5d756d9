"""
Brief Pipeline Service

Wires the pure components to the lifecycle manager:

Upload:   parse -> normalize -> rank signals -> create draft report
Generate: load draft -> rebuild signals -> build prompt -> generate -> audit
          -> write brief into the draft

The audit gate sits between generation and persistence: a brief that fails
audit raises AuditFailedError and nothing is written. Generation is only
attempted on drafts, since only drafts accept new content.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from execbrief.core.exceptions import ReportLockedError
from execbrief.models import (
    AuditResult,
    BriefMode,
    FileBlob,
    NormalizedMetrics,
    Principal,
    RawAggregate,
    Report,
    ReportState,
    SignalPack,
)
from execbrief.services.audit import ensure_brief_passes
from execbrief.services.generation import BriefGenerator
from execbrief.services.ingestion import parse_upload_files
from execbrief.services.lifecycle import ReportLifecycle
from execbrief.services.normalization import normalize
from execbrief.services.prompts import build_prompt
from execbrief.services.signals import build_signals

logger = logging.getLogger(__name__)

UPLOAD_NOTE: str = "Draft created via upload"


# =============================================================================
# PAYLOAD HELPERS
# =============================================================================

def build_report_payload(
    raw: RawAggregate,
    normalized: NormalizedMetrics,
    signal_pack: SignalPack,
) -> Dict[str, Any]:
    """JSON-ready data_json for a freshly uploaded report."""
    return {
        "filenames": list(raw.metadata.filenames),
        "note": UPLOAD_NOTE,
        "metadata": raw.metadata.model_dump(mode="json"),
        "metrics": normalized.model_dump(mode="json")["metrics"],
        "signals": signal_pack.model_dump(mode="json")["signals"],
    }


def metrics_from_payload(data_json: Dict[str, Any]) -> NormalizedMetrics:
    """
    Rebuild normalized metrics from a stored payload.

    Goes back through the normalizer, so a payload edited into an unexpected
    shape degrades to None values instead of failing.
    """
    stored = data_json.get("metrics")
    stored = stored if isinstance(stored, dict) else {}

    current: Dict[str, Any] = {}
    previous: Dict[str, Any] = {}
    for key, metric in stored.items():
        if isinstance(metric, dict):
            current[key] = metric.get("value")
            previous[key] = metric.get("previous_value")

    metadata = data_json.get("metadata")
    return normalize({
        "current": current,
        "previous": previous,
        "metadata": metadata if isinstance(metadata, dict) else {},
    })


# =============================================================================
# PIPELINES
# =============================================================================

def analyze_upload(
    files: Sequence[FileBlob],
    currency: str = "USD",
) -> Tuple[RawAggregate, NormalizedMetrics, SignalPack]:
    """
    Run the deterministic part of the pipeline.

    Raises:
        InsufficientDataError: Fewer than 2 dated rows across all files
    """
    raw = parse_upload_files(files, currency=currency)
    normalized = normalize(raw)
    signal_pack = build_signals(normalized)
    logger.info(
        f"Upload analyzed: {raw.metadata.row_count} dated rows, "
        f"{len(signal_pack.signals)} signals"
    )
    return raw, normalized, signal_pack


async def create_report_from_upload(
    lifecycle: ReportLifecycle,
    principal: Principal,
    files: Sequence[FileBlob],
    currency: str = "USD",
) -> Tuple[Report, SignalPack]:
    """
    Analyze an upload and store the result as a new draft report.

    Raises:
        InsufficientDataError: The upload is aborted and no report is created
    """
    raw, normalized, signal_pack = analyze_upload(files, currency=currency)
    report = await lifecycle.create(
        principal, build_report_payload(raw, normalized, signal_pack)
    )
    return report, signal_pack


async def generate_report_brief(
    lifecycle: ReportLifecycle,
    generator: BriefGenerator,
    principal: Principal,
    report_id: str,
    mode: BriefMode = BriefMode.EXEC,
    context: Optional[str] = None,
) -> Tuple[Report, AuditResult]:
    """
    Generate, audit and store a brief for a draft report.

    Returns:
        The updated report and the (passing) audit result

    Raises:
        NotFoundError: Missing or not owned
        ReportLockedError: Report is not a draft
        GenerationError: Backend failed or timed out
        AuditFailedError: Brief rejected; the report is left unchanged
    """
    mode = BriefMode(mode)
    report = await lifecycle.get(principal, report_id)
    if report.state != ReportState.DRAFT:
        raise ReportLockedError(report_id, report.state.value)

    normalized = metrics_from_payload(report.data_json)
    signal_pack = build_signals(normalized)

    prompt = build_prompt(mode, signal_pack, normalized, context)
    brief = await generator(prompt)

    audit = ensure_brief_passes(brief, signal_pack, mode)

    data_json = dict(report.data_json)
    data_json["brief"] = brief
    data_json["brief_mode"] = mode.value
    data_json["signals"] = signal_pack.model_dump(mode="json")["signals"]

    updated = await lifecycle.update(principal, report_id, data_json)
    logger.info(f"Stored {mode.value} brief on report {report_id}")
    return updated, audit
