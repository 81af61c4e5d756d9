"""
Backend Services Module

Business logic for the ExecBrief pipeline. Every service except the lifecycle
manager is a pure function over its inputs.

Services (dependency order, leaves first):
- ingestion: upload parsing and midpoint period aggregation
- normalization: alias mapping, numeric coercion, derived ratios
- signals: period-over-period classification and fire-first ranking
- audit: structural and contradiction checks on generated briefs
- prompts: prompt construction per brief mode
- generation: OpenAI-backed brief generator
- lifecycle: report state machine over a conditional-write store
- briefing: end-to-end upload and brief pipelines

All services are consumed by the API layer (execbrief/api/).
"""

# =============================================================================
# Ingestion Service Exports
# =============================================================================

from execbrief.services.ingestion import (
    parse_upload_files,
    read_blob,
    aggregate,
    build_time_based_aggregate,
)

# =============================================================================
# Normalization Service Exports
# =============================================================================

from execbrief.services.normalization import (
    normalize,
    to_number,
    safe_div,
    METRIC_ALIASES,
)

# =============================================================================
# Signal Ranking Service Exports
# =============================================================================

from execbrief.services.signals import (
    build_signals,
    build_signal,
    calculate_change,
    classify_change,
    SIGNAL_TIERS,
    MAX_SIGNALS,
)

# =============================================================================
# Audit Service Exports
# =============================================================================

from execbrief.services.audit import (
    audit_brief,
    ensure_brief_passes,
    BANNED_VERBS,
)

# =============================================================================
# Prompt and Generation Exports
# =============================================================================

from execbrief.services.prompts import (
    build_prompt,
    build_exec_prompt,
    build_explore_prompt,
)

from execbrief.services.generation import (
    BriefGenerator,
    OpenAIBriefGenerator,
    parse_brief_json,
)

# =============================================================================
# Lifecycle Service Exports
# =============================================================================

from execbrief.services.lifecycle import (
    ReportLifecycle,
    ReportStore,
    PostgresReportStore,
    ensure_report_schema,
)

# =============================================================================
# Pipeline Exports
# =============================================================================

from execbrief.services.briefing import (
    analyze_upload,
    create_report_from_upload,
    generate_report_brief,
)


__all__ = [
    # Ingestion
    'parse_upload_files',
    'read_blob',
    'aggregate',
    'build_time_based_aggregate',
    # Normalization
    'normalize',
    'to_number',
    'safe_div',
    'METRIC_ALIASES',
    # Signals
    'build_signals',
    'build_signal',
    'calculate_change',
    'classify_change',
    'SIGNAL_TIERS',
    'MAX_SIGNALS',
    # Audit
    'audit_brief',
    'ensure_brief_passes',
    'BANNED_VERBS',
    # Prompts / generation
    'build_prompt',
    'build_exec_prompt',
    'build_explore_prompt',
    'BriefGenerator',
    'OpenAIBriefGenerator',
    'parse_brief_json',
    # Lifecycle
    'ReportLifecycle',
    'ReportStore',
    'PostgresReportStore',
    'ensure_report_schema',
    # Pipelines
    'analyze_upload',
    'create_report_from_upload',
    'generate_report_brief',
]
