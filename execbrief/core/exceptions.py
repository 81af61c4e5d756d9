"""
Error taxonomy for the ExecBrief core.

Services raise these exceptions; the FastAPI layer (execbrief.main) maps each
one onto an HTTP status code. Nothing in the core swallows them.

| Exception               | Raised by            | HTTP |
|-------------------------|----------------------|------|
| InsufficientDataError   | ingestion            | 400  |
| NotFoundError           | lifecycle            | 404  |
| ReportLockedError       | lifecycle            | 409  |
| InvalidTransitionError  | lifecycle            | 409  |
| AuditFailedError        | audit / briefing     | 422  |
| GenerationError         | generation           | 502  |

NotFoundError is raised both for a missing report and for a report owned by
someone else, so callers cannot probe for the existence of other users'
reports.
"""

from typing import List, Optional


class ExecBriefError(Exception):
    """Base class for all errors raised by the ExecBrief core."""


class InsufficientDataError(ExecBriefError):
    """Fewer than two dated rows survived parsing."""


class NotFoundError(ExecBriefError):
    """Report does not exist or is not owned by the acting principal."""

    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report {report_id} not found")


class ReportLockedError(ExecBriefError):
    """Content mutation attempted on a report that is no longer a draft."""

    def __init__(self, report_id: str, state: Optional[str] = None):
        self.report_id = report_id
        self.state = state
        super().__init__(
            f"Report {report_id} is locked (state={state}); only drafts can be edited"
        )


class InvalidTransitionError(ExecBriefError):
    """Lifecycle guard rejected a state transition."""

    def __init__(self, report_id: str, action: str, state: Optional[str] = None):
        self.report_id = report_id
        self.action = action
        self.state = state
        super().__init__(
            f"Cannot {action} report {report_id} in state {state}"
        )


class AuditFailedError(ExecBriefError):
    """Generated brief was rejected by the auditor."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Brief failed audit: {'; '.join(self.errors)}")


class GenerationError(ExecBriefError):
    """Generation backend failed, timed out, or returned an unusable payload."""
