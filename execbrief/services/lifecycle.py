"""
Report Lifecycle Service

Owns the editorial state machine of a report and its regeneration lineage.

States: draft (initial) -> reviewed -> final (terminal)

| Operation       | Guard              | Effect                                         |
|-----------------|--------------------|------------------------------------------------|
| create          | -                  | new draft, no parent                           |
| update          | state == draft     | overwrite data_json, bump updated_at           |
| update_metadata | state == draft     | merge into data_json["metadata"]               |
| review          | state == draft     | state -> reviewed, set reviewed_at             |
| finalize        | state == reviewed  | state -> final, set finalized_at               |
| regenerate      | state != draft     | NEW draft copying data_json, parent -> source  |

Failures:
- update / update_metadata on a non-draft -> ReportLockedError
- review / finalize / regenerate guard failure -> InvalidTransitionError
- missing report OR report owned by someone else -> NotFoundError

Every guard is enforced by the store as one conditional write (compare-and-swap
on `state`), so two concurrent reviews cannot both succeed and a finalize
cannot race a regenerate. No application-level locks are used. The acting
principal is passed explicitly into every call.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol
from uuid import uuid4

from asyncpg import Connection

from execbrief.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    ReportLockedError,
)
from execbrief.models import Principal, Report, ReportListItem, ReportState
from execbrief.sql import (
    CREATE_REPORTS_TABLE,
    INSERT_REGENERATED,
    INSERT_REPORT,
    LIST_REPORTS,
    MARK_FINAL,
    MARK_REVIEWED,
    MERGE_DRAFT_METADATA,
    SELECT_REPORT,
    UPDATE_DRAFT_CONTENT,
)

logger = logging.getLogger(__name__)

# target state -> required source state
TRANSITIONS: Dict[ReportState, ReportState] = {
    ReportState.REVIEWED: ReportState.DRAFT,
    ReportState.FINAL: ReportState.REVIEWED,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# STORE
# =============================================================================


class ReportStore(Protocol):
    """
    Persistence contract required by the lifecycle manager.

    Conditional methods return None when their guard (ownership + state) does
    not hold; they never raise for a failed guard.
    """

    async def fetch(self, report_id: str, owner_id: str) -> Optional[Report]: ...

    async def list_for_owner(self, owner_id: str) -> List[ReportListItem]: ...

    async def insert(
        self, report_id: str, owner_id: str, data_json: Dict[str, Any], now: datetime
    ) -> Report: ...

    async def update_content_if_draft(
        self, report_id: str, owner_id: str, data_json: Dict[str, Any], now: datetime
    ) -> Optional[Report]: ...

    async def merge_metadata_if_draft(
        self, report_id: str, owner_id: str, metadata: Dict[str, Any], now: datetime
    ) -> Optional[Report]: ...

    async def transition(
        self, report_id: str, owner_id: str, target: ReportState, now: datetime
    ) -> Optional[Report]: ...

    async def insert_regenerated(
        self, new_id: str, source_id: str, owner_id: str, now: datetime
    ) -> Optional[Report]: ...


class PostgresReportStore:
    """ReportStore over an asyncpg connection; each guard is a single statement."""

    _TRANSITION_QUERIES: Dict[ReportState, str] = {
        ReportState.REVIEWED: MARK_REVIEWED,
        ReportState.FINAL: MARK_FINAL,
    }

    def __init__(self, conn: Connection):
        self.conn = conn

    @staticmethod
    def _report(row: Any) -> Optional[Report]:
        return Report.from_record(row) if row is not None else None

    async def fetch(self, report_id: str, owner_id: str) -> Optional[Report]:
        row = await self.conn.fetchrow(SELECT_REPORT, report_id, owner_id)
        return self._report(row)

    async def list_for_owner(self, owner_id: str) -> List[ReportListItem]:
        rows = await self.conn.fetch(LIST_REPORTS, owner_id)
        return [
            ReportListItem(
                id=str(row["id"]),
                state=ReportState(row["state"]),
                parent_report_id=row["parent_report_id"],
                updated_at=row["updated_at"],
                reviewed_at=row["reviewed_at"],
                finalized_at=row["finalized_at"],
            )
            for row in rows
        ]

    async def insert(
        self, report_id: str, owner_id: str, data_json: Dict[str, Any], now: datetime
    ) -> Report:
        row = await self.conn.fetchrow(
            INSERT_REPORT, report_id, owner_id, json.dumps(data_json), now
        )
        return Report.from_record(row)

    async def update_content_if_draft(
        self, report_id: str, owner_id: str, data_json: Dict[str, Any], now: datetime
    ) -> Optional[Report]:
        row = await self.conn.fetchrow(
            UPDATE_DRAFT_CONTENT, report_id, owner_id, json.dumps(data_json), now
        )
        return self._report(row)

    async def merge_metadata_if_draft(
        self, report_id: str, owner_id: str, metadata: Dict[str, Any], now: datetime
    ) -> Optional[Report]:
        row = await self.conn.fetchrow(
            MERGE_DRAFT_METADATA, report_id, owner_id, json.dumps(metadata), now
        )
        return self._report(row)

    async def transition(
        self, report_id: str, owner_id: str, target: ReportState, now: datetime
    ) -> Optional[Report]:
        row = await self.conn.fetchrow(
            self._TRANSITION_QUERIES[target], report_id, owner_id, now
        )
        return self._report(row)

    async def insert_regenerated(
        self, new_id: str, source_id: str, owner_id: str, now: datetime
    ) -> Optional[Report]:
        row = await self.conn.fetchrow(
            INSERT_REGENERATED, new_id, source_id, owner_id, now
        )
        return self._report(row)


async def ensure_report_schema(conn: Connection) -> None:
    """Create the reports table if it does not exist."""
    await conn.execute(CREATE_REPORTS_TABLE)


# =============================================================================
# LIFECYCLE MANAGER
# =============================================================================


class ReportLifecycle:
    """
    Guarded operations on reports for one acting principal per call.

    Args:
        store: Report persistence
        clock: Returns the current time (timezone-aware)
        id_factory: Returns a fresh report id
    """

    def __init__(
        self,
        store: ReportStore,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    async def _require(self, principal: Principal, report_id: str) -> Report:
        report = await self.store.fetch(report_id, principal.id)
        if report is None:
            logger.warning(f"Report {report_id} not found for principal {principal.id}")
            raise NotFoundError(report_id)
        return report

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, principal: Principal, report_id: str) -> Report:
        """Return the report if it exists and is owned by `principal`."""
        return await self._require(principal, report_id)

    async def list_reports(self, principal: Principal) -> List[ReportListItem]:
        """Reports owned by `principal`, most recently updated first."""
        return await self.store.list_for_owner(principal.id)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def create(self, principal: Principal, data_json: Dict[str, Any]) -> Report:
        """Create a new draft report with no parent."""
        report = await self.store.insert(
            self.id_factory(), principal.id, data_json, self.clock()
        )
        logger.info(f"Created draft report {report.id} for principal {principal.id}")
        return report

    async def update(
        self, principal: Principal, report_id: str, data_json: Dict[str, Any]
    ) -> Report:
        """
        Overwrite the content of a draft.

        Raises:
            NotFoundError: Missing or not owned
            ReportLockedError: Report is reviewed or final
        """
        report = await self.store.update_content_if_draft(
            report_id, principal.id, data_json, self.clock()
        )
        if report is None:
            current = await self._require(principal, report_id)
            logger.warning(f"Update rejected: report {report_id} is {current.state.value}")
            raise ReportLockedError(report_id, current.state.value)
        logger.info(f"Updated draft report {report_id}")
        return report

    async def update_metadata(
        self, principal: Principal, report_id: str, metadata: Dict[str, Any]
    ) -> Report:
        """
        Shallow-merge `metadata` into data_json["metadata"] of a draft.

        Raises:
            NotFoundError: Missing or not owned
            ReportLockedError: Report is reviewed or final
        """
        report = await self.store.merge_metadata_if_draft(
            report_id, principal.id, metadata, self.clock()
        )
        if report is None:
            current = await self._require(principal, report_id)
            logger.warning(f"Metadata update rejected: report {report_id} is {current.state.value}")
            raise ReportLockedError(report_id, current.state.value)
        return report

    async def _transition(
        self, principal: Principal, report_id: str, target: ReportState, action: str
    ) -> Report:
        report = await self.store.transition(report_id, principal.id, target, self.clock())
        if report is None:
            current = await self._require(principal, report_id)
            logger.warning(
                f"{action} rejected: report {report_id} is {current.state.value}, "
                f"requires {TRANSITIONS[target].value}"
            )
            raise InvalidTransitionError(report_id, action, current.state.value)
        logger.info(f"Report {report_id} -> {target.value}")
        return report

    async def review(self, principal: Principal, report_id: str) -> Report:
        """draft -> reviewed."""
        return await self._transition(principal, report_id, ReportState.REVIEWED, "review")

    async def finalize(self, principal: Principal, report_id: str) -> Report:
        """reviewed -> final."""
        return await self._transition(principal, report_id, ReportState.FINAL, "finalize")

    async def regenerate(self, principal: Principal, report_id: str) -> Report:
        """
        Branch a new draft off a locked report.

        The source report is left untouched; the new draft copies its
        data_json and points back to it through parent_report_id.

        Raises:
            NotFoundError: Missing or not owned
            InvalidTransitionError: Source is still a draft
        """
        report = await self.store.insert_regenerated(
            self.id_factory(), report_id, principal.id, self.clock()
        )
        if report is None:
            current = await self._require(principal, report_id)
            logger.warning(f"regenerate rejected: report {report_id} is {current.state.value}")
            raise InvalidTransitionError(report_id, "regenerate", current.state.value)
        logger.info(f"Regenerated report {report_id} as draft {report.id}")
        return report
