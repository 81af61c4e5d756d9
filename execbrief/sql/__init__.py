"""
SQL Query Module for the ExecBrief backend.

Provides parameterized SQL for report persistence, keeping statements out of
the lifecycle service.

Example usage:
    from execbrief.sql import MARK_REVIEWED

    row = await conn.fetchrow(MARK_REVIEWED, report_id, owner_id, now)
"""

from execbrief.sql.report_queries import (
    CREATE_REPORTS_TABLE,
    SELECT_REPORT,
    LIST_REPORTS,
    INSERT_REPORT,
    UPDATE_DRAFT_CONTENT,
    MERGE_DRAFT_METADATA,
    MARK_REVIEWED,
    MARK_FINAL,
    INSERT_REGENERATED,
)

__all__ = [
    'CREATE_REPORTS_TABLE',
    'SELECT_REPORT',
    'LIST_REPORTS',
    'INSERT_REPORT',
    'UPDATE_DRAFT_CONTENT',
    'MERGE_DRAFT_METADATA',
    'MARK_REVIEWED',
    'MARK_FINAL',
    'INSERT_REGENERATED',
]
