"""
Parameterized SQL for the reports table.

Every lifecycle guard is part of the statement's WHERE clause, so a transition
is a single atomic compare-and-swap on the stored `state`. A statement that
returns no row means the guard (or ownership) failed; the caller then looks
the report up to decide which error to raise.

Placeholders use asyncpg's positional $n syntax. `data_json` is passed as JSON
text and cast to jsonb.
"""

CREATE_REPORTS_TABLE: str = """
    CREATE TABLE IF NOT EXISTS reports (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        data_json JSONB NOT NULL DEFAULT '{}'::jsonb,
        state TEXT NOT NULL DEFAULT 'draft'
            CHECK (state IN ('draft', 'reviewed', 'final')),
        parent_report_id TEXT REFERENCES reports (id),
        reviewed_at TIMESTAMPTZ,
        finalized_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    CREATE INDEX IF NOT EXISTS reports_owner_updated_idx
        ON reports (owner_id, updated_at DESC);
"""

# $1 id, $2 owner_id
SELECT_REPORT: str = """
    SELECT *
    FROM reports
    WHERE id = $1 AND owner_id = $2
"""

# $1 owner_id
LIST_REPORTS: str = """
    SELECT id, state, parent_report_id, updated_at, reviewed_at, finalized_at
    FROM reports
    WHERE owner_id = $1
    ORDER BY updated_at DESC
"""

# $1 id, $2 owner_id, $3 data_json, $4 now
INSERT_REPORT: str = """
    INSERT INTO reports (id, owner_id, data_json, state, created_at, updated_at)
    VALUES ($1, $2, $3::jsonb, 'draft', $4, $4)
    RETURNING *
"""

# $1 id, $2 owner_id, $3 data_json, $4 now
UPDATE_DRAFT_CONTENT: str = """
    UPDATE reports
    SET data_json = $3::jsonb, updated_at = $4
    WHERE id = $1 AND owner_id = $2 AND state = 'draft'
    RETURNING *
"""

# $1 id, $2 owner_id, $3 metadata patch, $4 now
MERGE_DRAFT_METADATA: str = """
    UPDATE reports
    SET data_json = jsonb_set(
            data_json,
            '{metadata}',
            COALESCE(data_json -> 'metadata', '{}'::jsonb) || $3::jsonb
        ),
        updated_at = $4
    WHERE id = $1 AND owner_id = $2 AND state = 'draft'
    RETURNING *
"""

# $1 id, $2 owner_id, $3 now
MARK_REVIEWED: str = """
    UPDATE reports
    SET state = 'reviewed', reviewed_at = $3
    WHERE id = $1 AND owner_id = $2 AND state = 'draft'
    RETURNING *
"""

# $1 id, $2 owner_id, $3 now
MARK_FINAL: str = """
    UPDATE reports
    SET state = 'final', finalized_at = $3
    WHERE id = $1 AND owner_id = $2 AND state = 'reviewed'
    RETURNING *
"""

# $1 new id, $2 source id, $3 owner_id, $4 now
INSERT_REGENERATED: str = """
    INSERT INTO reports (id, owner_id, data_json, state, parent_report_id, created_at, updated_at)
    SELECT $1, owner_id, data_json, 'draft', id, $4, $4
    FROM reports
    WHERE id = $2 AND owner_id = $3 AND state <> 'draft'
    RETURNING *
"""
