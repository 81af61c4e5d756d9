"""
ExecBrief Backend Package.

FastAPI service that turns uploaded business-metric spreadsheets into ranked
signals and audited executive briefs.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, errors and dependencies
    - models: Pydantic schemas and enums
    - services: Ingestion, normalization, signals, audit, generation, lifecycle
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
