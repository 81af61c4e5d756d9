'''
ExecBrief Backend Test Suite

Test Modules:
-------------
- test_ingestion.py: file detection, date handling, midpoint split, sum/average rules
- test_normalization.py: coercion, alias precedence, derived ratios, idempotence
- test_signals.py: noise band, severity, fire-first ordering, six-signal cap
- test_audit.py: exec action rules, explore structure, catalogue references
- test_generation.py: prompt builders and the OpenAI-backed generator
- test_lifecycle.py: state machine, regeneration lineage, ownership, Postgres SQL
- test_briefing.py: upload and brief pipelines end to end
- test_api.py: HTTP contract and error-to-status mapping

Running Tests:
--------------
    pip install -e ".[test]"
    pytest execbrief/tests -v

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
