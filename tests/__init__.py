"""
BuildFleet Test Suite
=====================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/          → buildfleet.core (config, models, registry)
    ├── test_orchestration/ → buildfleet.orchestration (driver, aggregator, ...)
    ├── test_integrations/  → buildfleet.integrations (runners, transports, reporters)
    ├── test_integration/   → End-to-end stage pipelines
    ├── test_cli.py         → buildfleet.cli
    ├── helpers.py          → Module-tree builders
    └── conftest.py         → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_core/         # Run only core tests
    pytest --cov=buildfleet         # Run with coverage report
"""
