"""
PillPal Test Suite
==================

Test Structure:
- test_services/: service unit tests against an in-memory database
- test_actions/: reminder scheduling and retry behavior
- test_tools/: in-memory notification subsystem
- test_api/: API endpoint tests for FastAPI routes
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_services/

    # Run only API tests
    pytest -m "api"
"""
