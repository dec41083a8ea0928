"""
DoseTrack Test Suite
====================

This package contains all tests for the DoseTrack medication schedule and adherence engine.

Test Structure:
- test_tools/: Pure scheduling, reconciliation, state and metrics tests
- test_services/: Service tests against an in-memory SQLite database
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_tools/

    # Run with verbose output
    pytest -v
"""

# Test configuration
TEST_DATABASE_URL = "sqlite:///:memory:"

__all__ = [
    "TEST_DATABASE_URL",
]
