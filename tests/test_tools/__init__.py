"""
Test Tools Package
Tests for the tools module (schedule resolver, reconciler, state machine, metrics)
"""

__all__ = [
    "test_schedule_resolver",
    "test_reconciler",
    "test_state_machine",
    "test_metrics",
]
