"""
Test Tools Package
Tests for the tools module (notification subsystem)
"""

__all__ = [
    "test_notification_service",
]
