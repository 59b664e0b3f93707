"""
Tests for the payments app.

Notification reconciliation, refunds, checkout, ledgers, events, locks,
views and tasks. Gateway-specific tests live in payments/adapters/tests/.

Usage:
    pytest payments/
    pytest payments/tests/test_reconciliation.py
"""
