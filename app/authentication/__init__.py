"""
Authentication application.

Provides the email-based User model that owns orders and installment
plans. Login, tokens and profile management live outside this service;
callers arrive already authenticated and are passed explicitly into the
payment services that check ownership.

Usage:
    from authentication.models import User
"""
