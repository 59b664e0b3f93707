"""Tests for the User model and its manager."""
