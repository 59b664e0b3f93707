"""
Tests for UserManager.

The UserManager handles email-based user creation:
- create_user(): Creates buyers who own orders and installment plans
- create_superuser(): Creates operators who can trigger refunds in admin
"""

import pytest

from authentication.models import User


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user() method."""

    def test_creates_user_with_email_and_password(self, db):
        """
        Given valid email and password
        When create_user is called
        Then a user is created with those credentials
        """
        user = User.objects.create_user(email="buyer@example.com", password="SecurePass123!")

        assert user.pk is not None
        assert user.email == "buyer@example.com"
        assert user.check_password("SecurePass123!") is True
        assert user.is_staff is False
        assert user.is_superuser is False

    def test_normalizes_email_domain(self, db):
        """
        Given an email with an uppercase domain
        When create_user is called
        Then the domain is lowercased and the local part kept
        """
        user = User.objects.create_user(email="Buyer.One@EXAMPLE.COM")

        assert user.email == "Buyer.One@example.com"

    def test_user_without_password_cannot_log_in(self, db):
        """
        Given no password
        When create_user is called
        Then the user has an unusable password
        """
        user = User.objects.create_user(email="nopass@example.com")

        assert user.has_usable_password() is False

    def test_requires_email(self, db):
        """Empty email is rejected."""
        with pytest.raises(ValueError, match="email address is required"):
            User.objects.create_user(email="")


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser() method."""

    def test_creates_staff_superuser(self, db):
        """Superusers get staff and superuser flags."""
        admin = User.objects.create_superuser(email="ops@example.com", password="pw")

        assert admin.is_staff is True
        assert admin.is_superuser is True

    def test_rejects_non_staff_superuser(self, db):
        """is_staff=False contradicts superuser status."""
        with pytest.raises(ValueError, match="is_staff=True"):
            User.objects.create_superuser(email="ops@example.com", password="pw", is_staff=False)
