"""
User manager keyed on email.
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Creates users identified by email.

    Buyers come from create_user(); operators who run refunds from the
    admin come from create_superuser().
    """

    def _create(self, email, password, **extra_fields):
        if not email:
            raise ValueError("An email address is required")

        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if not (extra_fields["is_staff"] and extra_fields["is_superuser"]):
            raise ValueError("Superusers need is_staff=True and is_superuser=True")

        return self._create(email, password, **extra_fields)
