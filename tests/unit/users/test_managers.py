"""
Unit tests for the CustomUserManager.
"""

import pytest

from users.models import User


class TestCustomUserManager:
    def test_create_user_without_password_is_unusable(self):
        """
        Scenario: A cashier registers a member (no password yet).
        Expected: The account exists but cannot authenticate until activated.
        """
        user = User.objects.create_user(utorid="newbie01", email="newbie01@mail.utoronto.ca", name="Newbie")

        assert user.role == User.REGULAR
        assert user.points == 0
        assert user.has_usable_password() is False

    def test_create_user_with_password(self):
        user = User.objects.create_user(
            utorid="withpw01", email="withpw01@mail.utoronto.ca", name="Has Password", password="Secret123!"
        )

        assert user.check_password("Secret123!")

    def test_create_user_requires_utorid(self):
        with pytest.raises(ValueError):
            User.objects.create_user(utorid="", email="x@mail.utoronto.ca", name="X")

    def test_create_superuser(self):
        admin = User.objects.create_superuser(
            utorid="admin001", email="admin001@mail.utoronto.ca", name="Admin", password="Secret123!"
        )

        assert admin.role == User.SUPERUSER
        assert admin.is_staff
        assert admin.is_superuser
        assert admin.verified
