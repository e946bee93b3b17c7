"""
Unit tests for the User and ResetToken models.
"""

from datetime import timedelta

from django.utils import timezone

from tests.factories.users import ResetTokenFactory, UserFactory
from users.models import User


class TestUserClearance:
    def test_role_ranking(self):
        regular = UserFactory()
        cashier = UserFactory(cashier=True)
        manager = UserFactory(manager=True)
        superuser = UserFactory(superuser=True)

        assert not regular.has_clearance(User.CASHIER)
        assert cashier.has_clearance(User.CASHIER)
        assert not cashier.has_clearance(User.MANAGER)
        assert manager.is_manager_or_higher
        assert superuser.has_clearance(User.SUPERUSER)

    def test_activated_means_logged_in_once(self):
        user = UserFactory()
        assert user.activated is False

        user.last_login = timezone.now()
        assert user.activated is True

    def test_str_is_utorid(self):
        assert str(UserFactory(utorid="strtest1")) == "strtest1"


class TestResetToken:
    def test_expiry(self):
        fresh = ResetTokenFactory()
        stale = ResetTokenFactory(expires_at=timezone.now() - timedelta(seconds=1))

        assert fresh.is_expired is False
        assert stale.is_expired is True
