"""
Service layer for account management: registration, activation and password resets.
"""

import logging
import uuid

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import AuthenticationFailed, NotFound, PermissionDenied

from core.exceptions import Conflict, Gone
from users.models import ResetToken, User

logger = logging.getLogger(__name__)


class UserService:
    """
    Encapsulates account lifecycle rules.
    """

    def issue_reset_token(self, user, lifetime=None) -> ResetToken:
        """
        Creates a new reset token for `user`, dropping every older one.
        """
        lifetime = lifetime or settings.RESET_TOKEN_LIFETIME
        ResetToken.objects.filter(user=user).delete()
        token = ResetToken.objects.create(user=user, expires_at=timezone.now() + lifetime)
        logger.info("Issued reset token for %s (expires %s)", user.utorid, token.expires_at.isoformat())
        return token

    @transaction.atomic
    def register(self, utorid: str, name: str, email: str):
        """
        Creates an unactivated account and its activation token.

        Returns:
            (user, reset_token)
        """
        if User.objects.filter(email__iexact=email).exists():
            raise Conflict("A user with this email already exists.")
        if User.objects.filter(utorid__iexact=utorid).exists():
            raise Conflict("A user with this utorid already exists.")

        user = User.objects.create_user(utorid=utorid, email=email, name=name)
        token = self.issue_reset_token(user, lifetime=settings.ACTIVATION_TOKEN_LIFETIME)
        logger.info("Registered user %s", user.utorid)
        return user, token

    def request_password_reset(self, utorid: str) -> ResetToken:
        try:
            user = User.objects.get(utorid=utorid)
        except User.DoesNotExist:
            raise NotFound("User not found.") from None
        return self.issue_reset_token(user)

    @transaction.atomic
    def reset_password(self, token_value, utorid: str, password: str):
        """
        Consumes a reset token and sets the new password.
        """
        try:
            token = ResetToken.objects.select_related("user").select_for_update().get(token=uuid.UUID(str(token_value)))
        except (ValueError, ResetToken.DoesNotExist):
            raise NotFound("Invalid reset token.") from None

        if token.is_expired:
            raise Gone("Reset token expired.")

        if token.user.utorid != utorid:
            raise AuthenticationFailed("Token does not match the user.")

        user = token.user
        user.set_password(password)
        user.save(update_fields=["password"])
        token.delete()
        logger.info("Password reset for %s", user.utorid)
        return user

    def change_password(self, user, old: str, new: str):
        if not user.check_password(old):
            raise PermissionDenied("Old password is incorrect.")
        user.set_password(new)
        user.save(update_fields=["password"])
        logger.info("Password changed for %s", user.utorid)
        return user

    def purge_expired_tokens(self) -> int:
        deleted, _ = ResetToken.objects.filter(expires_at__lte=timezone.now()).delete()
        return deleted
