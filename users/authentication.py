"""
Credential checks and JWT issuing for POST /auth/tokens.
"""

import logging
from datetime import datetime, timezone

from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from rest_framework import exceptions
from rest_framework.throttling import SimpleRateThrottle
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


def issue_access_token(user):
    """
    Returns (token, expires_at) for a freshly signed access token.
    """
    token = AccessToken.for_user(user)
    expires_at = datetime.fromtimestamp(token["exp"], tz=timezone.utc)
    return str(token), expires_at


def login(request, utorid, password):
    """
    Validates the credentials and records the login.
    Users without a usable password (never activated) cannot log in.
    """
    user = authenticate(request=request, utorid=utorid, password=password)
    if user is None:
        logger.info("Failed login attempt for %s", utorid)
        raise exceptions.AuthenticationFailed("Invalid credentials.")

    update_last_login(None, user)
    return issue_access_token(user)


class PasswordResetRateThrottle(SimpleRateThrottle):
    """
    Limits reset requests per client IP, authenticated or not.
    """

    scope = "password_reset"

    def get_cache_key(self, request, view):
        return self.cache_format % {"scope": self.scope, "ident": self.get_ident(request)}
