"""
Field validators shared by the request serializers.
"""

import re
from datetime import date

from rest_framework import serializers

UTORID_LENGTH = 8
UOFT_EMAIL_DOMAIN = "@mail.utoronto.ca"
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 20


def validate_utorid(value):
    if len(value) != UTORID_LENGTH:
        raise serializers.ValidationError("UTORid must be exactly 8 characters")
    if not value.isalnum() or not value.isascii():
        raise serializers.ValidationError("UTORid must be alphanumeric")
    return value


def validate_uoft_email(value):
    if not value.lower().endswith(UOFT_EMAIL_DOMAIN):
        raise serializers.ValidationError("Email must be a valid @mail.utoronto.ca address")
    return value


def validate_password_strength(value):
    """
    8-20 characters with at least one uppercase, lowercase, digit and special character.
    Every failed rule is reported.
    """
    errors = []
    if len(value) < PASSWORD_MIN_LENGTH:
        errors.append("Password must be at least 8 characters long")
    if len(value) > PASSWORD_MAX_LENGTH:
        errors.append("Password must be at most 20 characters long")
    if not re.search(r"[A-Z]", value):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", value):
        errors.append("Password must contain at least one number")
    if not re.search(r"[^A-Za-z0-9]", value):
        errors.append("Password must contain at least one special character")
    if errors:
        raise serializers.ValidationError(errors)
    return value


def parse_calendar_date(value):
    """
    Parses YYYY-MM-DD and rejects dates that do not exist (e.g. 2023-02-30).
    """
    message = "Invalid date. Please provide a valid calendar date."
    if not isinstance(value, str) or not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        raise serializers.ValidationError(message)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise serializers.ValidationError(message) from None
