"""
Models for the users application (accounts and password reset tokens).
"""

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

from users.managers import CustomUserManager


class User(AbstractUser):
    """
    A member of the rewards program, identified by their UTORid.
    The point balance is kept on the row and updated by the loyalty services.
    """

    REGULAR = "REGULAR"
    CASHIER = "CASHIER"
    MANAGER = "MANAGER"
    SUPERUSER = "SUPERUSER"

    ROLE_CHOICES = [
        (REGULAR, "Regular"),
        (CASHIER, "Cashier"),
        (MANAGER, "Manager"),
        (SUPERUSER, "Superuser"),
    ]

    # Higher number = more clearance
    ROLE_RANK = {REGULAR: 0, CASHIER: 1, MANAGER: 2, SUPERUSER: 3}

    username = None
    first_name = None
    last_name = None

    utorid = models.CharField(max_length=8, unique=True)
    name = models.CharField(max_length=50)
    email = models.EmailField("email address", unique=True)
    birthday = models.DateField(null=True, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=REGULAR)
    points = models.IntegerField(default=0)
    verified = models.BooleanField(default=False)
    suspicious = models.BooleanField(default=False)
    avatar = models.FileField(upload_to="avatars/", null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "utorid"
    REQUIRED_FIELDS = ["email", "name"]

    class Meta:
        ordering = ["-id"]

    def __str__(self):
        return self.utorid

    def has_clearance(self, role):
        return self.ROLE_RANK.get(self.role, -1) >= self.ROLE_RANK[role]

    @property
    def is_cashier_or_higher(self):
        return self.has_clearance(self.CASHIER)

    @property
    def is_manager_or_higher(self):
        return self.has_clearance(self.MANAGER)

    @property
    def activated(self):
        return self.last_login is not None


class ResetToken(models.Model):
    """
    One-off token used both for account activation and for password resets.
    Issuing a new token for a user invalidates all of their previous tokens.
    """

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="reset_tokens")
    token = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user} ({self.expires_at:%Y-%m-%d %H:%M})"

    @property
    def is_expired(self):
        return timezone.now() >= self.expires_at
