"""
URL configuration for /auth.
"""

from django.urls import re_path

from users.views import PasswordResetConfirmView, PasswordResetRequestView, TokenView

urlpatterns = [
    re_path(r"^tokens/?$", TokenView.as_view(), name="auth_tokens"),
    re_path(r"^resets/?$", PasswordResetRequestView.as_view(), name="auth_resets"),
    re_path(r"^resets/(?P<token>[^/]+)/?$", PasswordResetConfirmView.as_view(), name="auth_reset_confirm"),
]
