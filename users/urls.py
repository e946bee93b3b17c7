"""
URL configuration for /users, including the member-facing transaction endpoints.
A trailing slash is accepted but not required.
"""

from django.urls import re_path

from loyalty.views import MyTransactionsView, TransferView
from users.views import CurrentUserView, PasswordChangeView, UserDetailView, UserListCreateView

urlpatterns = [
    re_path(r"^users/?$", UserListCreateView.as_view(), name="users"),
    re_path(r"^users/me/?$", CurrentUserView.as_view(), name="users_me"),
    re_path(r"^users/me/password/?$", PasswordChangeView.as_view(), name="users_me_password"),
    re_path(r"^users/me/transactions/?$", MyTransactionsView.as_view(), name="users_me_transactions"),
    re_path(r"^users/(?P<pk>\d+)/?$", UserDetailView.as_view(), name="user_detail"),
    re_path(r"^users/(?P<pk>\d+)/transactions/?$", TransferView.as_view(), name="user_transfers"),
]
