"""
URL routing for /transactions and /promotions.
A trailing slash is accepted but not required.
"""

from django.urls import re_path
from rest_framework.routers import DefaultRouter

from loyalty.views import (
    PromotionViewSet,
    TransactionDetailView,
    TransactionListCreateView,
    TransactionProcessedView,
    TransactionSuspiciousView,
)

router = DefaultRouter(trailing_slash="/?")
router.register(r"promotions", PromotionViewSet, basename="promotions")

urlpatterns = [
    re_path(r"^transactions/?$", TransactionListCreateView.as_view(), name="transactions"),
    re_path(r"^transactions/(?P<pk>\d+)/?$", TransactionDetailView.as_view(), name="transaction_detail"),
    re_path(
        r"^transactions/(?P<pk>\d+)/suspicious/?$", TransactionSuspiciousView.as_view(), name="transaction_suspicious"
    ),
    re_path(
        r"^transactions/(?P<pk>\d+)/processed/?$", TransactionProcessedView.as_view(), name="transaction_processed"
    ),
] + router.urls
