"""
API Views for the Loyalty application.
"""

from django.contrib.auth import get_user_model
from rest_framework import generics, status, viewsets
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsCashierOrHigher, IsManagerOrHigher
from loyalty.filters import PromotionFilterBackend, TransactionFilterBackend
from loyalty.models import Promotion, Transaction
from loyalty.serializers import (
    AdjustmentSerializer,
    ProcessedRedemptionSerializer,
    ProcessedSerializer,
    PromotionCreateSerializer,
    PromotionListSerializer,
    PromotionSerializer,
    PromotionUpdateSerializer,
    PurchaseSerializer,
    RedemptionSerializer,
    SuspiciousSerializer,
    TransactionSerializer,
    TransferSerializer,
)
from loyalty.services import LoyaltyService

User = get_user_model()


def transaction_queryset():
    return Transaction.objects.select_related("user", "created_by", "processed_by").prefetch_related("promotions")


def get_transaction(pk):
    try:
        return transaction_queryset().get(pk=pk)
    except Transaction.DoesNotExist:
        raise NotFound("Transaction not found") from None


class TransactionListCreateView(generics.ListCreateAPIView):
    """
    POST /transactions: purchases (cashier+) and adjustments (manager+).
    GET /transactions: filtered, ordered and paginated ledger (manager+).
    """

    serializer_class = TransactionSerializer
    filter_backends = [TransactionFilterBackend]

    create_serializers = {
        Transaction.PURCHASE: PurchaseSerializer,
        Transaction.ADJUSTMENT: AdjustmentSerializer,
    }

    def get_queryset(self):
        return transaction_queryset()

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsCashierOrHigher()]
        return [IsManagerOrHigher()]

    def create(self, request, *args, **kwargs):
        tx_type = request.data.get("type")
        serializer_class = self.create_serializers.get(tx_type)
        if serializer_class is None:
            raise ValidationError({"type": ["Invalid transaction type. Expected 'purchase' or 'adjustment'"]})
        if tx_type == Transaction.ADJUSTMENT and not request.user.is_manager_or_higher:
            raise PermissionDenied("Insufficient clearance")

        serializer = serializer_class(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class TransactionDetailView(generics.RetrieveAPIView):
    """
    GET /transactions/<id>
    """

    permission_classes = [IsManagerOrHigher]
    serializer_class = TransactionSerializer

    def get_object(self):
        return get_transaction(self.kwargs["pk"])


class TransactionSuspiciousView(APIView):
    """
    PATCH /transactions/<id>/suspicious
    """

    permission_classes = [IsManagerOrHigher]

    def patch(self, request, pk):
        target = get_transaction(pk)
        serializer = SuspiciousSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        target = LoyaltyService().set_suspicious(target, serializer.validated_data["suspicious"])
        return Response(TransactionSerializer(get_transaction(target.pk)).data)


class TransactionProcessedView(APIView):
    """
    PATCH /transactions/<id>/processed
    A cashier completes a redemption request.
    """

    permission_classes = [IsCashierOrHigher]

    def patch(self, request, pk):
        target = get_transaction(pk)
        serializer = ProcessedSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        processed = LoyaltyService().process_redemption(target, cashier=request.user)
        return Response(ProcessedRedemptionSerializer(get_transaction(processed.pk)).data)


class TransferView(APIView):
    """
    POST /users/<id>/transactions
    The authenticated user sends points to user <id>.
    """

    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        try:
            recipient = User.objects.get(pk=pk)
        except User.DoesNotExist:
            raise NotFound("User not found") from None

        serializer = TransferSerializer(data=request.data, context={"request": request, "recipient": recipient})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class MyTransactionsView(generics.ListCreateAPIView):
    """
    GET /users/me/transactions: the caller's own history.
    POST /users/me/transactions: request a redemption.
    """

    permission_classes = [IsAuthenticated]
    filter_backends = [TransactionFilterBackend]
    transaction_filters = frozenset(["promotionId", "type", "relatedId", "eventId", "amount", "orderBy"])

    def get_queryset(self):
        return transaction_queryset().filter(user=self.request.user)

    def get_serializer_class(self):
        if self.request.method == "POST":
            return RedemptionSerializer
        return TransactionSerializer


class PromotionViewSet(viewsets.ModelViewSet):
    """
    API endpoint for Promotions.
    Everyone can browse; managers create, update and delete.
    """

    queryset = Promotion.objects.all()
    filter_backends = [PromotionFilterBackend]
    http_method_names = ["get", "post", "patch", "delete", "options"]

    serializer_classes = {
        "list": PromotionListSerializer,
        "retrieve": PromotionSerializer,
        "create": PromotionCreateSerializer,
        "partial_update": PromotionUpdateSerializer,
    }

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [IsAuthenticated()]
        return [IsManagerOrHigher()]

    def get_serializer_class(self):
        return self.serializer_classes.get(self.action, PromotionSerializer)

    def get_object(self):
        queryset = Promotion.objects.all()
        if not self.request.user.is_manager_or_higher:
            queryset = queryset.active()
        try:
            return queryset.get(pk=self.kwargs["pk"])
        except (Promotion.DoesNotExist, ValueError):
            raise NotFound("Promotion not found") from None

    def perform_destroy(self, instance):
        if instance.has_started():
            raise PermissionDenied("Cannot delete a promotion that has started")
        instance.delete()
