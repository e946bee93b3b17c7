"""
Serializers for the Loyalty application.
Input serializers validate request bodies and call LoyaltyService; output
serializers shape the camelCase responses.
"""

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import NotFound

from core.serializers import RequestSerializer
from loyalty.models import Promotion, Transaction
from loyalty.services import LoyaltyService

User = get_user_model()

DATETIME_ERRORS = {
    "startTime": {"invalid": "startTime must be valid ISO8601 date"},
    "endTime": {"invalid": "endTime must be valid ISO8601 date"},
}


def get_member(utorid):
    try:
        return User.objects.get(utorid=utorid)
    except User.DoesNotExist:
        raise NotFound("User not found") from None


class PromotionSummarySerializer(serializers.ModelSerializer):
    minSpending = serializers.FloatField(source="min_spending", read_only=True)
    rate = serializers.FloatField(read_only=True)

    class Meta:
        model = Promotion
        fields = ["id", "name", "minSpending", "rate", "points"]


class PromotionSerializer(serializers.ModelSerializer):
    """
    Full promotion view.
    """

    startTime = serializers.DateTimeField(source="start_time", read_only=True)
    endTime = serializers.DateTimeField(source="end_time", read_only=True)
    minSpending = serializers.FloatField(source="min_spending", read_only=True)
    rate = serializers.FloatField(read_only=True)

    class Meta:
        model = Promotion
        fields = ["id", "name", "description", "type", "startTime", "endTime", "minSpending", "rate", "points"]


class PromotionListSerializer(serializers.ModelSerializer):
    startTime = serializers.DateTimeField(source="start_time", read_only=True)
    endTime = serializers.DateTimeField(source="end_time", read_only=True)
    minSpending = serializers.FloatField(source="min_spending", read_only=True)
    rate = serializers.FloatField(read_only=True)

    class Meta:
        model = Promotion
        fields = ["id", "name", "type", "startTime", "endTime", "minSpending", "rate", "points"]


class PromotionFieldsMixin:
    def validate_minSpending(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError("minSpending must be a positive number")
        return value

    def validate_rate(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError("rate must be a positive number")
        return value

    def validate_points(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("points must be a positive integer")
        return value


class PromotionCreateSerializer(PromotionFieldsMixin, RequestSerializer):
    name = serializers.CharField()
    description = serializers.CharField()
    type = serializers.ChoiceField(choices=[value for value, _ in Promotion.PROMOTION_TYPES])
    startTime = serializers.DateTimeField(source="start_time", error_messages=DATETIME_ERRORS["startTime"])
    endTime = serializers.DateTimeField(source="end_time", error_messages=DATETIME_ERRORS["endTime"])
    minSpending = serializers.DecimalField(
        source="min_spending", max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    rate = serializers.DecimalField(max_digits=8, decimal_places=4, required=False, allow_null=True)
    points = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs["start_time"] < timezone.now():
            raise serializers.ValidationError({"startTime": "startTime cannot be in the past"})
        if attrs["end_time"] <= attrs["start_time"]:
            raise serializers.ValidationError({"endTime": "endTime must be after startTime"})
        if attrs.get("points") is None:
            attrs["points"] = 0
        return attrs

    def create(self, validated_data):
        return Promotion.objects.create(**validated_data)

    def to_representation(self, instance):
        return PromotionSerializer(instance).data


class PromotionUpdateSerializer(PromotionFieldsMixin, RequestSerializer):
    """
    PATCH /promotions/<id>.
    Once a promotion has started only endTime may change; once it has ended nothing may.
    """

    API_NAMES = {
        "name": "name",
        "description": "description",
        "type": "type",
        "start_time": "startTime",
        "end_time": "endTime",
        "min_spending": "minSpending",
        "rate": "rate",
        "points": "points",
    }

    name = serializers.CharField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_null=True)
    type = serializers.ChoiceField(
        choices=[value for value, _ in Promotion.PROMOTION_TYPES], required=False, allow_null=True
    )
    startTime = serializers.DateTimeField(
        source="start_time", required=False, allow_null=True, error_messages=DATETIME_ERRORS["startTime"]
    )
    endTime = serializers.DateTimeField(
        source="end_time", required=False, allow_null=True, error_messages=DATETIME_ERRORS["endTime"]
    )
    minSpending = serializers.DecimalField(
        source="min_spending", max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    rate = serializers.DecimalField(max_digits=8, decimal_places=4, required=False, allow_null=True)
    points = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        attrs = self.require_any_field(attrs)

        promotion = self.instance
        now = timezone.now()

        if "start_time" in attrs and attrs["start_time"] < now:
            raise serializers.ValidationError({"startTime": "Cannot set a start time in the past"})
        if "end_time" in attrs and attrs["end_time"] < now:
            raise serializers.ValidationError({"endTime": "Cannot set an end time in the past"})

        if promotion.has_ended(now):
            raise serializers.ValidationError("Cannot update a promotion that has ended.")
        if promotion.has_started(now):
            for field in attrs:
                if field != "end_time":
                    name = self.API_NAMES[field]
                    raise serializers.ValidationError({name: f"Cannot update {name} after the promotion has started."})

        start = attrs.get("start_time", promotion.start_time)
        end = attrs.get("end_time", promotion.end_time)
        if end <= start:
            raise serializers.ValidationError({"endTime": "endTime must be after startTime"})
        return attrs

    def update(self, instance, validated_data):
        for field, value in validated_data.items():
            setattr(instance, field, value)
        instance.save()
        self.updated_fields = [self.API_NAMES[field] for field in validated_data]
        return instance

    def to_representation(self, instance):
        full = PromotionSerializer(instance).data
        keys = ["id", "name", "type"] + getattr(self, "updated_fields", [])
        return {key: full[key] for key in dict.fromkeys(keys)}


class TransactionSerializer(serializers.ModelSerializer):
    """
    Full transaction view used by the manager list/detail and the member history.
    """

    utorid = serializers.CharField(source="user.utorid", read_only=True)
    spent = serializers.FloatField(read_only=True)
    relatedId = serializers.IntegerField(source="related_id", read_only=True)
    promotionIds = serializers.SerializerMethodField()
    createdBy = serializers.CharField(source="created_by.utorid", read_only=True)
    processedBy = serializers.CharField(source="processed_by.utorid", read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "utorid",
            "type",
            "spent",
            "amount",
            "redeemed",
            "relatedId",
            "promotionIds",
            "suspicious",
            "remark",
            "createdBy",
            "processedBy",
            "createdAt",
        ]

    def get_promotionIds(self, obj):
        return [promotion.id for promotion in obj.promotions.all()]


class TransactionCreateSerializer(RequestSerializer):
    """
    Common base for the typed create serializers.
    """

    remark = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be a positive integer")
        return value

    @property
    def actor(self):
        return self.context["request"].user


class PurchaseSerializer(TransactionCreateSerializer):
    type = serializers.ChoiceField(choices=[Transaction.PURCHASE])
    utorid = serializers.CharField()
    spent = serializers.DecimalField(max_digits=10, decimal_places=2)
    promotionIds = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, default=list)

    def validate_spent(self, value):
        if value <= 0:
            raise serializers.ValidationError("Spent amount must be positive")
        return value

    def create(self, validated_data):
        return LoyaltyService().create_purchase(
            customer=get_member(validated_data["utorid"]),
            spent=validated_data["spent"],
            cashier=self.actor,
            promotion_ids=validated_data.get("promotionIds"),
            remark=validated_data.get("remark"),
        )

    def to_representation(self, instance):
        return {
            "id": instance.id,
            "utorid": instance.user.utorid,
            "type": instance.type,
            "spent": float(instance.spent),
            "earned": 0 if instance.suspicious else instance.amount,
            "remark": instance.remark,
            "promotionIds": [promotion.id for promotion in instance.promotions.all()],
            "createdBy": instance.created_by.utorid,
        }


class AdjustmentSerializer(TransactionCreateSerializer):
    type = serializers.ChoiceField(choices=[Transaction.ADJUSTMENT])
    utorid = serializers.CharField()
    amount = serializers.IntegerField()
    relatedId = serializers.IntegerField(min_value=1)
    promotionIds = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, default=list)

    def validate_amount(self, value):
        if value == 0:
            raise serializers.ValidationError("amount must be a non-zero integer")
        return value

    def create(self, validated_data):
        return LoyaltyService().create_adjustment(
            customer=get_member(validated_data["utorid"]),
            amount=validated_data["amount"],
            related_id=validated_data["relatedId"],
            manager=self.actor,
            promotion_ids=validated_data.get("promotionIds"),
            remark=validated_data.get("remark"),
        )

    def to_representation(self, instance):
        return {
            "id": instance.id,
            "utorid": instance.user.utorid,
            "amount": instance.amount,
            "type": instance.type,
            "relatedId": instance.related_id,
            "remark": instance.remark,
            "promotionIds": [promotion.id for promotion in instance.promotions.all()],
            "createdBy": instance.created_by.utorid,
        }


class TransferSerializer(TransactionCreateSerializer):
    """
    POST /users/<id>/transactions. The recipient comes from the URL via context.
    """

    type = serializers.ChoiceField(choices=[Transaction.TRANSFER])
    amount = serializers.IntegerField()

    def create(self, validated_data):
        recipient = self.context["recipient"]
        sent, _ = LoyaltyService().create_transfer(
            sender=self.actor, recipient=recipient, amount=validated_data["amount"], remark=validated_data.get("remark")
        )
        sent.recipient = recipient
        return sent

    def to_representation(self, instance):
        return {
            "id": instance.id,
            "sender": instance.user.utorid,
            "recipient": instance.recipient.utorid,
            "type": instance.type,
            "sent": -instance.amount,
            "remark": instance.remark,
            "createdBy": instance.created_by.utorid,
        }


class RedemptionSerializer(TransactionCreateSerializer):
    type = serializers.ChoiceField(choices=[Transaction.REDEMPTION])
    amount = serializers.IntegerField()

    def create(self, validated_data):
        return LoyaltyService().create_redemption(
            user=self.actor, amount=validated_data["amount"], remark=validated_data.get("remark")
        )

    def to_representation(self, instance):
        return {
            "id": instance.id,
            "utorid": instance.user.utorid,
            "type": instance.type,
            "processedBy": instance.processed_by.utorid if instance.processed_by else None,
            "amount": instance.amount,
            "remark": instance.remark,
            "createdBy": instance.created_by.utorid,
        }


class ProcessedRedemptionSerializer(RedemptionSerializer):
    def to_representation(self, instance):
        data = super().to_representation(instance)
        data.pop("amount")
        data["redeemed"] = instance.redeemed
        return data


class SuspiciousSerializer(RequestSerializer):
    suspicious = serializers.BooleanField()


class ProcessedSerializer(RequestSerializer):
    processed = serializers.BooleanField()

    def validate_processed(self, value):
        if value is not True:
            raise serializers.ValidationError("processed can only be set to true")
        return value
