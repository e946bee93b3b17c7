"""
Serializers for authentication, registration and profile management.
"""

from rest_framework import serializers
from rest_framework.exceptions import PermissionDenied

from core.exceptions import Conflict
from core.serializers import RequestSerializer
from core.validators import parse_calendar_date, validate_password_strength, validate_uoft_email, validate_utorid
from loyalty.serializers import PromotionSummarySerializer
from loyalty.services import available_one_time_promotions
from users.models import User
from users.services import UserService


class TokenRequestSerializer(RequestSerializer):
    utorid = serializers.CharField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})


class ResetRequestSerializer(RequestSerializer):
    utorid = serializers.CharField()


class ResetConfirmSerializer(RequestSerializer):
    utorid = serializers.CharField()
    password = serializers.CharField(write_only=True, validators=[validate_password_strength])


class PasswordChangeSerializer(RequestSerializer):
    old = serializers.CharField(write_only=True)
    new = serializers.CharField(write_only=True, validators=[validate_password_strength])


class UserRegistrationSerializer(RequestSerializer):
    """
    Serializer for cashiers registering a new member.
    The response carries the activation token.
    """

    utorid = serializers.CharField(validators=[validate_utorid])
    name = serializers.CharField(min_length=1, max_length=50)
    email = serializers.EmailField(validators=[validate_uoft_email])

    def create(self, validated_data):
        user, token = UserService().register(
            utorid=validated_data["utorid"], name=validated_data["name"], email=validated_data["email"]
        )
        user.activation_token = token
        return user

    def to_representation(self, instance):
        token = instance.activation_token
        return {
            "id": instance.id,
            "utorid": instance.utorid,
            "name": instance.name,
            "email": instance.email,
            "verified": instance.verified,
            "expiresAt": token.expires_at.isoformat(),
            "resetToken": str(token.token),
        }


class UserSerializer(serializers.ModelSerializer):
    """
    Full profile view, used by managers and by the user themself.
    """

    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    lastLogin = serializers.DateTimeField(source="last_login", read_only=True)
    avatarUrl = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "utorid",
            "name",
            "email",
            "birthday",
            "role",
            "points",
            "createdAt",
            "lastLogin",
            "verified",
            "suspicious",
            "avatarUrl",
        ]

    def get_avatarUrl(self, obj):
        return obj.avatar.url if obj.avatar else None


class UserProfileSerializer(UserSerializer):
    """
    Full profile plus the one-time promotions still available to the user.
    """

    promotions = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["promotions"]

    def get_promotions(self, obj):
        return PromotionSummarySerializer(available_one_time_promotions(obj), many=True).data


class CashierUserSerializer(serializers.ModelSerializer):
    """
    The limited view cashiers get when looking a member up.
    """

    promotions = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "utorid", "name", "points", "verified", "promotions"]

    def get_promotions(self, obj):
        return PromotionSummarySerializer(available_one_time_promotions(obj), many=True).data


class UserManagementSerializer(RequestSerializer):
    """
    PATCH /users/<id> for managers. Null fields are ignored.
    """

    email = serializers.EmailField(required=False, allow_null=True, validators=[validate_uoft_email])
    verified = serializers.BooleanField(required=False, allow_null=True)
    suspicious = serializers.BooleanField(required=False, allow_null=True)
    role = serializers.CharField(required=False, allow_null=True)

    def validate_verified(self, value):
        if value is False:
            raise serializers.ValidationError("Invalid verified value.")
        return value

    def validate_role(self, value):
        if value is None:
            return value
        role = value.upper()
        if role not in User.ROLE_RANK:
            raise serializers.ValidationError("Invalid role. Expected regular, cashier, manager or superuser.")
        return role

    def validate(self, attrs):
        attrs = self.require_any_field(attrs)

        actor = self.context["request"].user
        role = attrs.get("role")
        if role and not actor.has_clearance(User.SUPERUSER) and role not in (User.REGULAR, User.CASHIER):
            raise PermissionDenied("Forbidden. Managers cannot promote users to Manager or Superuser.")

        email = attrs.get("email")
        if email and User.objects.exclude(pk=self.instance.pk).filter(email__iexact=email).exists():
            raise Conflict("A user with this email already exists.")
        return attrs

    def update(self, instance, validated_data):
        for field, value in validated_data.items():
            setattr(instance, field, value)
        # Promotion to cashier clears any previous suspicion
        if validated_data.get("role") == User.CASHIER:
            instance.suspicious = False
            validated_data["suspicious"] = False
        instance.save()
        self.updated_fields = list(validated_data)
        return instance

    def to_representation(self, instance):
        data = {"id": instance.id, "utorid": instance.utorid, "name": instance.name}
        for field in getattr(self, "updated_fields", []):
            data[field] = getattr(instance, field)
        return data


class ProfileUpdateSerializer(RequestSerializer):
    """
    PATCH /users/me. Accepts JSON or multipart (for the avatar upload).
    """

    name = serializers.CharField(required=False, allow_null=True, min_length=1, max_length=50)
    email = serializers.EmailField(required=False, allow_null=True, validators=[validate_uoft_email])
    birthday = serializers.CharField(required=False, allow_null=True)
    avatar = serializers.FileField(required=False, allow_null=True)

    def validate_birthday(self, value):
        if value is None:
            return value
        return parse_calendar_date(value)

    def validate(self, attrs):
        attrs = self.require_any_field(attrs, "At least one field must be provided with a non-null value")

        email = attrs.get("email")
        if email and User.objects.exclude(pk=self.instance.pk).filter(email__iexact=email).exists():
            raise Conflict("A user with this email already exists.")
        return attrs

    def update(self, instance, validated_data):
        for field, value in validated_data.items():
            setattr(instance, field, value)
        instance.save()
        return instance

    def to_representation(self, instance):
        return UserProfileSerializer(instance, context=self.context).data
