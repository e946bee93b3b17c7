"""
Serializers for the Events application.
"""

from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import PermissionDenied

from core.serializers import RequestSerializer, UserSummarySerializer
from events.models import Event
from loyalty.models import Transaction

DATETIME_ERRORS = {
    "startTime": {"invalid": "startTime must be valid ISO8601 date"},
    "endTime": {"invalid": "endTime must be valid ISO8601 date"},
}


class EventListSerializer(serializers.ModelSerializer):
    startTime = serializers.DateTimeField(source="start_time", read_only=True)
    endTime = serializers.DateTimeField(source="end_time", read_only=True)
    numGuests = serializers.IntegerField(source="guest_count", read_only=True)

    class Meta:
        model = Event
        fields = ["id", "name", "location", "startTime", "endTime", "capacity", "numGuests"]


class EventManagerListSerializer(EventListSerializer):
    pointsRemain = serializers.IntegerField(source="points_remain", read_only=True)
    pointsAwarded = serializers.IntegerField(source="points_awarded", read_only=True)

    class Meta(EventListSerializer.Meta):
        fields = EventListSerializer.Meta.fields + ["pointsRemain", "pointsAwarded", "published"]


class EventDetailSerializer(serializers.ModelSerializer):
    """
    What regular members see: no guest list and no points budget.
    """

    startTime = serializers.DateTimeField(source="start_time", read_only=True)
    endTime = serializers.DateTimeField(source="end_time", read_only=True)
    organizers = UserSummarySerializer(many=True, read_only=True)
    numGuests = serializers.IntegerField(source="guest_count", read_only=True)

    class Meta:
        model = Event
        fields = [
            "id",
            "name",
            "description",
            "location",
            "startTime",
            "endTime",
            "capacity",
            "organizers",
            "numGuests",
        ]


class EventFullSerializer(EventDetailSerializer):
    """
    What managers and the event's organizers see.
    """

    guests = UserSummarySerializer(many=True, read_only=True)
    pointsRemain = serializers.IntegerField(source="points_remain", read_only=True)
    pointsAwarded = serializers.IntegerField(source="points_awarded", read_only=True)

    class Meta(EventDetailSerializer.Meta):
        fields = EventDetailSerializer.Meta.fields + ["guests", "pointsRemain", "pointsAwarded", "published"]


class EventFieldsMixin:
    def validate_capacity(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("capacity must be a non-negative integer")
        return value

    def validate_points(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError("points must be a positive integer")
        return value


class EventCreateSerializer(EventFieldsMixin, RequestSerializer):
    name = serializers.CharField()
    description = serializers.CharField()
    location = serializers.CharField()
    startTime = serializers.DateTimeField(source="start_time", error_messages=DATETIME_ERRORS["startTime"])
    endTime = serializers.DateTimeField(source="end_time", error_messages=DATETIME_ERRORS["endTime"])
    capacity = serializers.IntegerField(required=False, allow_null=True, default=None)
    points = serializers.IntegerField()

    def validate(self, attrs):
        if attrs["end_time"] <= attrs["start_time"]:
            raise serializers.ValidationError({"endTime": "endTime must be after startTime"})
        return attrs

    def create(self, validated_data):
        points = validated_data.pop("points")
        return Event.objects.create(points_remain=points, **validated_data)

    def to_representation(self, instance):
        return EventFullSerializer(instance).data


class EventUpdateSerializer(EventFieldsMixin, RequestSerializer):
    """
    PATCH /events/<id>.

    points and published are manager-only. Details are frozen once the event
    has started, and endTime once it has ended.
    """

    API_NAMES = {
        "name": "name",
        "description": "description",
        "location": "location",
        "start_time": "startTime",
        "end_time": "endTime",
        "capacity": "capacity",
        "points": "points",
        "published": "published",
    }
    FROZEN_AFTER_START = ["name", "description", "location", "start_time", "capacity"]

    name = serializers.CharField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_null=True)
    location = serializers.CharField(required=False, allow_null=True)
    startTime = serializers.DateTimeField(
        source="start_time", required=False, allow_null=True, error_messages=DATETIME_ERRORS["startTime"]
    )
    endTime = serializers.DateTimeField(
        source="end_time", required=False, allow_null=True, error_messages=DATETIME_ERRORS["endTime"]
    )
    capacity = serializers.IntegerField(required=False, allow_null=True)
    points = serializers.IntegerField(required=False, allow_null=True)
    published = serializers.BooleanField(required=False, allow_null=True)

    def validate_published(self, value):
        if value is False:
            raise serializers.ValidationError("published can only be set to true")
        return value

    def validate(self, attrs):
        if not self.initial_data:
            raise serializers.ValidationError("Request body cannot be empty. At least one field must be provided.")
        # An explicit null capacity makes the event unlimited
        clears_capacity = "capacity" in attrs and attrs["capacity"] is None
        attrs = {key: value for key, value in attrs.items() if value is not None}
        if clears_capacity:
            attrs["capacity"] = None
        if not attrs:
            raise serializers.ValidationError(
                "Request body cannot have all fields set to null. At least one field must have a value."
            )

        event = self.instance
        user = self.context["request"].user
        if ("points" in attrs or "published" in attrs) and not user.is_manager_or_higher:
            raise PermissionDenied("Only managers can update points or published.")

        now = timezone.now()
        if "start_time" in attrs and attrs["start_time"] < now:
            raise serializers.ValidationError({"startTime": "Cannot set a start time in the past"})
        if "end_time" in attrs and attrs["end_time"] < now:
            raise serializers.ValidationError({"endTime": "Cannot set an end time in the past"})

        if event.has_started(now):
            for field in self.FROZEN_AFTER_START:
                if field in attrs:
                    name = self.API_NAMES[field]
                    raise serializers.ValidationError({name: f"Cannot update {name} after the event has started."})
        if event.has_ended(now) and "end_time" in attrs:
            raise serializers.ValidationError({"endTime": "Cannot update endTime after the event has ended."})

        start = attrs.get("start_time", event.start_time)
        end = attrs.get("end_time", event.end_time)
        if end <= start:
            raise serializers.ValidationError({"endTime": "endTime must be after startTime"})

        if attrs.get("capacity") is not None and attrs["capacity"] < event.guest_count:
            raise serializers.ValidationError({"capacity": "capacity cannot be less than the number of guests"})

        if "points" in attrs and attrs["points"] < event.points_awarded:
            raise serializers.ValidationError(
                {"points": "Total points cannot be reduced below the points already awarded."}
            )
        return attrs

    def update(self, instance, validated_data):
        updated = []
        for field, value in validated_data.items():
            if field == "points":
                instance.points_remain = value - instance.points_awarded
                updated.append("pointsRemain")
            else:
                setattr(instance, field, value)
                updated.append(self.API_NAMES[field])
        instance.save()
        self.updated_fields = updated
        return instance

    def to_representation(self, instance):
        full = EventFullSerializer(instance).data
        keys = ["id", "name", "location"] + getattr(self, "updated_fields", [])
        return {key: full[key] for key in dict.fromkeys(keys)}


class UtoridSerializer(RequestSerializer):
    utorid = serializers.CharField()


class EventAwardSerializer(RequestSerializer):
    type = serializers.ChoiceField(choices=[Transaction.EVENT])
    utorid = serializers.CharField(required=False, allow_null=True, default=None)
    amount = serializers.IntegerField()
    remark = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be a positive integer")
        return value


class EventTransactionSerializer(serializers.ModelSerializer):
    recipient = serializers.CharField(source="user.utorid", read_only=True)
    awarded = serializers.IntegerField(source="amount", read_only=True)
    relatedId = serializers.IntegerField(source="related_id", read_only=True)
    createdBy = serializers.CharField(source="created_by.utorid", read_only=True)

    class Meta:
        model = Transaction
        fields = ["id", "recipient", "awarded", "type", "relatedId", "remark", "createdBy"]
