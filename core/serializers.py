"""
Base classes for request (input) serializers.
"""

from rest_framework import serializers

# Order matters: subclasses come before their bases
NULL_TYPE_NAMES = [
    (serializers.BooleanField, "boolean"),
    (serializers.IntegerField, "number"),
    (serializers.FloatField, "number"),
    (serializers.DecimalField, "number"),
    (serializers.ListField, "array"),
    (serializers.FileField, "file"),
    (serializers.DictField, "object"),
]


def json_type_name(field):
    for field_class, name in NULL_TYPE_NAMES:
        if isinstance(field, field_class):
            return name
    return "string"


class RequestSerializerMixin:
    """
    Gives every field the same "Required" / null messages and offers the
    empty-body check used by partial updates.
    """

    def get_fields(self):
        fields = super().get_fields()
        for field in fields.values():
            field.error_messages["required"] = "Required"
            field.error_messages["null"] = f"Expected {json_type_name(field)}, received null"
        return fields

    def require_any_field(self, attrs, message="At least one field must be provided"):
        """
        Drops null values and rejects a body with nothing left.
        """
        attrs = {key: value for key, value in attrs.items() if value is not None}
        if not attrs:
            raise serializers.ValidationError(message)
        return attrs


class RequestSerializer(RequestSerializerMixin, serializers.Serializer):
    pass


class UserSummarySerializer(serializers.Serializer):
    """
    {id, utorid, name} view of a user, used in nested lists.
    """

    id = serializers.IntegerField(read_only=True)
    utorid = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
