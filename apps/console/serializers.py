"""
apps.console.serializers
~~~~~~~~~~~~~~~~~~~~~~~~
I/O-only serializers for the console API.
"""
from rest_framework import serializers


class TabSerializer(serializers.Serializer):
    """One entry of the ordered tab list."""

    key = serializers.CharField()
    title = serializers.CharField()
    source = serializers.CharField(source="source.value")
    path = serializers.CharField(allow_null=True)
    regenerable = serializers.BooleanField()


class EditRequestSerializer(serializers.Serializer):
    """Validates POST /apps/{id}/console/edit/ request body."""

    tree = serializers.JSONField()
    path = serializers.CharField(allow_blank=True)
    value = serializers.JSONField(allow_null=True)

    def validate_tree(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Must be a JSON object.")
        return value


class EditResponseSerializer(serializers.Serializer):
    tree = serializers.JSONField()
    value = serializers.JSONField(allow_null=True)
