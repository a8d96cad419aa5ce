"""
apps.catalog.serializers
~~~~~~~~~~~~~~~~~~~~~~~~
I/O-only serializers for the App catalog API.
No business logic; shape validation only.  The wire format is camelCase to
match what the console front-end consumes.
"""
from rest_framework import serializers

from .models import App


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

class AppMetaSerializer(serializers.Serializer):
    """Store metadata nested under ``meta``."""

    description = serializers.CharField(read_only=True)
    playUrl = serializers.CharField(source="play_url", read_only=True)
    appStoreUrl = serializers.CharField(source="app_store_url", read_only=True)


class AppSerializer(serializers.ModelSerializer):
    """Read serializer for a full App object."""

    appId = serializers.CharField(source="app_id", read_only=True)
    appName = serializers.CharField(source="app_name", read_only=True)
    packageName = serializers.CharField(source="package_name", read_only=True)
    meta = AppMetaSerializer(source="*", read_only=True)

    class Meta:
        model = App
        fields = ["appId", "appName", "packageName", "meta"]


class AppCreateSerializer(serializers.Serializer):
    """Validates POST /apps/ request body."""

    appName = serializers.CharField(max_length=255)
    packageName = serializers.CharField(max_length=255)
    appDescription = serializers.CharField()
    playUrl = serializers.URLField(max_length=500, required=False, allow_blank=True, default="")
    appStoreUrl = serializers.URLField(max_length=500, required=False, allow_blank=True, default="")


class AppUpdateSerializer(serializers.Serializer):
    """Validates PATCH /apps/{id}/ request body; every field is optional."""

    appName = serializers.CharField(max_length=255, required=False, allow_blank=True)
    packageName = serializers.CharField(max_length=255, required=False, allow_blank=True)
    appDescription = serializers.CharField(required=False, allow_blank=True)
    playUrl = serializers.URLField(max_length=500, required=False, allow_blank=True)
    appStoreUrl = serializers.URLField(max_length=500, required=False, allow_blank=True)

    #: Wire name -> model field name.
    FIELD_MAP = {
        "appName": "app_name",
        "packageName": "package_name",
        "appDescription": "description",
        "playUrl": "play_url",
        "appStoreUrl": "app_store_url",
    }

    def to_model_fields(self) -> dict:
        """Return the validated data keyed by model field name."""
        return {
            self.FIELD_MAP[name]: value
            for name, value in self.validated_data.items()
        }


# ---------------------------------------------------------------------------
# Configuration tree
# ---------------------------------------------------------------------------

class SaveResultSerializer(serializers.Serializer):
    """Response shape for POST /apps/{id}/config/."""

    saved = serializers.BooleanField()
    revisedAt = serializers.CharField()
