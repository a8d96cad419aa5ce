"""
apps.generation.serializers
~~~~~~~~~~~~~~~~~~~~~~~~~~~
I/O serializers for regeneration and translation requests.
"""
from rest_framework import serializers


class RegenerateRequestSerializer(serializers.Serializer):
    tabKey = serializers.CharField(max_length=100)
    currentSubtree = serializers.JSONField()
    appName = serializers.CharField(required=False, allow_blank=True)
    appDescription = serializers.CharField(required=False, allow_blank=True)


class RegenerateResponseSerializer(serializers.Serializer):
    tabKey = serializers.CharField()
    newSubtree = serializers.JSONField()


class TranslateRequestSerializer(serializers.Serializer):
    languageCode = serializers.CharField(max_length=10)
    config = serializers.JSONField(required=False, default=dict)


class TranslateResponseSerializer(serializers.Serializer):
    languageCode = serializers.CharField()
    status = serializers.CharField()
