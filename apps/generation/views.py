"""
apps.generation.views
~~~~~~~~~~~~~~~~~~~~~
DRF views for tab regeneration and translation – thin layer; all logic
delegated to services.
"""
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .serializers import (
    RegenerateRequestSerializer,
    RegenerateResponseSerializer,
    TranslateRequestSerializer,
    TranslateResponseSerializer,
)


class RegenerateTabView(APIView):
    """POST /apps/{app_id}/regenerate/"""

    @extend_schema(
        summary="Regenerate Tab",
        request=RegenerateRequestSerializer,
        responses={
            200: RegenerateResponseSerializer,
            404: OpenApiResponse(description="App not found."),
        },
        tags=["Generation"],
    )
    def post(self, request: Request, app_id: str) -> Response:
        serializer = RegenerateRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        result = services.regenerate_tab(
            app_id=app_id,
            tab_key=vd["tabKey"],
            current_subtree=vd["currentSubtree"],
            app_name=vd.get("appName") or None,
            app_description=vd.get("appDescription") or None,
        )
        return Response(RegenerateResponseSerializer(result).data)


class TranslateView(APIView):
    """POST /apps/{app_id}/translate/"""

    @extend_schema(
        summary="Translate Config",
        request=TranslateRequestSerializer,
        responses={
            200: TranslateResponseSerializer,
            404: OpenApiResponse(description="App not found."),
            422: OpenApiResponse(description="Unsupported language code."),
        },
        tags=["Generation"],
    )
    def post(self, request: Request, app_id: str) -> Response:
        serializer = TranslateRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        result = services.translate(
            app_id=app_id,
            language_code=vd["languageCode"],
            full_config=vd["config"],
        )
        return Response(TranslateResponseSerializer(result).data)
