"""
apps.catalog.views
~~~~~~~~~~~~~~~~~~
Thin DRF API views for the App catalog.
All business logic is delegated to :mod:`apps.catalog.services`.

Endpoints
---------
GET    /apps/                 – List apps
POST   /apps/                 – Create app
PATCH  /apps/{app_id}/        – Partially update app
DELETE /apps/{app_id}/        – Delete app and its config
GET    /apps/{app_id}/config/ – Fetch config tree ({} if never saved)
POST   /apps/{app_id}/config/ – Replace config tree
"""
from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import serializers, status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .serializers import (
    AppCreateSerializer,
    AppSerializer,
    AppUpdateSerializer,
    SaveResultSerializer,
)


class AppListCreateView(APIView):
    """GET /apps/  –  POST /apps/"""

    @extend_schema(
        summary="List Apps",
        responses={200: AppSerializer(many=True)},
        tags=["Apps"],
    )
    def get(self, request: Request) -> Response:
        apps = services.list_apps()
        return Response(AppSerializer(apps, many=True).data)

    @extend_schema(
        summary="Create App",
        description="Registers a new app.  Its configuration starts out empty.",
        request=AppCreateSerializer,
        responses={
            201: AppSerializer,
            400: OpenApiResponse(description="Required field missing or URL malformed."),
            409: OpenApiResponse(description="Package name already registered."),
        },
        tags=["Apps"],
    )
    def post(self, request: Request) -> Response:
        serializer = AppCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        app = services.create_app(
            app_name=vd["appName"],
            package_name=vd["packageName"],
            description=vd["appDescription"],
            play_url=vd.get("playUrl", ""),
            app_store_url=vd.get("appStoreUrl", ""),
        )
        return Response(AppSerializer(app).data, status=status.HTTP_201_CREATED)


class AppDetailView(APIView):
    """PATCH / DELETE /apps/{app_id}/"""

    @extend_schema(
        summary="Update App",
        request=AppUpdateSerializer,
        responses={
            200: AppSerializer,
            404: OpenApiResponse(description="App not found."),
            409: OpenApiResponse(description="Package name already registered."),
        },
        tags=["Apps"],
    )
    def patch(self, request: Request, app_id: str) -> Response:
        serializer = AppUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        app = services.update_app(app_id, data=serializer.to_model_fields())
        return Response(AppSerializer(app).data)

    @extend_schema(
        summary="Delete App",
        responses={
            204: OpenApiResponse(description="Deleted."),
            404: OpenApiResponse(description="App not found."),
        },
        tags=["Apps"],
    )
    def delete(self, request: Request, app_id: str) -> Response:
        services.delete_app(app_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AppConfigView(APIView):
    """GET / POST /apps/{app_id}/config/"""

    @extend_schema(
        summary="Get App Config",
        description="Returns the stored tree, or an empty object if nothing was saved yet.",
        responses={
            200: serializers.JSONField(),
            404: OpenApiResponse(description="App not found."),
        },
        tags=["Config"],
    )
    def get(self, request: Request, app_id: str) -> Response:
        return Response(services.get_config(app_id))

    @extend_schema(
        summary="Save App Config",
        description=(
            "Replaces the stored tree with the request body.  Last writer wins; "
            "no revision check is made."
        ),
        request=serializers.JSONField(),
        responses={
            200: SaveResultSerializer,
            404: OpenApiResponse(description="App not found."),
            422: OpenApiResponse(description="Body is not a JSON object."),
        },
        tags=["Config"],
    )
    def post(self, request: Request, app_id: str) -> Response:
        result = services.save_config(app_id, request.data)
        return Response(SaveResultSerializer(result).data)
