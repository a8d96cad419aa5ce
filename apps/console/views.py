"""
apps.console.views
~~~~~~~~~~~~~~~~~~
DRF views for the console's tab projection and form engine.  Thin layer;
all logic delegated to :mod:`apps.console.services.console_service`.

Endpoints
---------
GET  /apps/{app_id}/console/tabs/                  – Ordered tab list
GET  /apps/{app_id}/console/tabs/{tab_key}/form/   – Rendered form tree
POST /apps/{app_id}/console/edit/                  – Apply one edit to a tree
"""
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import EditRequestSerializer, EditResponseSerializer, TabSerializer
from .services import console_service

_TRUTHY = {"1", "true", "yes", "on"}


class TabListView(APIView):
    """GET /apps/{app_id}/console/tabs/"""

    @extend_schema(
        summary="List Tabs",
        description=(
            "Known tabs in canonical order, then the `image` and `app-details` "
            "pseudo-tabs, then any other key under the tab root."
        ),
        responses={
            200: TabSerializer(many=True),
            404: OpenApiResponse(description="App not found."),
        },
        tags=["Console"],
    )
    def get(self, request: Request, app_id: str) -> Response:
        tabs = console_service.describe_tabs(app_id)
        return Response(TabSerializer(tabs, many=True).data)


class TabFormView(APIView):
    """GET /apps/{app_id}/console/tabs/{tab_key}/form/"""

    @extend_schema(
        summary="Render Tab Form",
        parameters=[
            OpenApiParameter(
                name="locked",
                type=bool,
                required=False,
                description="Disable every control.",
            ),
        ],
        responses={
            200: serializers.JSONField(),
            404: OpenApiResponse(description="App or tab not found."),
        },
        tags=["Console"],
    )
    def get(self, request: Request, app_id: str, tab_key: str) -> Response:
        locked = request.query_params.get("locked", "").lower() in _TRUTHY
        node = console_service.render_tab_form(app_id, tab_key, locked=locked)
        return Response(node.to_dict())


class EditPreviewView(APIView):
    """POST /apps/{app_id}/console/edit/"""

    @extend_schema(
        summary="Apply Edit",
        description="Returns a copy of `tree` with `value` written at `path`.  Nothing is stored.",
        request=EditRequestSerializer,
        responses={
            200: EditResponseSerializer,
            404: OpenApiResponse(description="App not found."),
            422: OpenApiResponse(description="Path cannot be resolved against the tree."),
        },
        tags=["Console"],
    )
    def post(self, request: Request, app_id: str) -> Response:
        serializer = EditRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        result = console_service.preview_edit(app_id, vd["tree"], vd["path"], vd.get("value"))
        return Response(EditResponseSerializer(result).data)
