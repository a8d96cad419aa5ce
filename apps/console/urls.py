"""
apps.console.urls
~~~~~~~~~~~~~~~~~
URL routing for the console API.
Mounted at /api/v1/ by the root URLconf.
"""
from django.urls import path

from .views import EditPreviewView, TabFormView, TabListView

urlpatterns = [
    # GET /api/v1/apps/<app_id>/console/tabs/
    path(
        "apps/<str:app_id>/console/tabs/",
        TabListView.as_view(),
        name="console-tabs",
    ),
    # GET /api/v1/apps/<app_id>/console/tabs/<tab_key>/form/
    path(
        "apps/<str:app_id>/console/tabs/<str:tab_key>/form/",
        TabFormView.as_view(),
        name="console-tab-form",
    ),
    # POST /api/v1/apps/<app_id>/console/edit/
    path(
        "apps/<str:app_id>/console/edit/",
        EditPreviewView.as_view(),
        name="console-edit",
    ),
]
