"""
apps.catalog.urls
~~~~~~~~~~~~~~~~~
URL routing for the App catalog.
Mounted at /api/v1/ by the root URLconf.
"""
from django.urls import path

from .views import AppConfigView, AppDetailView, AppListCreateView

urlpatterns = [
    # GET, POST /api/v1/apps/
    path("apps/", AppListCreateView.as_view(), name="app-list-create"),
    # PATCH, DELETE /api/v1/apps/<app_id>/
    path("apps/<str:app_id>/", AppDetailView.as_view(), name="app-detail"),
    # GET, POST /api/v1/apps/<app_id>/config/
    path("apps/<str:app_id>/config/", AppConfigView.as_view(), name="app-config"),
]
