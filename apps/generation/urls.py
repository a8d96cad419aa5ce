"""
apps.generation.urls
"""
from django.urls import path

from .views import RegenerateTabView, TranslateView

urlpatterns = [
    path("apps/<str:app_id>/regenerate/", RegenerateTabView.as_view(), name="app-regenerate"),
    path("apps/<str:app_id>/translate/", TranslateView.as_view(), name="app-translate"),
]
