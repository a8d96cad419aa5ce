"""
apps.catalog.admin
"""
from django.contrib import admin

from .models import App, ReferralConfig


@admin.register(App)
class AppAdmin(admin.ModelAdmin):
    list_display = ["app_id", "app_name", "package_name", "created_at"]
    search_fields = ["app_id", "app_name", "package_name"]
    readonly_fields = ["app_id", "created_at", "updated_at"]
    ordering = ["id"]

    def get_fields(self, request, obj=None):
        """Show the public app_id at the top of the detail form."""
        fields = super().get_fields(request, obj)
        if obj:
            fields = list(fields)
            if "app_id" in fields:
                fields.remove("app_id")
            fields.insert(0, "app_id")
        return fields


@admin.register(ReferralConfig)
class ReferralConfigAdmin(admin.ModelAdmin):
    list_display = ["app", "revised_at"]
    search_fields = ["app__app_id", "app__package_name"]
    readonly_fields = ["revised_at"]
