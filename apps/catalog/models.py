"""
apps.catalog.models
~~~~~~~~~~~~~~~~~~~
App – a mobile app whose referral campaign is configured through the console.
ReferralConfig – the opaque JSON configuration tree owned 1:1 by an App.
"""
import uuid

from django.db import models


def generate_app_id() -> str:
    """Return a fresh public identifier of the form ``app-<uuid4>``."""
    return f"app-{uuid.uuid4()}"


class App(models.Model):
    """
    A mobile app registered in the console.

    Fields
    ------
    app_id
        Public, URL-safe identifier generated on creation.  All API lookups
        use this value, never the integer primary key.
    app_name / package_name
        Display name and store package name (``com.example.app``).
        ``package_name`` is unique across the catalog.
    description / play_url / app_store_url
        Store metadata, exposed on the wire under ``meta``.
    """

    app_id = models.CharField(
        max_length=64,
        unique=True,
        default=generate_app_id,
        editable=False,
    )
    app_name = models.CharField(max_length=255)
    package_name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")
    play_url = models.URLField(max_length=500, blank=True, default="")
    app_store_url = models.URLField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]
        verbose_name = "App"
        verbose_name_plural = "Apps"

    def __str__(self) -> str:
        return f"{self.app_name} ({self.package_name})"


class ReferralConfig(models.Model):
    """
    The referral configuration tree of one :class:`App`.

    ``tree`` is stored as-is; no schema is enforced.  The row is created on
    the first save, so an app that was never saved simply has no row.
    """

    app = models.OneToOneField(
        App,
        on_delete=models.CASCADE,
        related_name="config",
    )
    tree = models.JSONField(
        default=dict,
        blank=True,
        help_text="Referral configuration JSON, passed through unchanged.",
    )
    revised_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Referral Config"
        verbose_name_plural = "Referral Configs"

    def __str__(self) -> str:
        return f"config for {self.app.app_id}"
