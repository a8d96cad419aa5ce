import django.db.models.deletion
from django.db import migrations, models

import apps.catalog.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="App",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "app_id",
                    models.CharField(
                        default=apps.catalog.models.generate_app_id,
                        editable=False,
                        max_length=64,
                        unique=True,
                    ),
                ),
                ("app_name", models.CharField(max_length=255)),
                ("package_name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True, default="")),
                ("play_url", models.URLField(blank=True, default="", max_length=500)),
                ("app_store_url", models.URLField(blank=True, default="", max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "App",
                "verbose_name_plural": "Apps",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="ReferralConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "tree",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Referral configuration JSON, passed through unchanged.",
                    ),
                ),
                ("revised_at", models.DateTimeField(auto_now=True)),
                (
                    "app",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="config",
                        to="catalog.app",
                    ),
                ),
            ],
            options={
                "verbose_name": "Referral Config",
                "verbose_name_plural": "Referral Configs",
            },
        ),
    ]
