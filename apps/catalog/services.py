"""
apps.catalog.services
~~~~~~~~~~~~~~~~~~~~~
All business logic of the Config Store.

Views (and the in-process console store) must call only these functions.

Responsibilities
----------------
- CRUD for :class:`~apps.catalog.models.App`.
- Reading and persisting the per-app configuration tree held in
  :class:`~apps.catalog.models.ReferralConfig`.

Saves are last-writer-wins: no revision is compared before a tree is
overwritten.
"""
from __future__ import annotations

import structlog
from django.db import IntegrityError, transaction

from common.exceptions import ConflictError, NotFoundError, ValidationError
from .models import App, ReferralConfig

logger = structlog.get_logger(__name__)

#: Fields applied by :func:`update_app` only when the new value is non-empty.
_IDENTITY_FIELDS: tuple[str, ...] = ("app_name", "package_name")

#: Fields applied by :func:`update_app` whenever they are supplied.
_META_FIELDS: tuple[str, ...] = ("description", "play_url", "app_store_url")


# ---------------------------------------------------------------------------
# App CRUD
# ---------------------------------------------------------------------------

def list_apps() -> list[App]:
    """Return every registered app in creation order."""
    return list(App.objects.all())


def get_app(app_id: str) -> App:
    """
    Fetch an :class:`App` by its public ``app_id``.

    Raises:
        common.exceptions.NotFoundError: If no app has that identifier.
    """
    try:
        return App.objects.get(app_id=app_id)
    except App.DoesNotExist:
        raise NotFoundError(f"App '{app_id}' not found.")


def create_app(
    *,
    app_name: str,
    package_name: str,
    description: str,
    play_url: str = "",
    app_store_url: str = "",
) -> App:
    """
    Register a new app.  No configuration row is created; the first
    :func:`save_config` call does that.

    Raises:
        common.exceptions.ConflictError: If *package_name* is already taken.
    """
    try:
        with transaction.atomic():
            app = App.objects.create(
                app_name=app_name,
                package_name=package_name,
                description=description,
                play_url=play_url,
                app_store_url=app_store_url,
            )
    except IntegrityError as exc:
        raise ConflictError(
            f"An app with package name '{package_name}' already exists."
        ) from exc

    logger.info("app_created", app_id=app.app_id, package_name=package_name)
    return app


def update_app(app_id: str, *, data: dict) -> App:
    """
    Partially update an app.

    ``app_name`` and ``package_name`` are only replaced by non-empty values;
    the store metadata fields are replaced whenever present in *data*, so a
    caller may clear a URL by sending an empty string.  Unknown keys are
    ignored.
    """
    app = get_app(app_id)
    changed: list[str] = []

    for field in _IDENTITY_FIELDS:
        if data.get(field):
            setattr(app, field, data[field])
            changed.append(field)
    for field in _META_FIELDS:
        if field in data and data[field] is not None:
            setattr(app, field, data[field])
            changed.append(field)

    if not changed:
        return app

    try:
        with transaction.atomic():
            app.save(update_fields=[*changed, "updated_at"])
    except IntegrityError as exc:
        raise ConflictError(
            f"An app with package name '{app.package_name}' already exists."
        ) from exc

    logger.info("app_updated", app_id=app_id, fields=changed)
    return app


def delete_app(app_id: str) -> None:
    """Delete an app together with its configuration tree."""
    app = get_app(app_id)
    app.delete()
    logger.info("app_deleted", app_id=app_id)


# ---------------------------------------------------------------------------
# Configuration tree
# ---------------------------------------------------------------------------

def get_config(app_id: str) -> dict:
    """
    Return the stored configuration tree of an app.

    An app that was never saved has an empty tree; that is not an error.
    """
    app = get_app(app_id)
    config = ReferralConfig.objects.filter(app=app).first()
    if config is None:
        return {}
    return config.tree


def save_config(app_id: str, tree: dict) -> dict:
    """
    Persist *tree* as the configuration of an app, replacing whatever was
    stored before.

    Returns:
        ``{"saved": True, "revisedAt": <ISO-8601 timestamp>}``.

    Raises:
        common.exceptions.NotFoundError: Unknown *app_id*.
        common.exceptions.ValidationError: *tree* is not a JSON object.
    """
    if not isinstance(tree, dict):
        raise ValidationError("The configuration tree must be a JSON object.")

    app = get_app(app_id)
    config, created = ReferralConfig.objects.update_or_create(
        app=app,
        defaults={"tree": tree},
    )
    logger.info(
        "config_saved",
        app_id=app_id,
        created=created,
        top_level_keys=len(tree),
    )
    return {"saved": True, "revisedAt": config.revised_at.isoformat()}
