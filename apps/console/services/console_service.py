"""
apps.console.services.console_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Stateless console operations exposed over REST.

The stateful console (selection, dirty tracking, jobs) lives in
:class:`apps.console.session.ConsoleSession`; these helpers serve a
front-end that keeps that state itself and only needs the projection and
form engine evaluated server-side.
"""
from __future__ import annotations

from typing import Any

import structlog
from django.conf import settings

from apps.catalog import services as catalog_services
from apps.catalog.serializers import AppSerializer
from .tabs import DEFAULT_TAB_ROOT, Tab, find_tab, project_tabs, render_tab
from .tree_editor import FormNode, apply_edit, read_path

logger = structlog.get_logger(__name__)


def _tab_root() -> str:
    return getattr(settings, "CONSOLE_TAB_ROOT", DEFAULT_TAB_ROOT)


def _load(app_id: str) -> tuple[dict, dict]:
    app = catalog_services.get_app(app_id)
    return AppSerializer(app).data, catalog_services.get_config(app_id)


def describe_tabs(app_id: str) -> list[Tab]:
    """Ordered tabs of a stored app."""
    app, tree = _load(app_id)
    return project_tabs(app, tree, root_path=_tab_root())


def render_tab_form(app_id: str, tab_key: str, *, locked: bool = False) -> FormNode:
    """
    Render the form of one tab of a stored app.

    Raises:
        common.exceptions.NotFoundError: Unknown app or tab.
    """
    app, tree = _load(app_id)
    tab = find_tab(app, tree, tab_key, root_path=_tab_root())
    return render_tab(tab, locked=locked)


def preview_edit(app_id: str, tree: dict, path: str, value: Any) -> dict:
    """
    Return ``{"tree": <edited copy>, "value": <value read back at path>}``.
    Nothing is persisted.
    """
    catalog_services.get_app(app_id)
    edited = apply_edit(tree, path, value)
    logger.debug("edit_previewed", app_id=app_id, path=path)
    return {"tree": edited, "value": read_path(edited, path)}
