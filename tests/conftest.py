"""
Shared fixtures for the referral console test-suite.

``InMemoryConfigStore`` and ``FakeGenerationClient`` implement the console's
collaborator contracts without a database, so the reconciler and session can
be exercised as plain Python.
"""
from __future__ import annotations

import copy
import itertools
import threading

import pytest
from rest_framework.test import APIClient

from apps.catalog import services as catalog_services
from apps.console.context import ConsoleContext
from apps.console.services.clients import StaticIdentityProvider, User
from apps.console.services.query_cache import QueryCache
from common.exceptions import ConflictError, NotFoundError, ValidationError


# ===========================================================================
# Collaborator fakes
# ===========================================================================

class InMemoryConfigStore:
    """
    Config store keeping everything in dicts.

    ``failures[operation] = exc`` makes the next call of *operation* raise
    *exc* once.  ``on_save`` is invoked while ``save_config`` is in flight.
    """

    REQUIRED = ("appName", "packageName", "appDescription")

    def __init__(self) -> None:
        self.apps: dict[str, dict] = {}
        self.configs: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.failures: dict[str, Exception] = {}
        self.on_save = None
        self._ids = itertools.count(1)

    def _enter(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        exc = self.failures.pop(operation, None)
        if exc is not None:
            raise exc

    def _get(self, app_id: str) -> dict:
        if app_id not in self.apps:
            raise NotFoundError(f"App '{app_id}' not found.")
        return self.apps[app_id]

    def list_apps(self) -> list[dict]:
        self._enter("list_apps")
        return [copy.deepcopy(app) for app in self.apps.values()]

    def create_app(self, fields: dict) -> dict:
        self._enter("create_app", fields)
        for name in self.REQUIRED:
            if not fields.get(name):
                raise ValidationError(f"{name}: This field is required.")
        if any(app["packageName"] == fields["packageName"] for app in self.apps.values()):
            raise ConflictError("Package name already registered.")
        app_id = f"app-{next(self._ids)}"
        self.apps[app_id] = {
            "appId": app_id,
            "appName": fields["appName"],
            "packageName": fields["packageName"],
            "meta": {
                "description": fields["appDescription"],
                "playUrl": fields.get("playUrl", ""),
                "appStoreUrl": fields.get("appStoreUrl", ""),
            },
        }
        return copy.deepcopy(self.apps[app_id])

    def update_app(self, app_id: str, fields: dict) -> dict:
        self._enter("update_app", app_id, fields)
        app = self._get(app_id)
        for name in ("appName", "packageName"):
            if fields.get(name):
                app[name] = fields[name]
        meta_names = {"appDescription": "description", "playUrl": "playUrl", "appStoreUrl": "appStoreUrl"}
        for name, meta_name in meta_names.items():
            if name in fields:
                app["meta"][meta_name] = fields[name]
        return copy.deepcopy(app)

    def delete_app(self, app_id: str) -> None:
        self._enter("delete_app", app_id)
        self._get(app_id)
        del self.apps[app_id]
        self.configs.pop(app_id, None)

    def get_config(self, app_id: str) -> dict:
        self._enter("get_config", app_id)
        self._get(app_id)
        return copy.deepcopy(self.configs.get(app_id, {}))

    def save_config(self, app_id: str, tree: dict) -> dict:
        self._enter("save_config", app_id, copy.deepcopy(tree))
        self._get(app_id)
        if self.on_save is not None:
            self.on_save()
        self.configs[app_id] = copy.deepcopy(tree)
        return {"saved": True, "revisedAt": "2026-01-01T00:00:00+00:00"}

    def saved_trees(self) -> list[dict]:
        return [call[2] for call in self.calls if call[0] == "save_config"]


class FakeGenerationClient:
    """
    Generation client that marks regenerated titles with ``"Fresh"``.

    Calls block on ``release`` when ``hold`` is True, so a job can be kept
    pending by a test.
    """

    def __init__(self) -> None:
        self.hold = False
        self.release = threading.Event()
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple] = []
        self._lock = threading.Lock()

    def _enter(self, operation: str, *args) -> None:
        with self._lock:
            self.calls.append((operation, *args))
            exc = self.failures.pop(operation, None)
        if self.hold:
            self.release.wait(timeout=5)
        if exc is not None:
            raise exc

    def regenerate_tab(self, app_id, tab_key, current_subtree, app_name=None, app_description=None):
        self._enter("regenerate_tab", app_id, tab_key)
        subtree = copy.deepcopy(current_subtree)
        subtree["title"] = "Fresh"
        return {"tabKey": tab_key, "newSubtree": subtree}

    def translate(self, app_id, language_code, full_config):
        self._enter("translate", app_id, language_code)
        return {"languageCode": language_code, "status": "completed"}


# ===========================================================================
# Fixtures
# ===========================================================================

REFERRAL_TREE: dict = {
    "referral_json": {
        "en": {
            "notifications": {"title": "Invite", "message": "Share {{code}} now"},
            "page2_referralStatus": {"title": "Status", "hero": {"title": "Your rewards"}},
            "page1_referralPromote": {
                "title": "Promote",
                "hero": {"title": "Invite friends", "subtitle": "Earn rewards"},
                "benefits": [{"title": "Bonus", "desc": "Get 100 coins"}],
                "show_banner": True,
                "max_invites": 10,
            },
            "customX": {"title": "Custom"},
            "images": {"hero": "ignored"},
        }
    }
}


@pytest.fixture
def api_client() -> APIClient:
    """Return an unauthenticated DRF APIClient."""
    return APIClient()


@pytest.fixture
def referral_tree() -> dict:
    return copy.deepcopy(REFERRAL_TREE)


@pytest.fixture
def demo_app(db):
    """A stored App with no configuration saved yet."""
    return catalog_services.create_app(
        app_name="Demo",
        package_name="com.demo.x",
        description="d",
        play_url="https://play.google.com/store/apps/details?id=com.demo.x",
    )


@pytest.fixture
def store() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture
def generation() -> FakeGenerationClient:
    client = FakeGenerationClient()
    yield client
    client.release.set()


@pytest.fixture
def identity() -> StaticIdentityProvider:
    return StaticIdentityProvider(User(uid="u-1", email="admin@example.com", display_name="Admin"))


@pytest.fixture
def console_context(store, generation, identity) -> ConsoleContext:
    return ConsoleContext(
        store=store,
        generation=generation,
        identity=identity,
        cache=QueryCache(),
        edit_debounce=60.0,
        job_workers=4,
    )
