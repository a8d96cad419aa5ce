"""
apps.console.services.clients
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Collaborator contracts consumed by the console, and their implementations.

Contracts
---------
ConfigStore       – list/create/update/delete apps, get/save config trees
GenerationClient  – regenerate one tab, translate the whole config
IdentityProvider  – current user, change subscription, logout

Implementations
---------------
ServiceConfigStore / ServiceGenerationClient
    In-process, calling :mod:`apps.catalog.services` and
    :mod:`apps.generation.services` directly.  Requires a configured Django.
HttpConfigStore / HttpGenerationClient
    Talk to a remote deployment of this project over its REST API using
    ``requests``.
StaticIdentityProvider
    Holds a user set by the embedding application (or a test).

Every implementation speaks the camelCase wire shape of the REST API and
raises :mod:`common.exceptions` errors, so callers never need to know which
one they hold.
"""
from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import Any, Callable, Protocol

import requests
import structlog

from apps.catalog import services as catalog_services
from apps.catalog.serializers import AppCreateSerializer, AppSerializer, AppUpdateSerializer
from apps.generation import services as generation_services
from common.exceptions import (
    ConflictError,
    NetworkError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------

class ConfigStore(Protocol):
    def list_apps(self) -> list[dict]: ...

    def create_app(self, fields: dict) -> dict: ...

    def update_app(self, app_id: str, fields: dict) -> dict: ...

    def delete_app(self, app_id: str) -> None: ...

    def get_config(self, app_id: str) -> dict: ...

    def save_config(self, app_id: str, tree: dict) -> dict: ...


class GenerationClient(Protocol):
    def regenerate_tab(
        self,
        app_id: str,
        tab_key: str,
        current_subtree: Any,
        app_name: str | None = None,
        app_description: str | None = None,
    ) -> dict: ...

    def translate(self, app_id: str, language_code: str, full_config: dict) -> dict: ...


@dataclass(frozen=True)
class User:
    uid: str
    email: str = ""
    display_name: str = ""


class IdentityProvider(Protocol):
    def current_user(self) -> User | None: ...

    def subscribe(self, callback: Callable[[User | None], Any]) -> Callable[[], None]: ...

    def logout(self) -> None: ...


class StaticIdentityProvider:
    """An identity provider whose user is set explicitly."""

    def __init__(self, user: User | None = None) -> None:
        self._user = user
        self._subscribers: list[Callable[[User | None], Any]] = []
        self._lock = threading.Lock()

    def current_user(self) -> User | None:
        return self._user

    def subscribe(self, callback: Callable[[User | None], Any]) -> Callable[[], None]:
        """Register *callback* for user changes.  Returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def sign_in(self, user: User) -> None:
        self._set(user)

    def logout(self) -> None:
        self._set(None)

    def _set(self, user: User | None) -> None:
        with self._lock:
            self._user = user
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(user)


# ---------------------------------------------------------------------------
# In-process implementations
# ---------------------------------------------------------------------------

def _first_error(errors: dict) -> str:
    for field_name, messages in errors.items():
        message = messages[0] if isinstance(messages, list) and messages else messages
        return f"{field_name}: {message}"
    return "Invalid data."


class ServiceConfigStore:
    """Config store backed by the catalog service layer of this process."""

    def list_apps(self) -> list[dict]:
        return AppSerializer(catalog_services.list_apps(), many=True).data

    def create_app(self, fields: dict) -> dict:
        serializer = AppCreateSerializer(data=fields)
        if not serializer.is_valid():
            raise ValidationError(_first_error(serializer.errors))
        vd = serializer.validated_data
        app = catalog_services.create_app(
            app_name=vd["appName"],
            package_name=vd["packageName"],
            description=vd["appDescription"],
            play_url=vd.get("playUrl", ""),
            app_store_url=vd.get("appStoreUrl", ""),
        )
        return AppSerializer(app).data

    def update_app(self, app_id: str, fields: dict) -> dict:
        serializer = AppUpdateSerializer(data=fields, partial=True)
        if not serializer.is_valid():
            raise ValidationError(_first_error(serializer.errors))
        app = catalog_services.update_app(app_id, data=serializer.to_model_fields())
        return AppSerializer(app).data

    def delete_app(self, app_id: str) -> None:
        catalog_services.delete_app(app_id)

    def get_config(self, app_id: str) -> dict:
        return copy.deepcopy(catalog_services.get_config(app_id))

    def save_config(self, app_id: str, tree: dict) -> dict:
        return catalog_services.save_config(app_id, copy.deepcopy(tree))


class ServiceGenerationClient:
    """Generation client backed by :mod:`apps.generation.services`."""

    def regenerate_tab(
        self,
        app_id: str,
        tab_key: str,
        current_subtree: Any,
        app_name: str | None = None,
        app_description: str | None = None,
    ) -> dict:
        return generation_services.regenerate_tab(
            app_id=app_id,
            tab_key=tab_key,
            current_subtree=current_subtree,
            app_name=app_name,
            app_description=app_description,
        )

    def translate(self, app_id: str, language_code: str, full_config: dict) -> dict:
        return generation_services.translate(
            app_id=app_id,
            language_code=language_code,
            full_config=full_config,
        )


# ---------------------------------------------------------------------------
# HTTP implementations
# ---------------------------------------------------------------------------

class _HttpClient:
    """
    Shared plumbing for the REST clients.

    Args:
        base_url: API root, e.g. ``http://localhost:8000/api/v1/``.
        timeout: Per-request timeout in seconds.
        session: Optional ``requests.Session`` (injectable for tests).
    """

    DEFAULT_TIMEOUT = 15.0

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return self.base_url + path.lstrip("/")

    def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        url = self._url(path)
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.warning("upstream_unreachable", method=method, url=url, error=str(exc))
            raise NetworkError(f"Could not reach {url}: {exc}") from exc

        if response.status_code == 204:
            return None
        if response.ok:
            try:
                return response.json()
            except ValueError as exc:
                raise NetworkError(f"Invalid JSON in response from {url}.") from exc

        detail = self._error_detail(response)
        logger.warning(
            "upstream_error",
            method=method,
            url=url,
            status_code=response.status_code,
            detail=detail,
        )
        if response.status_code == 404:
            raise NotFoundError(detail)
        if response.status_code in (400, 422):
            raise ValidationError(detail)
        if response.status_code == 409:
            raise ConflictError(detail)
        raise NetworkError(f"HTTP {response.status_code}: {detail}")

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or "Request failed."
        if isinstance(body, dict):
            if "detail" in body:
                return str(body["detail"])
            return _first_error(body)
        return str(body)


class HttpConfigStore(_HttpClient):
    """Config store reached over ``/apps/`` REST endpoints."""

    def list_apps(self) -> list[dict]:
        return self._request("GET", "apps/")

    def create_app(self, fields: dict) -> dict:
        return self._request("POST", "apps/", json=fields)

    def update_app(self, app_id: str, fields: dict) -> dict:
        return self._request("PATCH", f"apps/{app_id}/", json=fields)

    def delete_app(self, app_id: str) -> None:
        self._request("DELETE", f"apps/{app_id}/")

    def get_config(self, app_id: str) -> dict:
        return self._request("GET", f"apps/{app_id}/config/") or {}

    def save_config(self, app_id: str, tree: dict) -> dict:
        return self._request("POST", f"apps/{app_id}/config/", json=tree)


class HttpGenerationClient(_HttpClient):
    """Generation client reached over the ``regenerate``/``translate`` endpoints."""

    def regenerate_tab(
        self,
        app_id: str,
        tab_key: str,
        current_subtree: Any,
        app_name: str | None = None,
        app_description: str | None = None,
    ) -> dict:
        payload = {"tabKey": tab_key, "currentSubtree": current_subtree}
        if app_name:
            payload["appName"] = app_name
        if app_description:
            payload["appDescription"] = app_description
        return self._request("POST", f"apps/{app_id}/regenerate/", json=payload)

    def translate(self, app_id: str, language_code: str, full_config: dict) -> dict:
        return self._request(
            "POST",
            f"apps/{app_id}/translate/",
            json={"languageCode": language_code, "config": full_config},
        )
