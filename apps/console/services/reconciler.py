"""
apps.console.services.reconciler
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Dirty-state reconciliation between the console's working copy of a
configuration tree and the Config Store.

The reconciler holds two snapshots of the selected app's tree:

* ``original``: what the store returned on load, or what was last saved.
* ``current``: the working copy every edit is applied to.

Edits to App fields that live outside the tree (the ``app-details`` tab) go
into a side-channel buffer and set an explicit dirty flag.

State machine
-------------
CLEAN  --edit/side-channel edit-->  DIRTY
DIRTY  --save-->  SAVING  --ok-->   CLEAN  (original := saved snapshot)
                          --fail--> DIRTY  (edits kept, retry offered)
DIRTY  --reset--> CLEAN
*      --failed load--> ERROR

Saves are last-writer-wins; no revision is compared.  External failures are
never raised from :meth:`ConfigReconciler.load` or
:meth:`ConfigReconciler.save`: they become notifications with a retry action.
"""
from __future__ import annotations

import copy
import enum
import json
import threading
from typing import Any, Callable

import structlog

from common.exceptions import AppError, PermissionDeniedError, ValidationError
from .json_text import JsonParseResult, format_json, parse_json_text
from .notifications import NotificationCenter
from .query_cache import QueryCache, apps_key, config_key
from .tabs import APP_DETAIL_FIELDS, READ_ONLY_APP_FIELDS
from .tree_editor import apply_edit, read_path

logger = structlog.get_logger(__name__)


class SyncState(str, enum.Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"
    ERROR = "error"


class EditorLockedError(PermissionDeniedError):
    default_code = "editor_locked"
    default_detail = "The editor is locked."


class NothingLoadedError(ValidationError):
    default_code = "nothing_loaded"
    default_detail = "No app is loaded."


def _serialized(tree: Any) -> str:
    return json.dumps(tree, sort_keys=True)


# ---------------------------------------------------------------------------
# App switch confirmation
# ---------------------------------------------------------------------------

class SwitchGate:
    """
    A pending request to switch apps while the current one has unsaved
    changes.  Exactly one of :meth:`confirm` or :meth:`cancel` takes effect;
    later calls are ignored.
    """

    def __init__(
        self,
        reconciler: ConfigReconciler,
        target: dict,
        on_switched: Callable[[dict], Any] | None = None,
    ) -> None:
        self.reconciler = reconciler
        self.target = target
        self._on_switched = on_switched
        self._resolved = False

    @property
    def pending(self) -> bool:
        return not self._resolved and self.reconciler.pending_switch is self

    def confirm(self) -> bool:
        """Discard unsaved changes and load the target app."""
        if not self.pending:
            return False
        self._resolved = True
        self.reconciler.pending_switch = None
        logger.info(
            "app_switch_confirmed",
            from_app=self.reconciler.app_id,
            to_app=self.target.get("appId"),
        )
        self.reconciler.clear()
        self.reconciler.load(self.target)
        if self._on_switched is not None:
            self._on_switched(self.target)
        return True

    def cancel(self) -> None:
        """Keep the current app, its edits and the selection untouched."""
        if not self.pending:
            return
        self._resolved = True
        self.reconciler.pending_switch = None
        logger.info("app_switch_cancelled", to_app=self.target.get("appId"))


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------

class ConfigReconciler:
    """
    Owns the snapshot pair of one selected app.

    Args:
        store: A :class:`~apps.console.services.clients.ConfigStore`.
        cache: Shared :class:`QueryCache`; a private one is created if omitted.
        notifications: Where failures and confirmations are reported.
    """

    def __init__(
        self,
        store,
        *,
        cache: QueryCache | None = None,
        notifications: NotificationCenter | None = None,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else QueryCache()
        self.notifications = notifications if notifications is not None else NotificationCenter()

        self.app: dict | None = None
        self.original: dict = {}
        self.current: dict = {}
        self.app_edits: dict[str, str] = {}
        self.load_error: AppError | None = None
        self.last_error: Exception | None = None
        self.pending_json_text: str | None = None
        self.pending_switch: SwitchGate | None = None
        self.locked = False

        self._dirty_flag = False
        self._saving = False
        self._lock = threading.RLock()

    # -- state --------------------------------------------------------------

    @property
    def app_id(self) -> str | None:
        return self.app.get("appId") if self.app else None

    @property
    def has_changes(self) -> bool:
        """True when ``current`` differs from ``original`` or the dirty flag is set."""
        with self._lock:
            if self._dirty_flag:
                return True
            return _serialized(self.current) != _serialized(self.original)

    @property
    def saving(self) -> bool:
        return self._saving

    @property
    def state(self) -> SyncState:
        with self._lock:
            if self._saving:
                return SyncState.SAVING
            if self.load_error is not None:
                return SyncState.ERROR
            return SyncState.DIRTY if self.has_changes else SyncState.CLEAN

    # -- loading ------------------------------------------------------------

    def load(self, app: dict) -> bool:
        """
        Fetch the tree of *app* and make it both ``original`` and ``current``.

        Returns False (state ERROR, notification with a retry action) when
        the store call fails.
        """
        app_id = app["appId"]
        with self._lock:
            self.app = app
            self.load_error = None

        try:
            tree = self.cache.get_or_fetch(
                config_key(app_id), lambda: self.store.get_config(app_id)
            )
        except AppError as exc:
            with self._lock:
                self.load_error = exc
                self.original = {}
                self.current = {}
            logger.warning("config_load_failed", app_id=app_id, code=exc.code, detail=exc.detail)
            self.notifications.error(
                f"Could not load configuration: {exc.detail}",
                title="Load failed",
                retry=self.retry_load,
            )
            return False

        with self._lock:
            if self.app_id != app_id:
                # Another app was selected while this fetch was running.
                return False
            self.original = copy.deepcopy(tree or {})
            self.current = copy.deepcopy(self.original)
            self.app_edits = {}
            self._dirty_flag = False
            self.pending_json_text = None
        logger.info("config_loaded", app_id=app_id)
        return True

    def retry_load(self) -> bool:
        if self.app is None:
            return False
        self.cache.invalidate(config_key(self.app_id))
        return self.load(self.app)

    # -- editing ------------------------------------------------------------

    def edit(self, path: str, value: Any) -> None:
        """Write *value* at *path* in ``current``.  Sets no dirty flag."""
        with self._lock:
            self._check_editable()
            self.current = apply_edit(self.current, path, value)

    def apply_edits(self, edits: list[tuple[str, Any]]) -> None:
        """Apply a batch of ``(path, value)`` edits, e.g. from an EditBuffer."""
        with self._lock:
            self._check_editable()
            tree = self.current
            for path, value in edits:
                tree = apply_edit(tree, path, value)
            self.current = tree

    def replace_tree(self, tree: dict) -> None:
        if not isinstance(tree, dict):
            raise ValidationError("The configuration tree must be a JSON object.")
        with self._lock:
            self._check_editable()
            self.current = copy.deepcopy(tree)

    def update_app_details(self, **fields: str) -> None:
        """
        Buffer edits of App fields shown on the ``app-details`` tab.

        Raises:
            ValidationError: A field is unknown or read-only.
        """
        for name in fields:
            if name not in APP_DETAIL_FIELDS:
                raise ValidationError(f"Unknown app detail '{name}'.")
            if name in READ_ONLY_APP_FIELDS:
                raise ValidationError(f"App detail '{name}' is read-only.")
        with self._lock:
            self._check_editable()
            self.app_edits.update(fields)
            self._dirty_flag = True

    def value_at(self, path: str, default: Any = None) -> Any:
        with self._lock:
            return copy.deepcopy(read_path(self.current, path, default))

    # -- JSON mode ----------------------------------------------------------

    def json_text(self, path: str = "") -> str:
        """The subtree at *path* of ``current`` as editor text."""
        return format_json(self.value_at(path, {}))

    def apply_json_text(self, text: str, path: str = "") -> JsonParseResult:
        """
        Commit hand-typed JSON at *path* (the whole tree when empty).

        Invalid text is not committed.  It is kept in ``pending_json_text``
        and the returned result carries the diagnostic.
        """
        with self._lock:
            self._check_editable()
            result = parse_json_text(text)
            if result.valid and not path and not isinstance(result.value, dict):
                result = JsonParseResult(
                    valid=False,
                    error="The configuration tree must be a JSON object",
                    line=1,
                    column=1,
                )
            if not result.valid:
                self.pending_json_text = text
                return result

            if path:
                self.current = apply_edit(self.current, path, result.value)
            else:
                self.current = copy.deepcopy(result.value)
            self.pending_json_text = None
            return result

    # -- save / reset -------------------------------------------------------

    def save(self) -> dict | None:
        """
        Persist ``current`` and any side-channel App edits.

        Returns the store's save result, or ``None`` when the save failed or
        was ignored because another save is in flight.

        Raises:
            EditorLockedError: The editor is locked.
            NothingLoadedError: No app is loaded.

        Any other error from the store is re-raised once the editor is back
        in a re-triggerable state.
        """
        with self._lock:
            self._check_editable()
            if self._saving:
                logger.info("config_save_ignored", app_id=self.app_id, reason="in_flight")
                return None
            app_id = self.app_id
            snapshot = copy.deepcopy(self.current)
            app_edits = dict(self.app_edits)
            self._saving = True

        updated_app = None
        try:
            if app_edits:
                updated_app = self.store.update_app(app_id, app_edits)
            result = self.store.save_config(app_id, snapshot)
        except AppError as exc:
            self._save_failed(app_id, exc, exc.detail)
            return None
        except Exception as exc:
            logger.exception("config_save_crashed", app_id=app_id, error=str(exc))
            self._save_failed(app_id, exc, str(exc) or type(exc).__name__)
            raise

        with self._lock:
            self._saving = False
            self.last_error = None
            if self.app_id == app_id:
                self.original = snapshot
                # Side-channel edits made while the save was in flight stay buffered.
                for name, value in app_edits.items():
                    if self.app_edits.get(name) == value:
                        del self.app_edits[name]
                self._dirty_flag = bool(self.app_edits)
                if updated_app is not None:
                    self.app = updated_app

        self.cache.invalidate(config_key(app_id))
        self.cache.invalidate(apps_key())
        logger.info("config_saved", app_id=app_id, app_fields=sorted(app_edits))
        self.notifications.success("Configuration saved.")
        return result

    def _save_failed(self, app_id: str, exc: Exception, detail: str) -> None:
        with self._lock:
            self._saving = False
            self.last_error = exc
        logger.warning("config_save_failed", app_id=app_id, detail=detail)
        self.notifications.error(
            f"Could not save configuration: {detail}",
            title="Save failed",
            retry=self.save,
        )

    def reset(self) -> None:
        """Discard unsaved changes.  Calling it on a clean editor is a no-op."""
        with self._lock:
            self._check_editable()
            if not self.has_changes and self.pending_json_text is None:
                return
            self.current = copy.deepcopy(self.original)
            self.app_edits = {}
            self._dirty_flag = False
            self.pending_json_text = None
        logger.info("config_reset", app_id=self.app_id)

    def clear(self) -> None:
        """Forget the loaded app entirely."""
        with self._lock:
            self.app = None
            self.original = {}
            self.current = {}
            self.app_edits = {}
            self._dirty_flag = False
            self.load_error = None
            self.last_error = None
            self.pending_json_text = None
            self.pending_switch = None

    # -- switching ----------------------------------------------------------

    def request_switch(
        self,
        app: dict,
        on_switched: Callable[[dict], Any] | None = None,
    ) -> SwitchGate | None:
        """
        Switch to *app*.

        Without unsaved changes the new app is loaded immediately and
        ``None`` is returned.  Otherwise a :class:`SwitchGate` is returned
        and nothing changes until it is confirmed.
        """
        if self.app is not None and app.get("appId") == self.app_id:
            return None
        if self.app is not None and self.has_changes:
            gate = SwitchGate(self, app, on_switched)
            self.pending_switch = gate
            logger.info("app_switch_gated", from_app=self.app_id, to_app=app.get("appId"))
            return gate

        self.clear()
        self.load(app)
        if on_switched is not None:
            on_switched(app)
        return None

    # -- locking ------------------------------------------------------------

    def lock(self) -> None:
        self.locked = True

    def unlock(self) -> None:
        self.locked = False

    def _check_editable(self) -> None:
        if self.locked:
            raise EditorLockedError()
        if self.app is None:
            raise NothingLoadedError()
        if self.load_error is not None:
            raise NothingLoadedError("The configuration failed to load.")
