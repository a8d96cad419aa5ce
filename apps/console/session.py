"""
apps.console.session
~~~~~~~~~~~~~~~~~~~~
One operator's console session: the app list, the selected app and its
reconciler, tab projection and the generation jobs started from it.

A session is the seam a front-end drives.  It never raises for failures of
the store or the generation service; those end up in :attr:`notifications`.
Programming errors (unknown tab, read-only field, locked editor) do raise.

Public API
----------
ConsoleSession(context)
    start() / require_user() / logout() / close()
    refresh_apps() / select_app() / create_app() / update_app() / delete_app()
    tabs() / tab_form() / edit_tab() / open_tab_editor()
    save() / reset()
    regenerate_tab() / translate() / translation_status()
"""
from __future__ import annotations

import copy
import dataclasses
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import structlog

from common.exceptions import AppError, NotFoundError, PermissionDeniedError, ValidationError
from .context import ConsoleContext
from .services.clients import User
from .services.edit_buffer import EditBuffer
from .services.jobs import PendingJobs
from .services.notifications import NotificationCenter
from .services.query_cache import apps_key, config_key
from .services.reconciler import ConfigReconciler, SwitchGate
from .services.tabs import Tab, TabSource, project_tabs, render_tab
from .services.tree_editor import FormNode, join_path

logger = structlog.get_logger(__name__)


class ConsoleSession:
    """
    Args:
        context: Collaborators, shared cache and console settings.
        executor: Runs generation jobs.  A thread pool sized by
            ``context.job_workers`` is created (and owned) when omitted.
    """

    def __init__(self, context: ConsoleContext, *, executor=None) -> None:
        self.context = context
        self.notifications = NotificationCenter()
        self.reconciler = ConfigReconciler(
            context.store,
            cache=context.cache,
            notifications=self.notifications,
        )
        self.apps: list[dict] = []
        self.regenerating = PendingJobs()
        self.translations = PendingJobs(once=True)

        self._executor = executor
        self._owns_executor = executor is None
        self._buffers: list[EditBuffer] = []
        self._unsubscribe = context.identity.subscribe(self._on_identity_changed)

    # -----------------------------------------------------------------------
    # Identity
    # -----------------------------------------------------------------------

    def require_user(self) -> User:
        """
        Raises:
            common.exceptions.PermissionDeniedError: Nobody is signed in.
        """
        user = self.context.identity.current_user()
        if user is None:
            raise PermissionDeniedError("Sign in to use the console.")
        return user

    def start(self) -> list[dict]:
        """Check the signed-in user and load the app list."""
        user = self.require_user()
        logger.info("console_session_started", uid=user.uid)
        return self.refresh_apps()

    def logout(self) -> None:
        self.context.identity.logout()

    def _on_identity_changed(self, user: User | None) -> None:
        if user is not None:
            return
        logger.info("console_session_signed_out", app_id=self.reconciler.app_id)
        self._close_buffers(flush=False)
        self.reconciler.clear()
        self.apps = []
        self.regenerating.clear()
        self.translations.clear()
        self.context.cache.clear()

    # -----------------------------------------------------------------------
    # App list and selection
    # -----------------------------------------------------------------------

    @property
    def selected_app(self) -> dict | None:
        return self.reconciler.app

    @property
    def pending_switch(self) -> SwitchGate | None:
        return self.reconciler.pending_switch

    def refresh_apps(self) -> list[dict]:
        """
        Load the app list (through the cache) and select the first app when
        nothing is selected yet.
        """
        try:
            apps = self.context.cache.get_or_fetch(apps_key(), self.context.store.list_apps)
        except AppError as exc:
            logger.warning("app_list_failed", code=exc.code, detail=exc.detail)
            self.notifications.error(
                f"Could not load apps: {exc.detail}",
                retry=self.refresh_apps,
            )
            return self.apps

        self.apps = copy.deepcopy(list(apps))
        if self.selected_app is None and self.apps:
            self.reconciler.request_switch(self.apps[0], on_switched=self._on_switched)
        return self.apps

    def select_app(self, app_id: str) -> SwitchGate | None:
        """
        Select another app.  Returns a :class:`SwitchGate` to confirm or
        cancel when the current app has unsaved changes.

        Raises:
            common.exceptions.NotFoundError: *app_id* is not in the app list.
        """
        app = self._find_app(app_id)
        self._flush_buffers()
        return self.reconciler.request_switch(app, on_switched=self._on_switched)

    def _on_switched(self, app: dict) -> None:
        self._close_buffers(flush=False)
        self.translations.clear()
        logger.info("app_selected", app_id=app.get("appId"))

    def _find_app(self, app_id: str) -> dict:
        for app in self.apps:
            if app.get("appId") == app_id:
                return app
        raise NotFoundError(f"App '{app_id}' not found.")

    # -----------------------------------------------------------------------
    # App CRUD
    # -----------------------------------------------------------------------

    def create_app(self, fields: dict) -> dict | None:
        """
        Register an app and select it.  Returns ``None`` on failure.

        When the current app has unsaved changes the selection goes through
        :attr:`pending_switch` like any other switch.
        """
        try:
            app = self.context.store.create_app(fields)
        except AppError as exc:
            self._report("Could not create app", exc)
            return None

        self.context.cache.invalidate(apps_key())
        self.apps.append(copy.deepcopy(app))
        self.notifications.success(f"App '{app.get('appName')}' created.")
        self._flush_buffers()
        self.reconciler.request_switch(app, on_switched=self._on_switched)
        return app

    def update_app(self, app_id: str, fields: dict) -> dict | None:
        try:
            app = self.context.store.update_app(app_id, fields)
        except AppError as exc:
            self._report("Could not update app", exc)
            return None

        self.context.cache.invalidate(apps_key())
        self.apps = [app if item.get("appId") == app_id else item for item in self.apps]
        if self.reconciler.app_id == app_id:
            self.reconciler.app = app
        return app

    def delete_app(self, app_id: str) -> bool:
        """Delete an app.  If it was selected, the first remaining app is selected."""
        try:
            self.context.store.delete_app(app_id)
        except AppError as exc:
            self._report("Could not delete app", exc)
            return False

        self.context.cache.invalidate(apps_key())
        self.context.cache.invalidate(config_key(app_id))
        self.apps = [item for item in self.apps if item.get("appId") != app_id]
        if self.reconciler.app_id == app_id:
            self._close_buffers(flush=False)
            self.reconciler.clear()
            if self.apps:
                self.reconciler.request_switch(self.apps[0], on_switched=self._on_switched)
        self.notifications.success("App deleted.")
        return True

    # -----------------------------------------------------------------------
    # Tabs and editing
    # -----------------------------------------------------------------------

    def tabs(self) -> list[Tab]:
        """Tabs of the selected app, reflecting unsaved edits."""
        if self.selected_app is None:
            return []
        tabs = project_tabs(
            self.selected_app,
            self.reconciler.current,
            root_path=self.context.tab_root,
        )
        edits = self.reconciler.app_edits
        if not edits:
            return tabs
        return [
            dataclasses.replace(tab, data={**tab.data, **edits}) if tab.source is TabSource.APP else tab
            for tab in tabs
        ]

    def tab(self, tab_key: str) -> Tab:
        for tab in self.tabs():
            if tab.key == tab_key:
                return tab
        raise NotFoundError(f"Tab '{tab_key}' not found.")

    def tab_form(self, tab_key: str) -> FormNode:
        """
        Render the form of one tab.  Node paths are relative to the tab, ready
        to be passed back to :meth:`edit_tab`.
        """
        return render_tab(self.tab(tab_key), locked=self.reconciler.locked)

    def edit_tab(self, tab_key: str, path: str, value: Any) -> None:
        """Apply one edit at *path* relative to the tab's subtree."""
        self._commit_tab_edits(tab_key, [(path, value)])

    def open_tab_editor(self, tab_key: str) -> EditBuffer:
        """
        Return a debounced buffer whose edits land on *tab_key*.  Buffers
        are flushed by :meth:`save` and dropped on app switch.
        """
        self.tab(tab_key)
        buffer = EditBuffer(
            lambda edits: self._commit_buffered(tab_key, edits),
            delay=self.context.edit_debounce,
        )
        self._buffers.append(buffer)
        return buffer

    def _commit_buffered(self, tab_key: str, edits: list[tuple[str, Any]]) -> None:
        try:
            self._commit_tab_edits(tab_key, edits)
        except AppError as exc:
            self._report("Could not apply edit", exc)

    def _commit_tab_edits(self, tab_key: str, edits: list[tuple[str, Any]]) -> None:
        tab = self.tab(tab_key)
        if tab.source is TabSource.APP:
            for path, _ in edits:
                if not path or "." in path:
                    raise ValidationError(f"'{path}' is not an app detail field.")
            self.reconciler.update_app_details(**dict(edits))
            return
        self.reconciler.apply_edits([(join_path(tab.path, path), value) for path, value in edits])

    def save(self) -> dict | None:
        self._flush_buffers()
        return self.reconciler.save()

    def reset(self) -> None:
        self._close_buffers(flush=False)
        self.reconciler.reset()

    def _flush_buffers(self) -> None:
        for buffer in self._buffers:
            buffer.flush()

    def _close_buffers(self, *, flush: bool) -> None:
        buffers, self._buffers = self._buffers, []
        for buffer in buffers:
            buffer.close(flush=flush)

    # -----------------------------------------------------------------------
    # Generation jobs
    # -----------------------------------------------------------------------

    @property
    def executor(self):
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.context.job_workers,
                thread_name_prefix="console-job",
            )
        return self._executor

    def regenerate_tab(self, tab_key: str) -> Future | None:
        """
        Ask the generation service for fresh content for one tab.

        Returns the job's future, or ``None`` when the same tab is already
        being regenerated.  On success the new subtree replaces the tab in
        the working copy, if the app is still selected.
        """
        app = self.selected_app
        if app is None:
            raise ValidationError("No app is selected.")
        tab = self.tab(tab_key)
        if not tab.regenerable:
            raise ValidationError(f"Tab '{tab_key}' cannot be regenerated.")

        job_key = (app["appId"], tab_key)
        if not self.regenerating.start(job_key):
            logger.info("regeneration_suppressed", app_id=app["appId"], tab_key=tab_key)
            return None
        return self.executor.submit(self._run_regeneration, app, tab, job_key)

    def _run_regeneration(self, app: dict, tab: Tab, job_key) -> dict | None:
        app_id = app["appId"]
        try:
            result = self.context.generation.regenerate_tab(
                app_id,
                tab.key,
                tab.data,
                app.get("appName"),
                (app.get("meta") or {}).get("description"),
            )
        except AppError as exc:
            self.regenerating.fail(job_key)
            logger.warning("regeneration_failed", app_id=app_id, tab_key=tab.key, detail=exc.detail)
            self.notifications.error(
                f"Could not regenerate {tab.title}: {exc.detail}",
                retry=lambda: self.regenerate_tab(tab.key),
            )
            return None
        except Exception:
            self.regenerating.fail(job_key)
            logger.exception("regeneration_crashed", app_id=app_id, tab_key=tab.key)
            self.notifications.error(f"Could not regenerate {tab.title}.")
            raise

        self.regenerating.finish(job_key)
        if self.reconciler.app_id != app_id:
            logger.info("regeneration_discarded", app_id=app_id, tab_key=tab.key)
            return result
        try:
            self.reconciler.edit(tab.path, result["newSubtree"])
        except AppError as exc:
            self._report(f"Could not apply regenerated {tab.title}", exc)
            return result
        self.notifications.success(f"{tab.title} regenerated.")
        return result

    def translate(self, language_code: str) -> Future | None:
        """
        Request a translation of the working copy.  Returns ``None`` when
        that language is already pending or was translated for this app.
        """
        app = self.selected_app
        if app is None:
            raise ValidationError("No app is selected.")
        job_key = (app["appId"], language_code)
        if not self.translations.start(job_key):
            logger.info("translation_suppressed", app_id=app["appId"], language_code=language_code)
            return None
        tree = copy.deepcopy(self.reconciler.current)
        return self.executor.submit(self._run_translation, app["appId"], language_code, tree)

    def _run_translation(self, app_id: str, language_code: str, tree: dict) -> dict | None:
        job_key = (app_id, language_code)
        try:
            result = self.context.generation.translate(app_id, language_code, tree)
        except AppError as exc:
            self.translations.fail(job_key)
            logger.warning(
                "translation_failed",
                app_id=app_id,
                language_code=language_code,
                detail=exc.detail,
            )
            self.notifications.error(
                f"Could not translate to '{language_code}': {exc.detail}",
                retry=lambda: self.translate(language_code),
            )
            return None
        except Exception:
            self.translations.fail(job_key)
            logger.exception("translation_crashed", app_id=app_id, language_code=language_code)
            self.notifications.error(f"Could not translate to '{language_code}'.")
            raise

        self.translations.finish(job_key)
        self.notifications.success(f"Translation to '{language_code}' completed.")
        return result

    def translation_status(self) -> dict[str, str]:
        """Translation job states of the selected app, by language code."""
        app_id = self.reconciler.app_id
        return {
            code: status.value
            for (job_app_id, code), status in self.translations.snapshot().items()
            if job_app_id == app_id
        }

    # -----------------------------------------------------------------------
    # Teardown
    # -----------------------------------------------------------------------

    def close(self) -> None:
        """Flush open editors, stop listening for identity changes, stop jobs."""
        self._close_buffers(flush=True)
        self._unsubscribe()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _report(self, message: str, exc: AppError) -> None:
        logger.warning("console_operation_failed", message=message, code=exc.code, detail=exc.detail)
        self.notifications.error(f"{message}: {exc.detail}")
