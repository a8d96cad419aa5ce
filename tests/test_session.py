"""
tests.test_session
~~~~~~~~~~~~~~~~~~
ConsoleSession against in-memory collaborators (no DB).

Covers identity gating, the app list and selection, CRUD keeping the list in
sync, tab editing through the projection, debounced editors and the
regenerate / translate jobs.
"""
from __future__ import annotations

import pytest

from apps.console.services.jobs import JobStatus, PendingJobs
from apps.console.services.notifications import NotificationCenter, Variant
from apps.console.services.query_cache import QueryCache
from apps.console.services.reconciler import SyncState
from apps.console.session import ConsoleSession
from common.exceptions import NetworkError, NotFoundError, PermissionDeniedError, ValidationError

PROMOTE = "page1_referralPromote"


# ===========================================================================
# Fixtures
# ===========================================================================

@pytest.fixture
def seeded(store, referral_tree):
    """Two stored apps; the first carries the realistic referral tree."""
    first = store.create_app({"appName": "A", "packageName": "com.a", "appDescription": "a"})
    second = store.create_app({"appName": "B", "packageName": "com.b", "appDescription": "b"})
    store.configs[first["appId"]] = referral_tree
    return first, second


@pytest.fixture
def session(console_context):
    session = ConsoleSession(console_context)
    yield session
    session.close()


@pytest.fixture
def started(session, seeded):
    session.start()
    return session


# ===========================================================================
# Identity
# ===========================================================================

class TestIdentity:
    def test_start_requires_a_user(self, session, identity):
        identity.logout()
        with pytest.raises(PermissionDeniedError):
            session.start()

    def test_logout_clears_the_session(self, started, console_context):
        started.edit_tab(PROMOTE, "title", "Unsaved")

        started.logout()

        assert started.selected_app is None
        assert started.apps == []
        assert started.reconciler.current == {}
        assert len(console_context.cache) == 0


# ===========================================================================
# App list and selection
# ===========================================================================

class TestSelection:
    def test_start_selects_first_app(self, started, seeded):
        first, second = seeded
        assert [app["appId"] for app in started.apps] == [first["appId"], second["appId"]]
        assert started.selected_app["appId"] == first["appId"]
        assert started.reconciler.state is SyncState.CLEAN

    def test_app_list_is_cached(self, started, store):
        started.refresh_apps()
        assert [call for call in store.calls if call[0] == "list_apps"] == [("list_apps",)]

    def test_failed_app_list_becomes_notification(self, session, store, seeded):
        store.failures["list_apps"] = NetworkError("down")
        assert session.start() == []
        [note] = session.notifications.items
        assert note.variant is Variant.DESTRUCTIVE
        assert note.retryable

        assert len(note.retry()) == 2
        assert session.selected_app is not None

    def test_select_unknown_app(self, started):
        with pytest.raises(NotFoundError):
            started.select_app("app-missing")

    def test_switching_while_dirty_is_gated(self, started, seeded):
        first, second = seeded
        started.edit_tab(PROMOTE, "hero.title", "Unsaved")
        current_before = started.reconciler.current

        gate = started.select_app(second["appId"])

        assert gate is started.pending_switch
        gate.cancel()
        assert started.selected_app["appId"] == first["appId"]
        assert started.reconciler.current is current_before

        gate = started.select_app(second["appId"])
        gate.confirm()
        assert started.selected_app["appId"] == second["appId"]
        assert started.reconciler.state is SyncState.CLEAN


# ===========================================================================
# CRUD
# ===========================================================================

class TestCrud:
    def test_create_selects_new_app_with_empty_tree(self, started, store):
        app = started.create_app({"appName": "Demo", "packageName": "com.demo.x", "appDescription": "d"})

        assert app["appId"]
        assert started.selected_app["appId"] == app["appId"]
        assert started.reconciler.current == {}
        assert app["appId"] in [item["appId"] for item in started.apps]

    def test_create_failure_is_reported(self, started):
        assert started.create_app({"appName": "", "packageName": "com.x", "appDescription": "d"}) is None
        [note] = started.notifications.items
        assert "appName" in note.message

    def test_update_keeps_list_and_selection_in_sync(self, started, seeded):
        first, _ = seeded
        started.update_app(first["appId"], {"appName": "Renamed"})
        assert started.apps[0]["appName"] == "Renamed"
        assert started.selected_app["appName"] == "Renamed"

    def test_delete_selected_selects_first_remaining(self, started, seeded):
        first, second = seeded
        assert started.delete_app(first["appId"]) is True
        assert [app["appId"] for app in started.apps] == [second["appId"]]
        assert started.selected_app["appId"] == second["appId"]

    def test_delete_last_app_leaves_nothing_selected(self, session, store):
        only = store.create_app({"appName": "Solo", "packageName": "com.solo", "appDescription": "s"})
        session.start()
        session.delete_app(only["appId"])
        assert session.selected_app is None
        assert session.tabs() == []

    def test_delete_missing_app_is_reported(self, started):
        assert started.delete_app("app-missing") is False
        assert started.notifications.items[-1].variant is Variant.DESTRUCTIVE


# ===========================================================================
# Tabs and editing
# ===========================================================================

class TestTabs:
    def test_tab_order(self, started):
        assert [tab.key for tab in started.tabs()] == [
            PROMOTE,
            "page2_referralStatus",
            "notifications",
            "image",
            "app-details",
            "customX",
        ]

    def test_edit_tab_writes_under_the_tab_root(self, started):
        started.edit_tab(PROMOTE, "hero.title", "New Title")
        current = started.reconciler.current
        assert current["referral_json"]["en"][PROMOTE]["hero"]["title"] == "New Title"
        assert started.tab(PROMOTE).data["hero"]["title"] == "New Title"

    def test_edit_image_creates_reserved_subtree(self, started):
        started.edit_tab("image", "imageUrl", "https://cdn.example/x.png")
        assert started.reconciler.current["referral_json"]["en"]["image"] == {
            "imageUrl": "https://cdn.example/x.png"
        }

    def test_app_details_edits_use_side_channel(self, started):
        started.edit_tab("app-details", "playUrl", "https://play.example/new")
        assert started.reconciler.app_edits == {"playUrl": "https://play.example/new"}
        assert started.tab("app-details").data["playUrl"] == "https://play.example/new"
        assert started.reconciler.state is SyncState.DIRTY

    def test_app_details_read_only_fields(self, started):
        with pytest.raises(ValidationError):
            started.edit_tab("app-details", "appName", "Nope")
        form = started.tab_form("app-details")
        assert {child.key for child in form.children if child.disabled} == {
            "packageName",
            "appName",
            "appDescription",
        }

    def test_tab_form_follows_lock(self, started):
        started.reconciler.lock()
        assert all(leaf.disabled for leaf in started.tab_form(PROMOTE).iter_leaves())

    def test_debounced_editor_is_flushed_by_save(self, started, store):
        editor = started.open_tab_editor(PROMOTE)
        editor.push("hero.title", "N")
        editor.push("hero.title", "New Title")
        assert started.reconciler.state is SyncState.CLEAN

        started.save()

        [saved] = store.saved_trees()
        assert saved["referral_json"]["en"][PROMOTE]["hero"]["title"] == "New Title"

    def test_pending_editor_edits_count_when_switching(self, started, seeded):
        _, second = seeded
        editor = started.open_tab_editor(PROMOTE)
        editor.push("title", "Typed")

        gate = started.select_app(second["appId"])

        assert gate is not None
        gate.cancel()
        assert started.tab(PROMOTE).data["title"] == "Typed"

    def test_reset_drops_open_editors(self, started):
        editor = started.open_tab_editor(PROMOTE)
        editor.push("title", "Typed")
        started.reset()
        assert editor.closed
        assert started.reconciler.state is SyncState.CLEAN

    def test_unknown_tab(self, started):
        with pytest.raises(NotFoundError):
            started.open_tab_editor("nope")


# ===========================================================================
# Generation jobs
# ===========================================================================

class TestRegenerate:
    def test_regenerated_subtree_replaces_tab(self, started):
        future = started.regenerate_tab(PROMOTE)
        result = future.result(timeout=5)

        assert result["tabKey"] == PROMOTE
        assert started.tab(PROMOTE).data["title"] == "Fresh"
        assert started.reconciler.state is SyncState.DIRTY
        assert started.regenerating.status((started.selected_app["appId"], PROMOTE)) is None

    def test_pending_tab_is_suppressed_but_others_run(self, started, generation):
        generation.hold = True
        first = started.regenerate_tab(PROMOTE)

        assert started.regenerate_tab(PROMOTE) is None
        other = started.regenerate_tab("notifications")
        assert other is not None

        generation.release.set()
        first.result(timeout=5)
        other.result(timeout=5)
        assert started.regenerate_tab(PROMOTE) is not None

    def test_pseudo_tabs_cannot_be_regenerated(self, started):
        with pytest.raises(ValidationError):
            started.regenerate_tab("app-details")

    def test_failure_clears_flag_and_offers_retry(self, started, generation):
        generation.failures["regenerate_tab"] = NetworkError("generator down")

        assert started.regenerate_tab(PROMOTE).result(timeout=5) is None

        note = started.notifications.items[-1]
        assert note.variant is Variant.DESTRUCTIVE
        assert "generator down" in note.message
        assert started.reconciler.state is SyncState.CLEAN

        retried = note.retry()
        assert retried.result(timeout=5)["newSubtree"]["title"] == "Fresh"

    def test_result_for_deselected_app_is_discarded(self, started, seeded, generation):
        _, second = seeded
        generation.hold = True
        future = started.regenerate_tab(PROMOTE)
        started.select_app(second["appId"])

        generation.release.set()
        future.result(timeout=5)

        assert started.selected_app["appId"] == second["appId"]
        assert started.reconciler.current == {}

    def test_unexpected_error_clears_flag(self, started, generation):
        generation.failures["regenerate_tab"] = RuntimeError("bad payload")

        with pytest.raises(RuntimeError):
            started.regenerate_tab(PROMOTE).result(timeout=5)

        assert not started.regenerating.any_pending
        assert started.notifications.items[-1].variant is Variant.DESTRUCTIVE
        assert started.regenerate_tab(PROMOTE).result(timeout=5)["tabKey"] == PROMOTE


class TestTranslate:
    def test_completed_language_is_suppressed(self, started, generation):
        assert started.translate("es").result(timeout=5)["status"] == "completed"
        assert started.translation_status() == {"es": "completed"}
        assert started.translate("es") is None
        assert [call[2] for call in generation.calls if call[0] == "translate"] == ["es"]

    def test_failed_translation_can_be_retried(self, started, generation):
        generation.failures["translate"] = NetworkError("down")
        assert started.translate("fr").result(timeout=5) is None
        assert started.translation_status() == {}
        assert started.translate("fr").result(timeout=5)["languageCode"] == "fr"

    def test_switching_apps_resets_translations(self, started, seeded):
        _, second = seeded
        started.translate("de").result(timeout=5)
        started.select_app(second["appId"])
        assert started.translation_status() == {}

    def test_translation_finishing_after_switch_does_not_block_new_app(
        self, started, seeded, generation
    ):
        _, second = seeded
        generation.hold = True
        future = started.translate("es")
        started.select_app(second["appId"])

        generation.release.set()
        future.result(timeout=5)

        assert started.translation_status() == {}
        assert started.translate("es").result(timeout=5)["languageCode"] == "es"

    def test_unexpected_error_clears_flag(self, started, generation):
        generation.failures["translate"] = RuntimeError("bad payload")

        with pytest.raises(RuntimeError):
            started.translate("it").result(timeout=5)

        assert started.translation_status() == {}
        assert started.translate("it").result(timeout=5)["status"] == "completed"


# ===========================================================================
# Small building blocks
# ===========================================================================

class TestPendingJobs:
    def test_repeatable_keys(self):
        jobs = PendingJobs()
        assert jobs.start("a")
        assert not jobs.start("a")
        assert jobs.is_pending("a")
        jobs.finish("a")
        assert jobs.status("a") is None
        assert jobs.start("a")

    def test_once_only_keys(self):
        jobs = PendingJobs(once=True)
        jobs.start("es")
        jobs.finish("es")
        assert jobs.status("es") is JobStatus.COMPLETED
        assert not jobs.start("es")
        assert not jobs.any_pending

    def test_fail_clears(self):
        jobs = PendingJobs(once=True)
        jobs.start("es")
        jobs.fail("es")
        assert jobs.start("es")


class TestQueryCache:
    def test_get_or_fetch_fetches_once(self):
        cache = QueryCache()
        calls = []

        def fetch():
            calls.append(1)
            return ["x"]

        assert cache.get_or_fetch(("apps",), fetch) == ["x"]
        assert cache.get_or_fetch(("apps",), fetch) == ["x"]
        assert len(calls) == 1

    def test_failed_fetch_is_not_cached(self):
        cache = QueryCache()

        def fetch():
            raise NetworkError("down")

        with pytest.raises(NetworkError):
            cache.get_or_fetch(("apps",), fetch)
        assert ("apps",) not in cache

    def test_invalidation(self):
        cache = QueryCache()
        cache.set(("config", "a"), {})
        cache.set(("config", "b"), {})
        cache.set(("apps",), [])

        assert cache.invalidate(("apps",)) is True
        assert cache.invalidate(("apps",)) is False
        assert cache.invalidate_prefix(("config",)) == 2
        assert len(cache) == 0


class TestNotificationCenter:
    def test_dismiss(self):
        center = NotificationCenter()
        first = center.success("Saved.")
        second = center.error("Failed.", retry=lambda: None)

        assert center.dismiss(first.id) is True
        assert center.dismiss(first.id) is False
        assert center.items == [second]
        assert second.variant is Variant.DESTRUCTIVE
