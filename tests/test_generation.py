"""
tests.test_generation
~~~~~~~~~~~~~~~~~~~~~
Regeneration and translation services and endpoints (DB).
"""
from __future__ import annotations

import copy

import pytest
from rest_framework import status

from apps.generation import services
from common.exceptions import NotFoundError, ValidationError


@pytest.mark.django_db
class TestRegenerate:
    def test_headline_fields_are_marked(self, demo_app):
        subtree = {
            "title": "Promote",
            "hero": {"title": "Invite friends", "subtitle": "Earn"},
            "header": {"title": ""},
            "benefits": [{"title": "Untouched"}],
        }
        before = copy.deepcopy(subtree)

        result = services.regenerate_tab(
            app_id=demo_app.app_id,
            tab_key="page1_referralPromote",
            current_subtree=subtree,
        )

        assert subtree == before
        assert result["tabKey"] == "page1_referralPromote"
        new = result["newSubtree"]
        assert new["title"] == "Promote (Regenerated)"
        assert new["hero"]["title"] == "Invite friends (Regenerated)"
        assert new["hero"]["subtitle"] == "Earn"
        assert new["header"]["title"] == ""
        assert new["benefits"] == [{"title": "Untouched"}]

    def test_non_mapping_subtree_passes_through(self, demo_app):
        result = services.regenerate_tab(app_id=demo_app.app_id, tab_key="x", current_subtree=["a"])
        assert result["newSubtree"] == ["a"]

    def test_unknown_app(self, db):
        with pytest.raises(NotFoundError):
            services.regenerate_tab(app_id="app-missing", tab_key="x", current_subtree={})

    def test_endpoint(self, api_client, demo_app):
        resp = api_client.post(
            f"/api/v1/apps/{demo_app.app_id}/regenerate/",
            data={"tabKey": "notifications", "currentSubtree": {"title": "Hi"}},
            format="json",
        )
        assert resp.status_code == status.HTTP_200_OK
        assert resp.json() == {
            "tabKey": "notifications",
            "newSubtree": {"title": "Hi (Regenerated)"},
        }


@pytest.mark.django_db
class TestTranslate:
    def test_supported_language(self, demo_app):
        result = services.translate(app_id=demo_app.app_id, language_code="ml", full_config={})
        assert result == {"languageCode": "ml", "status": "completed"}

    def test_unsupported_language(self, demo_app):
        with pytest.raises(ValidationError):
            services.translate(app_id=demo_app.app_id, language_code="xx", full_config={})

    def test_endpoint_rejects_unknown_code(self, api_client, demo_app):
        resp = api_client.post(
            f"/api/v1/apps/{demo_app.app_id}/translate/",
            data={"languageCode": "xx", "config": {}},
            format="json",
        )
        assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_endpoint(self, api_client, demo_app):
        resp = api_client.post(
            f"/api/v1/apps/{demo_app.app_id}/translate/",
            data={"languageCode": "es"},
            format="json",
        )
        assert resp.status_code == status.HTTP_200_OK
        assert resp.json()["status"] == "completed"
